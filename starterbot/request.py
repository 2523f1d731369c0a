import json
import logging
from http import HTTPStatus
from typing import Optional, Dict, Any, Tuple

from telegram.request import BaseRequest, HTTPXRequest, RequestData

logger = logging.getLogger(__name__)


class BotInfoRequest(BaseRequest):
    """Request backend that answers ``getMe`` from a static bot description.

    Every webhook call builds a fresh bot, and initializing a bot normally
    costs a ``getMe`` round trip. With ``BOT_INFO`` configured that call is
    served locally; all other API methods go to the wrapped backend.
    """

    def __init__(self, bot_info: Optional[Dict[str, Any]] = None, wrapped: Optional[BaseRequest] = None):
        self.bot_info = bot_info
        self.wrapped = wrapped or HTTPXRequest()

    @property
    def read_timeout(self) -> Optional[float]:
        return self.wrapped.read_timeout

    async def initialize(self) -> None:
        await self.wrapped.initialize()

    async def shutdown(self) -> None:
        await self.wrapped.shutdown()

    async def do_request(
        self,
        url: str,
        method: str,
        request_data: Optional[RequestData] = None,
        read_timeout=BaseRequest.DEFAULT_NONE,
        write_timeout=BaseRequest.DEFAULT_NONE,
        connect_timeout=BaseRequest.DEFAULT_NONE,
        pool_timeout=BaseRequest.DEFAULT_NONE,
    ) -> Tuple[int, bytes]:
        if self.bot_info is not None and url.rsplit("/", 1)[-1] == "getMe":
            logger.debug("Answering getMe from BOT_INFO")
            payload = {"ok": True, "result": self.bot_info}
            return HTTPStatus.OK, json.dumps(payload).encode("utf-8")

        return await self.wrapped.do_request(
            url=url,
            method=method,
            request_data=request_data,
            read_timeout=read_timeout,
            write_timeout=write_timeout,
            connect_timeout=connect_timeout,
            pool_timeout=pool_timeout,
        )
