"""Shared fixtures: an in-memory database, both repository bindings and a fake Bot API."""

import json
import time
from http import HTTPStatus
from typing import Optional

import pytest
from telegram.request import BaseRequest

from starterbot.config import BotConfig
from starterbot.database import Base, make_engine, make_session_factory, get_repository

TEST_BOT_TOKEN = "123456789:TEST-token"
TEST_USER_ID = 123456
BOT_INFO = {
    "id": 123456789,
    "is_bot": True,
    "first_name": "Test Bot",
    "username": "test_bot",
}


class RecordingRequest(BaseRequest):
    """Stands in for the Bot API: records every call and returns canned results."""

    def __init__(self):
        self.calls = []

    @property
    def read_timeout(self) -> Optional[float]:
        return 5.0

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def do_request(
        self,
        url,
        method,
        request_data=None,
        read_timeout=BaseRequest.DEFAULT_NONE,
        write_timeout=BaseRequest.DEFAULT_NONE,
        connect_timeout=BaseRequest.DEFAULT_NONE,
        pool_timeout=BaseRequest.DEFAULT_NONE,
    ):
        api_method = url.rsplit("/", 1)[-1]
        params = request_data.parameters if request_data else {}
        self.calls.append((api_method, params))

        if api_method == "getMe":
            result = BOT_INFO
        elif api_method == "sendMessage":
            result = {
                "message_id": 2,
                "date": int(time.time()),
                "chat": {"id": params["chat_id"], "type": "private"},
                "text": params["text"],
            }
        else:
            result = True

        return HTTPStatus.OK, json.dumps({"ok": True, "result": result}).encode("utf-8")

    def sent(self, api_method: str):
        """Parameters of every call made to the given API method."""
        return [params for name, params in self.calls if name == api_method]


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Setup test environment variables for all tests."""
    monkeypatch.setenv("BOT_TOKEN", TEST_BOT_TOKEN)
    monkeypatch.setenv("BOT_INFO", json.dumps(BOT_INFO))
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    for name in ("UPSERT_STRATEGY", "WEBHOOK_SECRET", "WEBHOOK_HOST", "WEBHOOK_PORT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def bot_config():
    return BotConfig(bot_token=TEST_BOT_TOKEN, bot_info=dict(BOT_INFO), database_url="sqlite://")


@pytest.fixture
def engine():
    db_engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(params=["native", "orm"])
def repository(request, session_factory):
    """Each test using this runs once per persistence binding."""
    return get_repository(request.param, session_factory)


@pytest.fixture
def telegram_api():
    return RecordingRequest()


def make_user(user_id=TEST_USER_ID, username="testuser", first_name="Test", last_name=None):
    user = {"id": user_id, "is_bot": False, "first_name": first_name}
    if username is not None:
        user["username"] = username
    if last_name is not None:
        user["last_name"] = last_name
    return user


def make_message_update(text, update_id=1, edited=False, **user_fields):
    """Webhook payload for a private-chat text message; leading /commands get an entity."""
    sender = make_user(**user_fields)
    message = {
        "message_id": 1,
        "date": int(time.time()),
        "chat": {"id": sender["id"], "type": "private"},
        "from": sender,
        "text": text,
    }
    if text.startswith("/"):
        message["entities"] = [
            {"type": "bot_command", "offset": 0, "length": len(text.split()[0])}
        ]
    if edited:
        message["edit_date"] = int(time.time())
        return {"update_id": update_id, "edited_message": message}
    return {"update_id": update_id, "message": message}


def make_callback_update(data="confirm", update_id=1, **user_fields):
    return {
        "update_id": update_id,
        "callback_query": {
            "id": "4382bfdwdsb323b2d9",
            "from": make_user(**user_fields),
            "chat_instance": "-1234567890",
            "data": data,
        },
    }
