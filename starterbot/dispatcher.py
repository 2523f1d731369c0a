import logging
from typing import Optional, Dict, Any

from telegram import Update
from telegram.request import BaseRequest
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    CallbackQueryHandler,
    ContextTypes,
    filters
)

from .config import BotConfig
from .database import UserRepository
from .handlers import CommandsHandler, ChatHandler
from .request import BotInfoRequest

logger = logging.getLogger(__name__)


class UpdateProcessingError(RuntimeError):
    """A handler failed while processing a webhook update."""


class UpdateDecodeError(ValueError):
    """The webhook payload is not a well-formed Telegram update."""


def build_application(
    config: BotConfig,
    repository: UserRepository,
    request: Optional[BaseRequest] = None
) -> Application:
    """Build an Application with the start/help/message/callback handlers registered."""
    application = (
        Application.builder()
        .token(config.bot_token)
        .request(BotInfoRequest(config.bot_info, request))
        .build()
    )

    commands_handler = CommandsHandler(repository)
    chat_handler = ChatHandler()

    # Commands first: the catch-all message handler would match them too
    application.add_handler(CommandHandler(
        "start", commands_handler.start_command, filters=filters.UpdateType.MESSAGE
    ))
    application.add_handler(CommandHandler(
        "help", commands_handler.help_command, filters=filters.UpdateType.MESSAGE
    ))
    application.add_handler(CallbackQueryHandler(chat_handler.handle_callback))
    application.add_handler(MessageHandler(filters.UpdateType.MESSAGE, chat_handler.handle_message))

    return application


async def process_webhook_update(
    payload: Dict[str, Any],
    config: BotConfig,
    repository: UserRepository,
    request: Optional[BaseRequest] = None
) -> None:
    """Decode one webhook payload and run it through a fresh Application.

    Raises UpdateDecodeError if the payload cannot be decoded and
    UpdateProcessingError if any handler raised.
    """
    errors = []

    async def record_error(update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error(f"Exception while handling an update: {context.error}", exc_info=context.error)
        errors.append(context.error)

    application = build_application(config, repository, request=request)
    application.add_error_handler(record_error)

    try:
        update = Update.de_json(payload, application.bot)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpdateDecodeError(f"Malformed update {payload.get('update_id')}: {e!r}") from e

    async with application:
        logger.info(f"Processing update {update.update_id}")
        await application.process_update(update)

    if errors:
        raise UpdateProcessingError(f"Failed to process update {update.update_id}: {errors[0]}") from errors[0]
