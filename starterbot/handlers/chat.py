import logging
from telegram import Update
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)

MESSAGE_RECEIVED_TEXT = "Message received!"
CALLBACK_ANSWER_TEXT = "Operation successful!"


class ChatHandler:
    """Handler for everything that is not a known command."""

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Acknowledge any other message."""
        user = update.effective_user
        logger.info(f"Received message from user {user.id if user else None}")

        await update.effective_message.reply_text(MESSAGE_RECEIVED_TEXT)

    async def handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Answer inline keyboard callback queries."""
        query = update.callback_query
        logger.info(f"Received callback: {query.data}")

        await query.answer(CALLBACK_ANSWER_TEXT)
