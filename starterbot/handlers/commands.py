import logging
from jinja2 import Template
from telegram import Update
from telegram.ext import ContextTypes

from ..database import UserRepository

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Welcome to the Bot! Send /help for help."

# (command, description) pairs, in the order they are listed in /help
COMMANDS = [
    ("start", "Start"),
    ("help", "Help"),
]

HELP_TEMPLATE = Template(
    "Available commands:"
    "{% for name, description in commands %}\n/{{ name }} - {{ description }}{% endfor %}"
)


def get_help_text() -> str:
    """Render the /help reply from the registered command list."""
    return HELP_TEMPLATE.render(commands=COMMANDS)


class CommandsHandler:
    """Handler for bot commands."""

    def __init__(self, repository: UserRepository):
        self.repository = repository
        self.help_text = get_help_text()
        logger.info("CommandsHandler initialized")

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command - save the sender, then greet them."""
        user = update.effective_user

        if user:
            logger.info(f"Start command from user {user.id} ({user.username})")
            # Persistence errors propagate; the reply is only sent after the write
            self.repository.upsert_user(
                user.id,
                username=user.username,
                first_name=user.first_name,
                last_name=user.last_name
            )
        else:
            logger.info("Start command without a sender, skipping user upsert")

        await update.effective_message.reply_text(WELCOME_TEXT)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command."""
        user = update.effective_user
        logger.info(f"Help command from user {user.id if user else None}")

        await update.effective_message.reply_text(self.help_text)
