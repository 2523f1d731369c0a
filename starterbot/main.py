import logging
from telegram import Update

from .config import BotConfig, configure_logging
from .database import init_db, make_engine, make_session_factory, get_repository
from .dispatcher import build_application

logger = logging.getLogger(__name__)


class StarterBot:
    """Long-polling runner for local development.

    Production traffic goes through the webhook app, which builds a fresh
    Application per request; this class keeps one Application alive instead.
    """

    def __init__(self, config: BotConfig = None):
        self.config = config or BotConfig.from_env()
        configure_logging(self.config.log_level)

        logger.info("Initializing StarterBot...")

        # Initialize database
        engine = make_engine(self.config.database_url)
        init_db(engine)
        self.repository = get_repository(
            self.config.upsert_strategy,
            make_session_factory(engine)
        )

        logger.info("StarterBot initialized successfully")

    async def _error_handler(self, update: object, context):
        """Log errors raised by handlers."""
        logger.error(f"Exception while handling an update: {context.error}", exc_info=context.error)

    def run(self):
        """Run the bot."""
        logger.info("Starting bot...")

        application = build_application(self.config, self.repository)
        application.add_error_handler(self._error_handler)

        logger.info("Bot is ready to start polling...")

        application.run_polling(allowed_updates=Update.ALL_TYPES)


def main():
    """Entry point for the bot."""
    try:
        bot = StarterBot()
        bot.run()
    except Exception as e:
        logger.error(f"Failed to start bot: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
