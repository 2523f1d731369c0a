import asyncio
import hmac
import logging
from flask import Flask, request, jsonify

from starterbot.config import BotConfig, configure_logging
from starterbot.database import init_db, make_engine, make_session_factory, get_repository
from starterbot.dispatcher import process_webhook_update, UpdateDecodeError, UpdateProcessingError

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def create_app(config: BotConfig = None, repository=None, telegram_request=None) -> Flask:
    """Build the Flask app serving the Telegram webhook.

    ``repository`` and ``telegram_request`` default to the configured
    database and the real Bot API; tests pass their own.
    """
    config = config or BotConfig.from_env()

    if repository is None:
        engine = make_engine(config.database_url)
        init_db(engine)
        repository = get_repository(config.upsert_strategy, make_session_factory(engine))

    app = Flask(__name__)
    app.config["BOT_CONFIG"] = config

    @app.route('/webhook', methods=['POST'])
    def webhook():
        """Receive one update from Telegram and answer it."""
        if config.webhook_secret:
            received = request.headers.get(SECRET_HEADER, "")
            # Bytes: compare_digest rejects non-ASCII str
            if not hmac.compare_digest(received.encode("utf-8"), config.webhook_secret.encode("utf-8")):
                logger.warning("Rejected webhook call with a bad secret token")
                return jsonify({"error": "Invalid secret token"}), 401

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or "update_id" not in payload:
            logger.error("Webhook body is not a Telegram update")
            return jsonify({"error": "Body must be a JSON Telegram update"}), 400

        try:
            asyncio.run(process_webhook_update(payload, config, repository, request=telegram_request))
        except UpdateDecodeError as e:
            logger.error(f"Rejected webhook body: {e}")
            return jsonify({"error": str(e)}), 400
        except UpdateProcessingError as e:
            logger.error(f"Update {payload['update_id']} failed: {e}")
            return jsonify({"ok": False, "error": str(e)}), 500

        return jsonify({"ok": True})

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok"})

    return app


def run_webapp():
    """Run the Flask webhook server."""
    config = BotConfig.from_env()
    configure_logging(config.log_level)

    app = create_app(config)

    logger.info(f"Starting webhook server on {config.webhook_host}:{config.webhook_port}")
    app.run(host=config.webhook_host, port=config.webhook_port)


if __name__ == '__main__':
    run_webapp()
