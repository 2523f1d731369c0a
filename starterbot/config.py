import os
import json
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from dotenv import load_dotenv

UPSERT_STRATEGIES = ("native", "orm")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class BotConfig:
    """Runtime settings read from the environment."""

    bot_token: str
    bot_info: Optional[Dict[str, Any]] = None
    database_url: str = "sqlite:///bot_database.db"
    upsert_strategy: str = "native"
    webhook_secret: Optional[str] = None
    webhook_host: str = "127.0.0.1"
    webhook_port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Build the config from environment variables (and a .env file, if any)."""
        load_dotenv()

        bot_token = os.getenv("BOT_TOKEN")
        if not bot_token:
            raise ValueError("BOT_TOKEN environment variable is required")

        upsert_strategy = os.getenv("UPSERT_STRATEGY", "native").lower()
        if upsert_strategy not in UPSERT_STRATEGIES:
            raise ValueError(
                f"UPSERT_STRATEGY must be one of {', '.join(UPSERT_STRATEGIES)}, got {upsert_strategy!r}"
            )

        return cls(
            bot_token=bot_token,
            bot_info=parse_bot_info(os.getenv("BOT_INFO")),
            database_url=os.getenv("DATABASE_URL", "sqlite:///bot_database.db"),
            upsert_strategy=upsert_strategy,
            webhook_secret=os.getenv("WEBHOOK_SECRET") or None,
            webhook_host=os.getenv("WEBHOOK_HOST", "127.0.0.1"),
            webhook_port=int(os.getenv("WEBHOOK_PORT", 8080)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def parse_bot_info(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode the BOT_INFO JSON blob (the bot's own Telegram user object)."""
    if not raw:
        return None
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"BOT_INFO is not valid JSON: {e}") from e
    if not isinstance(info, dict) or "id" not in info:
        raise ValueError("BOT_INFO must be a JSON object with at least an 'id' field")
    info.setdefault("is_bot", True)
    info.setdefault("first_name", info.get("username") or "Bot")
    return info


def configure_logging(level: str = "INFO"):
    """Configure root logging once for the bot and the webapp."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
