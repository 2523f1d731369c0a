"""Telegram bot scaffold: webhook dispatcher, user/settings schema and handlers."""

__version__ = "0.1.0"
