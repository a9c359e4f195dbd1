"""
Entry point: HTTP server, Telegram bot and daily schedule in one process
"""
from __future__ import annotations

import logging
import sys

import uvicorn

from .config import load_settings
from .exceptions import ConfigurationError
from .logger import setup_logging
from .platforms.telegram_adapter import TelegramAdapter
from .service import StatsService
from .web import create_app


def build_app():
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir, "stats_bot")

    service = StatsService(settings)
    bot = TelegramAdapter(settings, service)
    mode = "webhook" if settings.is_production else "polling"
    logging.getLogger(__name__).info("Starting Telegram bot in %s mode", mode)
    return settings, create_app(settings, service, bot=bot)


def main() -> int:
    try:
        settings, app = build_app()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nShutting down...")
        raise
