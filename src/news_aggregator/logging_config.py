"""Process-wide logging setup for CLI entry points."""

from __future__ import annotations

import logging

from news_aggregator.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Log to the console, plus error/combined files outside production."""

    level = logging.getLevelName(settings.logging.level)
    if not isinstance(level, int):
        raise ValueError(f"Invalid NEWS_AGGREGATOR_LOG_LEVEL: {settings.logging.level!r}")

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if not settings.is_production:
        log_dir = settings.logging.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        error_handler = logging.FileHandler(log_dir / "error.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)
        handlers.append(logging.FileHandler(log_dir / "combined.log", encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers, force=True)
    # httpx logs every request at INFO, including the api key in the query string.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # Migrations run before every command; their INFO lines would mix into command output.
    logging.getLogger("alembic").setLevel(logging.WARNING)
