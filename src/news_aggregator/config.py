"""Runtime configuration for the news ingestion service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

DEFAULT_BASE_URL = "https://newsdata.io/api/1"
DEFAULT_CATEGORIES = "technology,business,science"
DEFAULT_LANGUAGE = "en"
DEFAULT_CRON_SCHEDULE = "0 */1 * * *"
PRODUCTION_ENV = "production"


@dataclass(slots=True)
class NewsDataSettings:
    """Upstream NewsData.io API settings."""

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    request_timeout_seconds: float = 30.0


@dataclass(slots=True)
class IngestionSettings:
    """What to fetch on every ingestion run."""

    categories: tuple[str, ...] = tuple(DEFAULT_CATEGORIES.split(","))
    language: str = DEFAULT_LANGUAGE


@dataclass(slots=True)
class SchedulerSettings:
    """Recurring schedule settings."""

    cron_schedule: str = DEFAULT_CRON_SCHEDULE
    run_on_start: bool = False


@dataclass(slots=True)
class LoggingSettings:
    """Log level and file sink settings."""

    level: str = "INFO"
    log_dir: Path = Path("logs")


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".news_aggregator.db")
    app_env: str = "development"
    newsdata: NewsDataSettings = field(default_factory=NewsDataSettings)
    ingestion: IngestionSettings = field(default_factory=IngestionSettings)
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        return self.app_env == PRODUCTION_ENV

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        app_env = os.getenv("APP_ENV", "development").strip().lower() or "development"
        return cls(
            db_path=db_path or Path(os.getenv("NEWS_AGGREGATOR_DB_PATH", ".news_aggregator.db")),
            app_env=app_env,
            newsdata=NewsDataSettings(
                api_key=os.getenv("NEWSDATA_API_KEY", "").strip() or None,
                base_url=(os.getenv("NEWSDATA_BASE_URL", "").strip() or DEFAULT_BASE_URL).rstrip(
                    "/",
                ),
                request_timeout_seconds=float(os.getenv("NEWSDATA_TIMEOUT_SECONDS", "30")),
            ),
            ingestion=IngestionSettings(
                categories=parse_categories(
                    os.getenv("NEWS_FETCH_CATEGORIES") or DEFAULT_CATEGORIES,
                ),
                language=os.getenv("NEWS_FETCH_LANGUAGE", "").strip() or DEFAULT_LANGUAGE,
            ),
            scheduler=SchedulerSettings(
                cron_schedule=os.getenv("CRON_SCHEDULE", "").strip() or DEFAULT_CRON_SCHEDULE,
                # Production deployments always warm the store right after startup.
                run_on_start=app_env == PRODUCTION_ENV
                or _env_bool("FETCH_ON_START", default=False),
            ),
            logging=LoggingSettings(
                level=os.getenv("NEWS_AGGREGATOR_LOG_LEVEL", "INFO").strip().upper(),
                log_dir=Path(os.getenv("NEWS_AGGREGATOR_LOG_DIR", "logs")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if upstream settings are unusable."""

        parsed = urlparse(self.newsdata.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "Invalid NEWSDATA_BASE_URL: "
                f"{self.newsdata.base_url!r}. Expected an absolute http:// or https:// URL.",
            )
        if self.newsdata.request_timeout_seconds <= 0:
            raise ValueError("NEWSDATA_TIMEOUT_SECONDS must be > 0.")
        if not self.ingestion.language:
            raise ValueError("NEWS_FETCH_LANGUAGE must not be empty.")


def parse_categories(raw: str) -> tuple[str, ...]:
    """Split a comma-separated category list, trimming and dropping empty entries."""

    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
