"""Error taxonomy for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class IngestionError(Exception):
    """Base ingestion error."""

    message: str
    code: str = "ingestion_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class ConfigMissingError(IngestionError):
    """A required setting is absent; the run is skipped, not failed."""

    setting: str = ""
    code: str = "config_missing"


@dataclass(slots=True)
class ScheduleInvalidError(IngestionError):
    """Cron expression cannot be parsed; scheduled runs are disabled."""

    expression: str = ""
    code: str = "schedule_invalid"


@dataclass(slots=True)
class UpstreamTransportError(IngestionError):
    """Network failure or HTTP error status from the news provider."""

    status: int | None = None
    body: str | None = None
    code: str = "upstream_transport"


@dataclass(slots=True)
class UpstreamDataError(IngestionError):
    """Provider answered, but its payload reports a non-success status."""

    payload: dict[str, Any] = field(default_factory=dict)
    code: str = "upstream_data"


@dataclass(slots=True)
class AlreadyRunningError(IngestionError):
    """Another ingestion run holds the run guard."""

    message: str = "Ingestion already in progress"
    code: str = "already_running"


@dataclass(slots=True)
class StoreWriteError(IngestionError):
    """Article store is unusable; fatal to the current run."""

    article_id: str | None = None
    cause: str | None = None
    code: str = "store_write"
