"""Normalization service for raw NewsData records."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from news_aggregator.ingestion.models import Article

logger = logging.getLogger(__name__)

LIST_FIELDS = ("keywords", "creator", "country", "category", "ai_tag", "ai_region", "ai_org")
# Free text is trimmed; identifiers and provider codes are kept verbatim.
TRIMMED_FIELDS = ("link", "description", "content")
STRING_FIELDS = (
    "video_url",
    "image_url",
    "source_id",
    "source_name",
    "source_url",
    "source_icon",
    "language",
    "sentiment",
    "datatype",
)


class ArticleNormalizationService:
    """Converts provider payloads into canonical article records.

    Every known field is always populated so that a re-ingested article fully
    replaces the stored one: absent lists become ``[]`` and absent scalars
    ``None``.
    """

    def normalize(self, raw: dict[str, Any]) -> Article:
        article_id = _nullable_string(raw.get("article_id"), strip=False)
        if article_id is None or not article_id.strip():
            raise ValueError("Record has no article_id")
        title = _nullable_string(raw.get("title"), strip=True)
        if title is None:
            raise ValueError(f"Record {article_id} has no title")

        strings = {name: _nullable_string(raw.get(name), strip=True) for name in TRIMMED_FIELDS}
        strings.update(
            (name, _nullable_string(raw.get(name), strip=False)) for name in STRING_FIELDS
        )
        lists = {name: _string_list(raw.get(name)) for name in LIST_FIELDS}
        return Article(
            article_id=article_id,
            title=title,
            pub_date=parse_pub_date(raw.get("pubDate")),
            pub_date_tz=_nullable_string(raw.get("pubDateTZ"), strip=False),
            source_priority=_nullable_int(raw.get("source_priority")),
            sentiment_stats=_nullable_json(raw.get("sentiment_stats")),
            duplicate=_flag(raw.get("duplicate")),
            **strings,
            **lists,
        )


def parse_pub_date(value: object) -> datetime | None:
    """Parse provider ``"YYYY-MM-DD HH:mm:ss"`` UTC timestamps.

    Returns ``None`` instead of raising when the value cannot be parsed.
    """

    if not value:
        return None
    iso = str(value).strip().replace(" ", "T", 1) + "Z"
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        logger.debug("Unparseable pubDate %r; storing article without it", value)
        return None
    return parsed.astimezone(UTC)


def _nullable_string(value: object, *, strip: bool) -> str | None:
    if value is None:
        return None
    text = str(value).strip() if strip else str(value)
    return text or None


def _flag(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return value is True or (isinstance(value, int) and value == 1)


def _nullable_json(value: object) -> Any:
    if value is None or value == "" or value == "null":
        return None
    return value


def _nullable_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
    return number or None


def _string_list(value: object) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list | tuple):
        return []
    return [str(item) for item in value if item is not None and str(item) != ""]
