"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

_ENV_VARS = (
    "NEWSDATA_API_KEY",
    "NEWSDATA_BASE_URL",
    "NEWSDATA_TIMEOUT_SECONDS",
    "NEWS_FETCH_CATEGORIES",
    "NEWS_FETCH_LANGUAGE",
    "CRON_SCHEDULE",
    "FETCH_ON_START",
    "APP_ENV",
    "NEWS_AGGREGATOR_DB_PATH",
    "NEWS_AGGREGATOR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path: Path) -> None:
    """Keep tests independent of the developer's shell and out of ./logs."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NEWS_AGGREGATOR_LOG_DIR", str(tmp_path / "logs"))


def raw_record(article_id: str, **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "article_id": article_id,
        "title": f"Title {article_id}",
        "link": f"https://example.com/{article_id}",
        "keywords": ["markets"],
        "creator": ["Jane Doe"],
        "description": "Short description",
        "content": "Full content",
        "pubDate": "2026-02-20 17:45:00",
        "pubDateTZ": "UTC",
        "image_url": None,
        "video_url": None,
        "source_id": "example",
        "source_name": "Example News",
        "source_url": "https://example.com",
        "source_icon": "https://example.com/icon.png",
        "source_priority": 1200,
        "country": ["united states of america"],
        "category": ["business"],
        "language": "english",
        "ai_tag": ["finance"],
        "sentiment": "neutral",
        "sentiment_stats": {"positive": 0.1, "neutral": 0.8, "negative": 0.1},
        "ai_region": [],
        "ai_org": [],
        "duplicate": False,
        "datatype": "news",
    }
    record.update(overrides)
    return record
