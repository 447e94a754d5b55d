"""Domain models for ingestion and article storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

SUCCESS_STATUS = "success"


@dataclass(slots=True)
class Article:
    """Canonical article record, keyed by the provider's ``article_id``."""

    article_id: str
    title: str
    link: str | None = None
    description: str | None = None
    content: str | None = None
    keywords: list[str] = field(default_factory=list)
    creator: list[str] = field(default_factory=list)
    video_url: str | None = None
    image_url: str | None = None
    pub_date: datetime | None = None
    pub_date_tz: str | None = None
    source_id: str | None = None
    source_name: str | None = None
    source_url: str | None = None
    source_icon: str | None = None
    source_priority: int | None = None
    country: list[str] = field(default_factory=list)
    category: list[str] = field(default_factory=list)
    language: str | None = None
    ai_tag: list[str] = field(default_factory=list)
    sentiment: str | None = None
    sentiment_stats: Any = None
    ai_region: list[str] = field(default_factory=list)
    ai_org: list[str] = field(default_factory=list)
    duplicate: bool = False
    datatype: str | None = None


@dataclass(slots=True)
class NewsPage:
    """One page of upstream results with its continuation token."""

    status: str
    results: list[dict[str, Any]]
    next_page: str | None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS_STATUS


@dataclass(slots=True)
class UpsertCounts:
    """Result of one bulk upsert."""

    upserted: int = 0
    modified: int = 0
    failed: int = 0


@dataclass(slots=True)
class IngestionTotals:
    """Aggregate counters returned by a completed ingestion run."""

    pages: int = 0
    upserted: int = 0
    modified: int = 0


@dataclass(slots=True)
class FilterOptions:
    """Distinct values available for article filters."""

    languages: list[str]
    countries: list[str]
    categories: list[str]
    datatypes: list[str]
    authors: list[str]


@dataclass(slots=True)
class CountBucket:
    """Article count for one grouping key."""

    key: str | None
    count: int


@dataclass(slots=True)
class ArticleStats:
    """Dashboard statistics over the stored articles."""

    total: int
    last_24h: int
    by_category: list[CountBucket] = field(default_factory=list)
    by_language: list[CountBucket] = field(default_factory=list)
