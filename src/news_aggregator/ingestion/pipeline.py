"""End-to-end ingestion run: category batches, pagination, and upserts."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from news_aggregator.config import Settings
from news_aggregator.ingestion.errors import (
    ConfigMissingError,
    UpstreamDataError,
    UpstreamTransportError,
)
from news_aggregator.ingestion.models import Article, IngestionTotals, UpsertCounts
from news_aggregator.ingestion.services.normalize_service import ArticleNormalizationService
from news_aggregator.ingestion.sources.base import NewsSource

logger = logging.getLogger(__name__)

# Upstream accepts at most five categories per request.
CATEGORY_BATCH_SIZE = 5
# Pages beyond the cap are left for the next run.
MAX_PAGES_PER_BATCH = 3
PAGE_DELAY_SECONDS = 1.0
BATCH_DELAY_SECONDS = 1.5


class ArticleStore(Protocol):
    """Persistence contract consumed by the orchestrator."""

    def upsert_batch(self, articles: Sequence[Article]) -> UpsertCounts:
        raise NotImplementedError


def chunk_categories(
    categories: Sequence[str],
    size: int = CATEGORY_BATCH_SIZE,
) -> list[tuple[str, ...]]:
    """Split categories into consecutive batches of at most ``size`` preserving order."""

    if size <= 0:
        raise ValueError("size must be > 0")
    return [tuple(categories[i : i + size]) for i in range(0, len(categories), size)]


class IngestionOrchestrator:
    """Drives one ingestion run over every configured category batch."""

    def __init__(
        self,
        *,
        settings: Settings,
        repository: ArticleStore,
        source: NewsSource | None,
        normalizer: ArticleNormalizationService | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.repository = repository
        self.source = source
        self.normalizer = normalizer or ArticleNormalizationService()
        self._sleep = sleep

    def run(self) -> IngestionTotals | None:
        """Run ingestion to completion.

        Returns ``None`` when no API key is configured. Transport and store
        failures are logged and re-raised; partial totals are discarded.
        """

        try:
            source = self._require_source()
        except ConfigMissingError as error:
            logger.error("%s Skipping ingestion.", error)
            return None

        language = self.settings.ingestion.language
        categories = self.settings.ingestion.categories
        batches = chunk_categories(categories)
        totals = IngestionTotals()
        logger.info(
            "Starting news ingestion: %d categories in %d batch(es)",
            len(categories),
            len(batches),
        )

        try:
            for index, batch in enumerate(batches):
                try:
                    self._drain_batch(source=source, batch=batch, language=language, totals=totals)
                except UpstreamDataError as error:
                    logger.error(
                        "NewsData API error for batch [%s]: %s",
                        ",".join(batch),
                        _dump_payload(error.payload),
                    )
                if index < len(batches) - 1:
                    self._sleep(BATCH_DELAY_SECONDS)
        except UpstreamTransportError as error:
            if error.status is not None:
                logger.error("NewsData API HTTP error: %s - %s", error.status, error.body)
            else:
                logger.error("News ingestion error: %s", error)
            raise
        except Exception:
            logger.exception("News ingestion error")
            raise

        logger.info(
            "Ingestion complete. Total pages: %d, New: %d, Updated: %d",
            totals.pages,
            totals.upserted,
            totals.modified,
        )
        return totals

    def _require_source(self) -> NewsSource:
        if not self.settings.newsdata.api_key or self.source is None:
            raise ConfigMissingError(
                message="NEWSDATA_API_KEY is not set.",
                setting="NEWSDATA_API_KEY",
            )
        return self.source

    def _drain_batch(
        self,
        *,
        source: NewsSource,
        batch: tuple[str, ...],
        language: str,
        totals: IngestionTotals,
    ) -> None:
        logger.debug("Fetching batch: [%s]", ",".join(batch))
        page_token: str | None = None
        page_count = 0

        while True:
            page = source.fetch_page(batch, language, page_token)
            if not page.is_success:
                raise UpstreamDataError(
                    message=f"NewsData reported status {page.status!r}",
                    payload=page.payload,
                )

            logger.debug("  Fetched %d articles (page %d)", len(page.results), page_count + 1)
            counts = self.repository.upsert_batch(self._normalize_records(page.results))
            if counts.failed:
                logger.warning("%d article(s) failed to upsert on this page", counts.failed)
            totals.upserted += counts.upserted
            totals.modified += counts.modified
            totals.pages += 1

            page_token = page.next_page
            page_count += 1
            if not page_token or page_count >= MAX_PAGES_PER_BATCH:
                return
            self._sleep(PAGE_DELAY_SECONDS)

    def _normalize_records(self, records: list[dict[str, Any]]) -> list[Article]:
        articles: list[Article] = []
        for record in records:
            try:
                articles.append(self.normalizer.normalize(record))
            except ValueError as error:
                logger.warning("Skipping malformed NewsData record: %s", error)
        return articles


def _dump_payload(payload: dict[str, Any]) -> str:
    return json.dumps(payload, default=str, ensure_ascii=False)
