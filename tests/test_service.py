from __future__ import annotations

import threading
from collections.abc import Sequence

import allure
import pytest
from conftest import raw_record

from news_aggregator.config import (
    IngestionSettings,
    NewsDataSettings,
    SchedulerSettings,
    Settings,
)
from news_aggregator.ingestion.errors import AlreadyRunningError
from news_aggregator.ingestion.models import Article, NewsPage, UpsertCounts
from news_aggregator.ingestion.service import IngestionService
from news_aggregator.ingestion.sources.newsdata import NewsDataSource

pytestmark = [
    allure.epic("Daily Ingestion"),
    allure.feature("Triggers"),
]


class _OnePageSource:
    name = "one-page"

    def __init__(self) -> None:
        self.calls = 0

    def fetch_page(self, categories, language, page_token=None) -> NewsPage:
        self.calls += 1
        results = [raw_record("a1"), raw_record("a2")]
        return NewsPage(status="success", results=results, next_page=None)


class _CountingStore:
    def __init__(self) -> None:
        self.seen: list[str] = []

    def upsert_batch(self, articles: Sequence[Article]) -> UpsertCounts:
        self.seen.extend(article.article_id for article in articles)
        return UpsertCounts(upserted=len(articles))


def _settings(api_key: str | None = "key") -> Settings:
    return Settings(
        newsdata=NewsDataSettings(api_key=api_key),
        ingestion=IngestionSettings(categories=("business",)),
        scheduler=SchedulerSettings(cron_schedule="0 * * * *"),
    )


def test_manual_trigger_returns_totals_and_releases_guard() -> None:
    store = _CountingStore()
    service = IngestionService(settings=_settings(), repository=store, source=_OnePageSource())

    totals = service.trigger_manual_ingestion()

    assert totals is not None
    assert (totals.pages, totals.upserted, totals.modified) == (1, 2, 0)
    assert store.seen == ["a1", "a2"]
    assert not service.guard.is_running


def test_manual_trigger_rejected_while_another_run_holds_guard() -> None:
    source = _OnePageSource()
    service = IngestionService(settings=_settings(), repository=_CountingStore(), source=source)
    service.guard.try_acquire()

    with pytest.raises(AlreadyRunningError):
        service.trigger_manual_ingestion()

    assert source.calls == 0
    assert service.guard.is_running


def test_scheduled_tick_is_skipped_during_manual_run() -> None:
    service = IngestionService(
        settings=_settings(),
        repository=_CountingStore(),
        source=_OnePageSource(),
    )

    with service.guard.hold():
        assert service.scheduler.tick() is None


def test_manual_trigger_without_key_returns_none() -> None:
    service = IngestionService(
        settings=_settings(api_key=None),
        repository=_CountingStore(),
        source=None,
    )

    assert service.trigger_manual_ingestion() is None
    assert not service.guard.is_running


def test_from_settings_builds_newsdata_source_only_with_key() -> None:
    with_key = IngestionService.from_settings(_settings(), _CountingStore())
    without_key = IngestionService.from_settings(_settings(api_key=None), _CountingStore())

    assert isinstance(with_key.source, NewsDataSource)
    assert without_key.source is None
    with_key.close()
    without_key.close()


class _BlockingSource(_OnePageSource):
    """Holds the first fetch open until released."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_page(self, categories, language, page_token=None) -> NewsPage:
        self.entered.set()
        self.release.wait(timeout=5)
        return super().fetch_page(categories, language, page_token)


def test_requested_manual_run_is_rejected_during_scheduled_run(caplog) -> None:
    source = _BlockingSource()
    service = IngestionService(settings=_settings(), repository=_CountingStore(), source=source)
    scheduled = threading.Thread(target=service.scheduler.tick)
    scheduled.start()
    try:
        assert source.entered.wait(timeout=5)

        with caplog.at_level("WARNING"):
            service.request_manual_ingestion().join(timeout=5)
    finally:
        source.release.set()
        scheduled.join(timeout=5)

    assert source.calls == 1
    assert "Manual ingestion rejected: Ingestion already in progress" in caplog.text
    assert not service.guard.is_running


def test_requested_manual_run_ingests_when_idle(caplog) -> None:
    store = _CountingStore()
    service = IngestionService(settings=_settings(), repository=store, source=_OnePageSource())

    with caplog.at_level("INFO"):
        service.request_manual_ingestion().join(timeout=5)

    assert store.seen == ["a1", "a2"]
    assert "Manual ingestion complete: pages=1 new=2 updated=0" in caplog.text
