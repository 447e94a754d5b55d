from __future__ import annotations

import math
from collections.abc import Sequence

import allure
import pytest
from conftest import raw_record

from news_aggregator.config import IngestionSettings, NewsDataSettings, Settings
from news_aggregator.ingestion.errors import StoreWriteError, UpstreamTransportError
from news_aggregator.ingestion.models import Article, NewsPage, UpsertCounts
from news_aggregator.ingestion.pipeline import (
    BATCH_DELAY_SECONDS,
    MAX_PAGES_PER_BATCH,
    PAGE_DELAY_SECONDS,
    IngestionOrchestrator,
    chunk_categories,
)

pytestmark = [
    allure.epic("Daily Ingestion"),
    allure.feature("Batch & Paginate"),
]


class _ScriptedSource:
    """Serves pages keyed by (categories, page token)."""

    name = "scripted"

    def __init__(self, pages: dict[tuple[tuple[str, ...], str | None], NewsPage]) -> None:
        self.pages = pages
        self.calls: list[tuple[tuple[str, ...], str, str | None]] = []

    def fetch_page(
        self,
        categories: Sequence[str],
        language: str,
        page_token: str | None = None,
    ) -> NewsPage:
        key = (tuple(categories), page_token)
        self.calls.append((key[0], language, page_token))
        return self.pages.get(key, _page([]))


class _RaisingSource:
    name = "raising"

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    def fetch_page(self, categories, language, page_token=None) -> NewsPage:
        self.calls += 1
        raise self.error


class _MemoryStore:
    def __init__(self) -> None:
        self.articles: dict[str, Article] = {}

    def upsert_batch(self, articles: Sequence[Article]) -> UpsertCounts:
        counts = UpsertCounts()
        for article in articles:
            if article.article_id in self.articles:
                counts.modified += 1
            else:
                counts.upserted += 1
            self.articles[article.article_id] = article
        return counts


def _page(ids: list[str], next_page: str | None = None) -> NewsPage:
    payload = {"status": "success", "results": [raw_record(item) for item in ids]}
    return NewsPage(
        status="success",
        results=payload["results"],
        next_page=next_page,
        payload=payload,
    )


def _error_page() -> NewsPage:
    payload = {"status": "error", "results": {"message": "bad category", "code": "Unsupported"}}
    return NewsPage(status="error", results=[], next_page=None, payload=payload)


def _settings(categories: tuple[str, ...], api_key: str | None = "key") -> Settings:
    return Settings(
        newsdata=NewsDataSettings(api_key=api_key),
        ingestion=IngestionSettings(categories=categories, language="en"),
    )


def _orchestrator(source, categories: tuple[str, ...], store=None, sleeps=None, api_key="key"):
    return IngestionOrchestrator(
        settings=_settings(categories, api_key=api_key),
        repository=store or _MemoryStore(),
        source=source,
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


@pytest.mark.parametrize("count", [0, 1, 4, 5, 6, 10, 11, 23])
def test_chunk_categories_preserves_order_in_batches_of_five(count: int) -> None:
    categories = [f"c{i}" for i in range(count)]

    batches = chunk_categories(categories)

    assert len(batches) == math.ceil(count / 5)
    assert all(1 <= len(batch) <= 5 for batch in batches)
    assert [item for batch in batches for item in batch] == categories


def test_chunk_categories_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError, match="size must be > 0"):
        chunk_categories(["a"], size=0)


def test_six_categories_are_requested_as_five_then_one() -> None:
    categories = ("top", "business", "science", "sports", "health", "world")
    first, second = categories[:5], categories[5:]
    source = _ScriptedSource({(first, None): _page(["a1"]), (second, None): _page(["a2"])})

    totals = _orchestrator(source, categories).run()

    assert [call[0] for call in source.calls] == [first, second]
    assert all(call[1] == "en" for call in source.calls)
    assert totals is not None
    assert (totals.pages, totals.upserted, totals.modified) == (2, 2, 0)


def test_pagination_stops_after_page_cap() -> None:
    batch = ("business",)
    source = _ScriptedSource(
        {
            (batch, None): _page(["a1"], next_page="t2"),
            (batch, "t2"): _page(["a2"], next_page="t3"),
            (batch, "t3"): _page(["a3"], next_page="t4"),
            (batch, "t4"): _page(["a4"], next_page="t5"),
        },
    )
    sleeps: list[float] = []

    totals = _orchestrator(source, batch, sleeps=sleeps).run()

    assert [call[2] for call in source.calls] == [None, "t2", "t3"]
    assert totals is not None
    assert totals.pages == MAX_PAGES_PER_BATCH
    assert totals.upserted == 3
    assert sleeps == [PAGE_DELAY_SECONDS, PAGE_DELAY_SECONDS]


def test_missing_next_page_ends_batch() -> None:
    batch = ("science",)
    source = _ScriptedSource({(batch, None): _page(["a1", "a2"])})

    totals = _orchestrator(source, batch).run()

    assert len(source.calls) == 1
    assert totals is not None
    assert (totals.pages, totals.upserted) == (1, 2)


def test_empty_success_page_counts_and_only_batch_delay_applies() -> None:
    categories = tuple(f"c{i}" for i in range(6))
    sleeps: list[float] = []

    totals = _orchestrator(_ScriptedSource({}), categories, sleeps=sleeps).run()

    assert totals is not None
    assert (totals.pages, totals.upserted, totals.modified) == (2, 0, 0)
    assert sleeps == [BATCH_DELAY_SECONDS]


def test_reingesting_same_articles_reports_modified() -> None:
    batch = ("business",)
    store = _MemoryStore()
    source = _ScriptedSource({(batch, None): _page(["a1", "a2"])})

    first = _orchestrator(source, batch, store=store).run()
    second = _orchestrator(source, batch, store=store).run()

    assert first is not None and second is not None
    assert (first.upserted, first.modified) == (2, 0)
    assert (second.upserted, second.modified) == (0, 2)
    assert len(store.articles) == 2


def test_error_status_abandons_batch_and_continues() -> None:
    categories = tuple(f"c{i}" for i in range(6))
    first, second = categories[:5], categories[5:]
    source = _ScriptedSource({(first, None): _error_page(), (second, None): _page(["a1"])})
    sleeps: list[float] = []

    totals = _orchestrator(source, categories, sleeps=sleeps).run()

    assert totals is not None
    assert (totals.pages, totals.upserted) == (1, 1)
    assert sleeps == [BATCH_DELAY_SECONDS]


def test_error_status_mid_pagination_keeps_earlier_pages() -> None:
    batch = ("business",)
    source = _ScriptedSource(
        {
            (batch, None): _page(["a1"], next_page="t2"),
            (batch, "t2"): _error_page(),
        },
    )

    totals = _orchestrator(source, batch).run()

    assert totals is not None
    assert (totals.pages, totals.upserted) == (1, 1)


def test_malformed_records_are_skipped() -> None:
    batch = ("business",)
    page = _page(["a1"])
    page.results.append({"title": "no id"})
    store = _MemoryStore()

    totals = _orchestrator(_ScriptedSource({(batch, None): page}), batch, store=store).run()

    assert totals is not None
    assert totals.upserted == 1
    assert list(store.articles) == ["a1"]


def test_transport_error_aborts_run() -> None:
    error = UpstreamTransportError(message="NewsData HTTP error: 500", status=500, body="boom")
    source = _RaisingSource(error)

    with pytest.raises(UpstreamTransportError):
        _orchestrator(source, ("a", "b", "c", "d", "e", "f")).run()

    assert source.calls == 1


def test_store_failure_aborts_run() -> None:
    class _BrokenStore:
        def upsert_batch(self, articles):
            raise StoreWriteError(message="Article store unavailable", article_id="a1")

    batch = ("business",)
    source = _ScriptedSource({(batch, None): _page(["a1"])})

    with pytest.raises(StoreWriteError):
        _orchestrator(source, batch, store=_BrokenStore()).run()


def test_missing_api_key_skips_without_fetching() -> None:
    source = _ScriptedSource({})

    result = _orchestrator(source, ("business",), api_key=None).run()

    assert result is None
    assert source.calls == []
