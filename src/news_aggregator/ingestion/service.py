"""Composition root wiring the run guard, orchestrator, and scheduler together."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from news_aggregator.config import Settings
from news_aggregator.ingestion.errors import AlreadyRunningError
from news_aggregator.ingestion.models import IngestionTotals
from news_aggregator.ingestion.pipeline import ArticleStore, IngestionOrchestrator
from news_aggregator.ingestion.run_guard import RunGuard
from news_aggregator.ingestion.scheduler import IngestionScheduler
from news_aggregator.ingestion.sources.base import NewsSource
from news_aggregator.ingestion.sources.newsdata import NewsDataSource

logger = logging.getLogger(__name__)


class IngestionService:
    """Owns the single run guard shared by scheduled and manual triggers."""

    def __init__(
        self,
        *,
        settings: Settings,
        repository: ArticleStore,
        source: NewsSource | None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.source = source
        self.guard = RunGuard()
        self.orchestrator = IngestionOrchestrator(
            settings=settings,
            repository=repository,
            source=source,
            sleep=sleep,
        )
        self.scheduler = IngestionScheduler(
            job=self.orchestrator.run,
            guard=self.guard,
            cron_schedule=settings.scheduler.cron_schedule,
            run_on_start=settings.scheduler.run_on_start,
        )

    @classmethod
    def from_settings(cls, settings: Settings, repository: ArticleStore) -> IngestionService:
        source = None
        if settings.newsdata.api_key:
            source = NewsDataSource(
                api_key=settings.newsdata.api_key,
                base_url=settings.newsdata.base_url,
                timeout_seconds=settings.newsdata.request_timeout_seconds,
            )
        return cls(settings=settings, repository=repository, source=source)

    def trigger_manual_ingestion(self) -> IngestionTotals | None:
        """Run ingestion now; raises ``AlreadyRunningError`` if a run is active."""

        with self.guard.hold():
            logger.info("Manual ingestion triggered")
            return self.orchestrator.run()

    def request_manual_ingestion(self) -> threading.Thread:
        """Run a manual ingestion in the background of a serving process.

        Shares the scheduler's guard, so a request that arrives during a run is
        logged and dropped.
        """

        thread = threading.Thread(
            target=self._run_requested_ingestion,
            name="ingestion-manual",
            daemon=True,
        )
        thread.start()
        return thread

    def _run_requested_ingestion(self) -> None:
        try:
            totals = self.trigger_manual_ingestion()
        except AlreadyRunningError as error:
            logger.warning("Manual ingestion rejected: %s", error)
            return
        except Exception as exc:
            logger.error("Manual ingestion failed: %s", exc)
            return
        if totals is not None:
            logger.info(
                "Manual ingestion complete: pages=%d new=%d updated=%d",
                totals.pages,
                totals.upserted,
                totals.modified,
            )

    def start_scheduler(self) -> bool:
        return self.scheduler.start()

    def stop_scheduler(self) -> None:
        self.scheduler.stop()

    def close(self) -> None:
        self.scheduler.stop()
        if isinstance(self.source, NewsDataSource):
            self.source.close()
