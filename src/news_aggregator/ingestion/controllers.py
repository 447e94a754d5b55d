"""Controllers for ingestion and article CLI commands."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from news_aggregator.config import Settings
from news_aggregator.ingestion.errors import ScheduleInvalidError
from news_aggregator.ingestion.models import Article, CountBucket, IngestionTotals
from news_aggregator.ingestion.repository import ArticleRepository
from news_aggregator.ingestion.scheduler import upcoming_fire_times, validate_cron
from news_aggregator.ingestion.service import IngestionService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestRunCommand:
    """CLI inputs for one manual ingestion run."""

    db_path: Path | None


@dataclass(slots=True)
class IngestServeCommand:
    """CLI inputs for the long-running scheduler."""

    db_path: Path | None
    max_runtime_seconds: float | None = None


@dataclass(slots=True)
class CheckScheduleCommand:
    """CLI inputs for cron expression inspection."""

    cron_schedule: str | None
    count: int


@dataclass(slots=True)
class ArticleQueryCommand:
    """CLI inputs for read-only article commands."""

    db_path: Path | None
    article_id: str | None = None


class IngestionCliController:
    """Coordinates ingestion command execution."""

    def run_once(self, command: IngestRunCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate()
        with _repository(settings) as repository:
            service = IngestionService.from_settings(settings, repository)
            try:
                totals = service.trigger_manual_ingestion()
            finally:
                service.close()
        if totals is None:
            return ["Ingestion skipped: NEWSDATA_API_KEY is not set."]
        return [_format_totals(totals)]

    def serve(self, command: IngestServeCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate()
        stop_event = threading.Event()
        with _repository(settings) as repository:
            service = IngestionService.from_settings(settings, repository)
            try:
                if not service.start_scheduler():
                    cron = settings.scheduler.cron_schedule
                    return [f'Scheduled ingestion disabled: invalid cron "{cron}"']
                trigger = service.request_manual_ingestion
                with _signal_handlers(stop_event, on_manual_trigger=trigger):
                    _wait_for_stop(stop_event, command.max_runtime_seconds)
            finally:
                service.close()
        return ["Scheduler stopped."]

    def check_schedule(self, command: CheckScheduleCommand) -> list[str]:
        expression = command.cron_schedule or Settings.from_env().scheduler.cron_schedule
        try:
            validate_cron(expression)
        except ScheduleInvalidError as error:
            return [f"{error}. Scheduled ingestion would be disabled."]

        lines = [f'Cron schedule "{expression}" is valid. Next runs:']
        lines.extend(
            f"  {fire_at.isoformat()}"
            for fire_at in upcoming_fire_times(expression, count=command.count)
        )
        return lines


class ArticleCliController:
    """Read-only views over stored articles."""

    def filters(self, command: ArticleQueryCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            options = repository.filter_options()
        return [
            f"Languages: {_join(options.languages)}",
            f"Countries: {_join(options.countries)}",
            f"Categories: {_join(options.categories)}",
            f"Datatypes: {_join(options.datatypes)}",
            f"Authors: {_join(options.authors)}",
        ]

    def stats(self, command: ArticleQueryCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            stats = repository.stats()
        lines = [
            f"Articles: total={stats.total} last_24h={stats.last_24h}",
            "Top categories:",
        ]
        lines.extend(_format_bucket(bucket) for bucket in stats.by_category)
        lines.append("Top languages:")
        lines.extend(_format_bucket(bucket) for bucket in stats.by_language)
        return lines

    def show(self, command: ArticleQueryCommand) -> list[str] | None:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            article = repository.get_article(command.article_id or "")
        if article is None:
            return None
        return _format_article(article)


def init_database(db_path: Path | None) -> list[str]:
    settings = Settings.from_env(db_path=db_path)
    with _repository(settings) as repository:
        total = repository.count_articles()
        revision = repository.schema_revision()
    return [f"Database ready: {settings.db_path} (revision={revision} articles={total})"]


@contextmanager
def _repository(settings: Settings) -> Iterator[ArticleRepository]:
    repository = ArticleRepository(settings.db_path)
    try:
        repository.init_schema()
        yield repository
    finally:
        repository.close()


@contextmanager
def _signal_handlers(
    stop_event: threading.Event,
    *,
    on_manual_trigger: Callable[[], object] | None = None,
) -> Iterator[None]:
    """SIGINT/SIGTERM stop the scheduler; SIGUSR1 requests a manual ingestion."""

    def _stop(signum: int, _: object | None) -> None:
        logger.info("%s received. Stopping scheduler...", signal.Signals(signum).name)
        stop_event.set()

    def _trigger(signum: int, _: object | None) -> None:
        logger.info("%s received. Requesting manual ingestion...", signal.Signals(signum).name)
        if on_manual_trigger is not None:
            on_manual_trigger()

    handlers = {signal.SIGINT: _stop, signal.SIGTERM: _stop}
    manual_signal = getattr(signal, "SIGUSR1", None)
    if on_manual_trigger is not None and manual_signal is not None:
        handlers[manual_signal] = _trigger

    originals: dict[int, object] = {}
    try:
        for signum, handler in handlers.items():
            originals[signum] = signal.signal(signum, handler)
    except ValueError:
        logger.debug("Signal handlers can only be installed in the main thread")
    try:
        yield
    finally:
        for signum, original in originals.items():
            if original is not None:
                signal.signal(signum, original)


def _wait_for_stop(stop_event: threading.Event, max_runtime_seconds: float | None) -> None:
    deadline = None if max_runtime_seconds is None else time.monotonic() + max_runtime_seconds
    while not stop_event.is_set():
        if deadline is not None and time.monotonic() >= deadline:
            return
        stop_event.wait(timeout=0.5)


def _format_totals(totals: IngestionTotals) -> str:
    return (
        "Ingestion complete: "
        f"pages={totals.pages} new={totals.upserted} updated={totals.modified}"
    )


def _format_bucket(bucket: CountBucket) -> str:
    return f"  {bucket.key or '-'}: {bucket.count}"


def _format_article(article: Article) -> list[str]:
    published = article.pub_date.isoformat() if article.pub_date else "-"
    return [
        f"{article.article_id}: {article.title}",
        f"  link={article.link or '-'}",
        f"  published={published} tz={article.pub_date_tz or '-'}",
        f"  source={article.source_name or article.source_id or '-'} "
        f"language={article.language or '-'} datatype={article.datatype or '-'}",
        f"  categories={_join(article.category)} countries={_join(article.country)}",
        f"  creators={_join(article.creator)} duplicate={'yes' if article.duplicate else 'no'}",
    ]


def _join(values: list[str]) -> str:
    return ", ".join(values) if values else "-"
