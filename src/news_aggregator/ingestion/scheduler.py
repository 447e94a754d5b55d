"""Cron-driven ingestion scheduler."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from croniter import croniter

from news_aggregator.ingestion.errors import AlreadyRunningError, ScheduleInvalidError
from news_aggregator.ingestion.models import IngestionTotals
from news_aggregator.ingestion.run_guard import RunGuard

logger = logging.getLogger(__name__)

IngestionJob = Callable[[], IngestionTotals | None]

# Six-field expressions carry seconds in the first field.
SECONDS_FIRST = True


def validate_cron(expression: str) -> None:
    """Raise ``ScheduleInvalidError`` unless ``expression`` is a usable cron pattern."""

    if not expression or not croniter.is_valid(expression, second_at_beginning=SECONDS_FIRST):
        raise ScheduleInvalidError(
            message=f'Invalid cron schedule: "{expression}"',
            expression=expression,
        )


def upcoming_fire_times(
    expression: str,
    *,
    count: int,
    after: datetime | None = None,
) -> list[datetime]:
    """Next ``count`` firing times of a valid cron expression."""

    validate_cron(expression)
    schedule = croniter(
        expression,
        after or datetime.now().astimezone(),
        second_at_beginning=SECONDS_FIRST,
    )
    return [schedule.get_next(datetime) for _ in range(count)]


class IngestionScheduler:
    """Fires the ingestion job on a cron cadence behind a shared run guard.

    Each firing runs on its own thread, so a tick that lands while a run is in
    progress is rejected by the guard and dropped rather than queued.
    """

    def __init__(
        self,
        *,
        job: IngestionJob,
        guard: RunGuard,
        cron_schedule: str,
        run_on_start: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.job = job
        self.guard = guard
        self.cron_schedule = cron_schedule
        self.run_on_start = run_on_start
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.startup_thread: threading.Thread | None = None

    @property
    def is_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the timer thread; return ``False`` when scheduling is disabled."""

        try:
            validate_cron(self.cron_schedule)
        except ScheduleInvalidError as error:
            logger.error("%s. Scheduled ingestion disabled.", error)
            return False

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="ingestion-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info('Cron job scheduled with pattern: "%s"', self.cron_schedule)

        if self.run_on_start:
            logger.info("Running initial ingestion on startup...")
            self.startup_thread = self._spawn(name="ingestion-startup", label="Initial ingestion")
        return True

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop future firings; an in-flight run is left to finish."""

        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("Cron job stopped.")

    def next_fire_time(self, after: datetime | None = None) -> datetime:
        schedule = croniter(
            self.cron_schedule,
            after or self._clock(),
            second_at_beginning=SECONDS_FIRST,
        )
        return schedule.get_next(datetime)

    def tick(self, *, label: str = "Cron job") -> IngestionTotals | None:
        """Run one guarded ingestion; skipped when another run holds the guard."""

        try:
            self.guard.try_acquire()
        except AlreadyRunningError:
            logger.warning("Ingestion already in progress. Skipping this run.")
            return None

        logger.info("%s triggered at %s", label, self._clock().isoformat())
        try:
            return self.job()
        except Exception as exc:
            logger.error("%s failed: %s", label, exc)
            return None
        finally:
            self.guard.release()

    def _loop(self) -> None:
        after = self._clock()
        while not self._stop_event.is_set():
            fire_at = self.next_fire_time(after)
            wait_seconds = (fire_at - self._clock()).total_seconds()
            if self._stop_event.wait(timeout=max(0.0, wait_seconds)):
                return
            self._spawn(name="ingestion-cron", label="Cron job")
            # Never fire the same slot twice, even if the wait returned early.
            after = max(fire_at, self._clock())

    def _spawn(self, *, name: str, label: str) -> threading.Thread:
        # Detached: failures are logged by ``tick`` and never reach the scheduler.
        thread = threading.Thread(
            target=self.tick,
            kwargs={"label": label},
            name=name,
            daemon=True,
        )
        thread.start()
        return thread
