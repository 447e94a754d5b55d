"""Single-flight guard shared by scheduled and manual ingestion triggers."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from news_aggregator.ingestion.errors import AlreadyRunningError


class RunGuard:
    """Boolean mutex: a second acquisition is rejected, never queued."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def try_acquire(self) -> None:
        with self._lock:
            if self._running:
                raise AlreadyRunningError()
            self._running = True

    def release(self) -> None:
        with self._lock:
            self._running = False

    @contextmanager
    def hold(self) -> Iterator[None]:
        self.try_acquire()
        try:
            yield
        finally:
            self.release()
