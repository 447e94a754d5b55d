"""Common upstream source contracts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from news_aggregator.ingestion.models import NewsPage


class NewsSource(Protocol):
    """Interface for paged upstream news providers."""

    name: str

    def fetch_page(
        self,
        categories: Sequence[str],
        language: str,
        page_token: str | None = None,
    ) -> NewsPage:
        """Fetch one page for a category batch, continuing from ``page_token``.

        Transport failures raise ``UpstreamTransportError``. A payload that reports
        a non-success status is returned unchanged for the caller to interpret.
        """
        raise NotImplementedError
