"""NewsData.io ``/news`` endpoint adapter."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from news_aggregator import __version__
from news_aggregator.config import DEFAULT_BASE_URL
from news_aggregator.ingestion.errors import UpstreamTransportError
from news_aggregator.ingestion.models import NewsPage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = f"news-aggregator/{__version__}"
MAX_ERROR_BODY_CHARS = 2_000


class NewsDataSource:
    """Single-request paged client for the NewsData.io latest-news API.

    No retries: a failed request surfaces immediately so the orchestrator can end
    the run. Query parameters follow the provider's documented names.
    """

    name = "newsdata"

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"},
            transport=transport,
            follow_redirects=True,
        )

    def fetch_page(
        self,
        categories: Sequence[str],
        language: str,
        page_token: str | None = None,
    ) -> NewsPage:
        params = {
            "apikey": self._api_key,
            "language": language,
            "category": ",".join(categories),
        }
        if page_token:
            params["page"] = page_token

        logger.debug(
            "Requesting NewsData page (category=%s page=%s)",
            params["category"],
            page_token or "initial",
        )
        try:
            response = self._client.get(f"{self._base_url}/news", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamTransportError(
                message=f"NewsData HTTP error: {exc.response.status_code}",
                status=exc.response.status_code,
                body=exc.response.text[:MAX_ERROR_BODY_CHARS],
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamTransportError(
                message=f"NewsData transport error: {exc}",
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamTransportError(
                message="NewsData returned a non-JSON body",
                status=response.status_code,
                body=response.text[:MAX_ERROR_BODY_CHARS],
            ) from exc
        return page_from_payload(payload)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> NewsDataSource:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def page_from_payload(payload: Any) -> NewsPage:
    """Wrap a decoded response body without judging its status."""

    if not isinstance(payload, dict):
        return NewsPage(status="invalid", results=[], next_page=None, payload={"body": payload})

    results = payload.get("results")
    if not isinstance(results, list):
        # Error payloads put a dict describing the failure under "results".
        results = []
    next_page = payload.get("nextPage")
    return NewsPage(
        status=str(payload.get("status") or ""),
        results=[item for item in results if isinstance(item, dict)],
        next_page=str(next_page) if next_page else None,
        payload=payload,
    )
