"""SQLModel-backed article store for the ingestion pipeline."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import fields
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import Session, col, select

from news_aggregator.ingestion.errors import StoreWriteError
from news_aggregator.ingestion.models import (
    Article,
    ArticleStats,
    CountBucket,
    FilterOptions,
    UpsertCounts,
)
from news_aggregator.ingestion.storage.alembic_runner import current_revision, upgrade_head
from news_aggregator.ingestion.storage.common import (
    build_sqlite_engine,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from news_aggregator.ingestion.storage.sqlmodel_models import ArticleRow

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = tuple(item.name for item in fields(Article))
LIST_FIELDS = frozenset(
    {"keywords", "creator", "country", "category", "ai_tag", "ai_region", "ai_org"},
)
SCALAR_FIELDS = frozenset(
    {"language", "datatype", "source_id", "source_name", "sentiment", "pub_date_tz"},
)
MAX_FILTER_AUTHORS = 200
STATS_TOP_N = 10


class UpsertAction(str, Enum):
    """Operation result for article upsert."""

    INSERTED = "inserted"
    UPDATED = "updated"


class ArticleRepository:
    """Facade that persists articles using SQLModel and Alembic."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path)

    def close(self) -> None:
        self.engine.dispose()

    def init_schema(self) -> None:
        upgrade_head(self.db_path)

    def schema_revision(self) -> str | None:
        return current_revision(self.engine)

    def upsert_batch(self, articles: Sequence[Article]) -> UpsertCounts:
        """Insert or fully replace each article by ``article_id``.

        Keys are applied independently: a rejected row is logged and counted as
        failed without stopping the rest. An unusable database raises
        ``StoreWriteError``.
        """

        counts = UpsertCounts()
        for article in articles:
            try:
                action = self.upsert_article(article)
            except OperationalError as exc:
                raise StoreWriteError(
                    message=f"Article store unavailable: {exc.orig}",
                    article_id=article.article_id,
                    cause=str(exc.orig),
                ) from exc
            except SQLAlchemyError as exc:
                logger.warning(
                    "Failed to upsert article %s: %s",
                    article.article_id,
                    exc,
                )
                counts.failed += 1
                continue

            if action == UpsertAction.INSERTED:
                counts.upserted += 1
            else:
                counts.modified += 1
        return counts

    def upsert_article(self, article: Article) -> UpsertAction:
        values = _row_values(article)
        with Session(self.engine) as session:
            now = utc_now()
            row = session.get(ArticleRow, article.article_id)
            if row is None:
                row = ArticleRow(**values, created_at=now, updated_at=now)
                action = UpsertAction.INSERTED
            else:
                for name, value in values.items():
                    setattr(row, name, value)
                row.updated_at = now
                action = UpsertAction.UPDATED
            session.add(row)
            session.commit()
            return action

    def get_article(self, article_id: str) -> Article | None:
        with Session(self.engine) as session:
            row = session.get(ArticleRow, article_id)
            return None if row is None else _to_domain(row)

    def count_articles(self) -> int:
        with Session(self.engine) as session:
            return session.exec(select(func.count()).select_from(ArticleRow)).one()

    def distinct_values(self, field_name: str) -> list[str]:
        """Sorted non-empty distinct values of a scalar or list field."""

        if field_name in LIST_FIELDS:
            column = getattr(ArticleRow, field_name)
            with Session(self.engine) as session:
                stored = session.exec(select(column)).all()
            values = {item for items in stored for item in (items or []) if item}
            return sorted(values)

        if field_name in SCALAR_FIELDS:
            column = getattr(ArticleRow, field_name)
            with Session(self.engine) as session:
                stored = session.exec(select(column).distinct()).all()
            return sorted(value for value in stored if value)

        raise ValueError(f"Unsupported distinct field: {field_name!r}")

    def filter_options(self) -> FilterOptions:
        return FilterOptions(
            languages=self.distinct_values("language"),
            countries=self.distinct_values("country"),
            categories=self.distinct_values("category"),
            datatypes=self.distinct_values("datatype"),
            authors=self.distinct_values("creator")[:MAX_FILTER_AUTHORS],
        )

    def stats(self, *, now: datetime | None = None) -> ArticleStats:
        since = (now or utc_now()) - timedelta(hours=24)
        with Session(self.engine) as session:
            total = session.exec(select(func.count()).select_from(ArticleRow)).one()
            last_24h = session.exec(
                select(func.count())
                .select_from(ArticleRow)
                .where(col(ArticleRow.pub_date) >= to_db_datetime(since)),
            ).one()
            language_rows = session.exec(
                select(ArticleRow.language, func.count()).group_by(ArticleRow.language),
            ).all()
            category_lists = session.exec(select(ArticleRow.category)).all()

        category_counts = Counter(item for items in category_lists for item in (items or []))
        return ArticleStats(
            total=total,
            last_24h=last_24h,
            by_category=_top_buckets(category_counts.items()),
            by_language=_top_buckets(language_rows),
        )


def _row_values(article: Article) -> dict[str, object]:
    values: dict[str, object] = {name: getattr(article, name) for name in ARTICLE_FIELDS}
    values["pub_date"] = to_db_datetime(article.pub_date)
    for name in LIST_FIELDS:
        values[name] = list(values[name] or [])
    return values


def _to_domain(row: ArticleRow) -> Article:
    values = {name: getattr(row, name) for name in ARTICLE_FIELDS}
    values["pub_date"] = to_utc_aware_datetime(row.pub_date)
    return Article(**values)


def _top_buckets(pairs) -> list[CountBucket]:
    ordered = sorted(pairs, key=lambda pair: (-pair[1], pair[0] or ""))
    return [CountBucket(key=key, count=count) for key, count in ordered[:STATS_TOP_N]]
