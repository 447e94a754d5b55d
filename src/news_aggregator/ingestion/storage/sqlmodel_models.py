"""SQLModel ORM tables for article storage."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Text, false
from sqlmodel import Field, SQLModel


def _json_list_column() -> Column:
    return Column(JSON, nullable=False, default=list)


class ArticleRow(SQLModel, table=True):
    __tablename__ = "articles"  # type: ignore[bad-override]
    __table_args__ = (Index("ix_articles_pub_date_language", "pub_date", "language"),)

    article_id: str = Field(primary_key=True)
    title: str = Field(sa_column=Column(Text, nullable=False))
    link: str | None = Field(default=None, sa_column=Column(Text))
    description: str | None = Field(default=None, sa_column=Column(Text))
    content: str | None = Field(default=None, sa_column=Column(Text))
    keywords: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    creator: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    video_url: str | None = Field(default=None, sa_column=Column(Text))
    image_url: str | None = Field(default=None, sa_column=Column(Text))
    pub_date: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
    )
    pub_date_tz: str | None = None
    source_id: str | None = Field(default=None, index=True)
    source_name: str | None = None
    source_url: str | None = Field(default=None, sa_column=Column(Text))
    source_icon: str | None = Field(default=None, sa_column=Column(Text))
    source_priority: int | None = None
    country: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    category: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    language: str | None = Field(default=None, index=True)
    ai_tag: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    sentiment: str | None = None
    sentiment_stats: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    ai_region: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    ai_org: list[str] = Field(default_factory=list, sa_column=_json_list_column())
    duplicate: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default=false()),
    )
    datatype: str | None = Field(default=None, index=True)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
