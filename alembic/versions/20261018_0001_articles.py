"""Articles table keyed by provider article id."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "articles",
        sa.Column("article_id", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("keywords", sa.JSON(), nullable=False),
        sa.Column("creator", sa.JSON(), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("pub_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pub_date_tz", sa.String(), nullable=True),
        sa.Column("source_id", sa.String(), nullable=True),
        sa.Column("source_name", sa.String(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("source_icon", sa.Text(), nullable=True),
        sa.Column("source_priority", sa.Integer(), nullable=True),
        sa.Column("country", sa.JSON(), nullable=False),
        sa.Column("category", sa.JSON(), nullable=False),
        sa.Column("language", sa.String(), nullable=True),
        sa.Column("ai_tag", sa.JSON(), nullable=False),
        sa.Column("sentiment", sa.String(), nullable=True),
        sa.Column("sentiment_stats", sa.JSON(), nullable=True),
        sa.Column("ai_region", sa.JSON(), nullable=False),
        sa.Column("ai_org", sa.JSON(), nullable=False),
        sa.Column("duplicate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("datatype", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("article_id"),
    )
    op.create_index("ix_articles_pub_date", "articles", ["pub_date"])
    op.create_index("ix_articles_source_id", "articles", ["source_id"])
    op.create_index("ix_articles_language", "articles", ["language"])
    op.create_index("ix_articles_datatype", "articles", ["datatype"])
    op.create_index("ix_articles_pub_date_language", "articles", ["pub_date", "language"])


def downgrade() -> None:
    op.drop_index("ix_articles_pub_date_language", table_name="articles")
    op.drop_index("ix_articles_datatype", table_name="articles")
    op.drop_index("ix_articles_language", table_name="articles")
    op.drop_index("ix_articles_source_id", table_name="articles")
    op.drop_index("ix_articles_pub_date", table_name="articles")
    op.drop_table("articles")
