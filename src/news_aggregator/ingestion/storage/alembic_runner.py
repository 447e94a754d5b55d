"""Programmatic access to the article store migrations."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Engine

PROJECT_ROOT = Path(__file__).resolve().parents[4]


def migration_config(db_path: Path) -> Config:
    """Alembic config pointing at the bundled migrations and ``db_path``."""

    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    return config


def upgrade_head(db_path: Path) -> None:
    command.upgrade(migration_config(db_path), "head")


def current_revision(engine: Engine) -> str | None:
    """Revision the database is stamped with, or ``None`` before the first upgrade."""

    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()
