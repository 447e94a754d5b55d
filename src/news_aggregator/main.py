"""CLI entrypoint for news-aggregator."""

from pathlib import Path

import rich_click as click

from news_aggregator import __version__
from news_aggregator.config import Settings
from news_aggregator.ingestion.controllers import (
    ArticleCliController,
    ArticleQueryCommand,
    CheckScheduleCommand,
    IngestionCliController,
    IngestRunCommand,
    IngestServeCommand,
    init_database,
)
from news_aggregator.ingestion.errors import AlreadyRunningError, IngestionError
from news_aggregator.logging_config import configure_logging

click.rich_click.USE_MARKDOWN = True
INGESTION_CONTROLLER = IngestionCliController()
ARTICLE_CONTROLLER = ArticleCliController()

EXIT_ALREADY_RUNNING = 3
EXIT_INGESTION_FAILED = 4


class AlreadyRunningClickError(click.ClickException):
    exit_code = EXIT_ALREADY_RUNNING


class IngestionFailedClickError(click.ClickException):
    exit_code = EXIT_INGESTION_FAILED


@click.group()
@click.version_option(version=__version__, prog_name="news-aggregator")
def news_aggregator() -> None:
    """News aggregator CLI."""

    try:
        configure_logging(Settings.from_env())
    except ValueError as error:
        raise click.UsageError(str(error)) from error


@news_aggregator.group()
def ingest() -> None:
    """Ingestion commands."""


@ingest.command("run")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def ingest_run(db_path: Path | None) -> None:
    """Run one ingestion pass over all configured categories now."""

    try:
        lines = INGESTION_CONTROLLER.run_once(IngestRunCommand(db_path=db_path))
    except AlreadyRunningError as error:
        raise AlreadyRunningClickError(str(error)) from error
    except IngestionError as error:
        raise IngestionFailedClickError(f"Ingestion failed: {error}") from error
    except ValueError as error:
        raise click.UsageError(str(error)) from error
    _emit_lines(lines)


@ingest.command("serve")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--max-runtime-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Stop after this many seconds instead of waiting for SIGINT/SIGTERM.",
)
def ingest_serve(db_path: Path | None, max_runtime_seconds: float | None) -> None:
    """Run ingestion on the CRON_SCHEDULE cadence until interrupted.

    Send SIGUSR1 to the process for a manual run that shares the scheduler's guard.
    """

    try:
        lines = INGESTION_CONTROLLER.serve(
            IngestServeCommand(db_path=db_path, max_runtime_seconds=max_runtime_seconds),
        )
    except ValueError as error:
        raise click.UsageError(str(error)) from error
    _emit_lines(lines)


@ingest.command("check-schedule")
@click.option(
    "--cron",
    "cron_schedule",
    default=None,
    help="Cron expression to check. Defaults to CRON_SCHEDULE.",
)
@click.option(
    "--count",
    type=click.IntRange(min=1, max=20),
    default=3,
    show_default=True,
    help="How many upcoming firings to list.",
)
def ingest_check_schedule(cron_schedule: str | None, count: int) -> None:
    """Validate a cron expression and show when it would fire next."""

    _emit_lines(
        INGESTION_CONTROLLER.check_schedule(
            CheckScheduleCommand(cron_schedule=cron_schedule, count=count),
        ),
    )


@news_aggregator.group()
def articles() -> None:
    """Stored article commands."""


@articles.command("filters")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def articles_filters(db_path: Path | None) -> None:
    """List distinct languages, countries, categories, datatypes and authors."""

    _emit_lines(ARTICLE_CONTROLLER.filters(ArticleQueryCommand(db_path=db_path)))


@articles.command("stats")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def articles_stats(db_path: Path | None) -> None:
    """Show article totals and top categories and languages."""

    _emit_lines(ARTICLE_CONTROLLER.stats(ArticleQueryCommand(db_path=db_path)))


@articles.command("show")
@click.argument("article_id")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def articles_show(article_id: str, db_path: Path | None) -> None:
    """Show one stored article by its provider id."""

    lines = ARTICLE_CONTROLLER.show(ArticleQueryCommand(db_path=db_path, article_id=article_id))
    if lines is None:
        raise click.ClickException(f"Article not found: {article_id}")
    _emit_lines(lines)


@news_aggregator.group()
def db() -> None:
    """Database commands."""


@db.command("init")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def db_init(db_path: Path | None) -> None:
    """Create or migrate the article database."""

    _emit_lines(init_database(db_path))


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    news_aggregator()
