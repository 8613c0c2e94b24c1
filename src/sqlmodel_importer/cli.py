import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from sqlmodel import Session, SQLModel

from .base.models import ImportLog, import_history
from .base.sources import CsvSource
from .config import ImporterSettings, list_available_targets
from .exceptions import ImporterError
from .utils import configure_logging, file_checksum
from .utils.registry import load_importer

logger = logging.getLogger(__name__)

app = typer.Typer(help="Idempotent CSV imports into SQLModel tables")

DATABASE_URL_HELP = "SQLAlchemy URL (default: IMPORTER_DATABASE_URL)"
TARGET_HELP = "Named target, wins over --database-url (see 'targets')"


def _settings(**overrides) -> ImporterSettings:
    settings = ImporterSettings.from_env(**overrides)
    configure_logging(settings.log_level)
    return settings


def _fail(message: str) -> NoReturn:
    logger.error(message)
    print(message)
    raise typer.Exit(code=1)


@app.command()
def run(
    importer: str = typer.Argument(..., help="package.module:ImporterClass"),
    source: Path = typer.Argument(..., help="CSV file to import"),
    database_url: Optional[str] = typer.Option(None, help=DATABASE_URL_HELP),
    target: Optional[str] = typer.Option(None, help=TARGET_HELP),
    delimiter: str = typer.Option(",", help="CSV delimiter"),
    force: bool = typer.Option(False, help="Import even if this file was already imported"),
    dry_run: bool = typer.Option(False, help="Run everything, then roll back"),
    archive_path: Optional[Path] = typer.Option(None, help="Directory for accepted/rejected row archives"),
    create_tables: bool = typer.Option(False, help="Create import log and target tables first"),
):
    """Import one CSV file."""
    try:
        settings = _settings(database_url=database_url, target=target, archive_path=archive_path)
        importer_class = load_importer(importer)
        instance = importer_class(settings.create_engine(), settings)
        if create_tables:
            instance.create_tables()
        result = instance.run(CsvSource(source, delimiter=delimiter), force=force, dry_run=dry_run)
    except ImporterError as e:
        _fail(f"Import failed: {e}")

    print(result.as_dict())
    for reject in result.rejects:
        print(f"  rejected {reject}")


@app.command()
def history(
    importer: Optional[str] = typer.Option(None, help="Only show runs of this importer name"),
    limit: int = typer.Option(20, help="Number of runs to show"),
    database_url: Optional[str] = typer.Option(None, help=DATABASE_URL_HELP),
    target: Optional[str] = typer.Option(None, help=TARGET_HELP),
):
    """Show recent import runs, newest first."""
    try:
        engine = _settings(database_url=database_url, target=target).create_engine()
    except ImporterError as e:
        _fail(str(e))

    with Session(engine) as session:
        for entry in import_history(session, importer, limit):
            print(entry.summary())


@app.command("init-db")
def init_db(
    importers: Optional[list[str]] = typer.Option(None, "--importer", help="Also create this importer's table"),
    database_url: Optional[str] = typer.Option(None, help=DATABASE_URL_HELP),
    target: Optional[str] = typer.Option(None, help=TARGET_HELP),
):
    """Create the import log table and, optionally, importer target tables."""
    try:
        engine = _settings(database_url=database_url, target=target).create_engine()
        tables = [ImportLog.__table__] + [load_importer(path).model.__table__ for path in importers or []]
    except ImporterError as e:
        _fail(str(e))

    SQLModel.metadata.create_all(engine, tables=tables)
    print({"tables_created": [table.name for table in tables]})


@app.command()
def checksum(path: Path = typer.Argument(..., help="File to checksum")):
    """Print the checksum used to recognise already imported files."""
    try:
        print(file_checksum(path))
    except ImporterError as e:
        _fail(str(e))


@app.command()
def targets():
    """List named database targets."""
    for name, description in list_available_targets().items():
        print(f"{name}: {description}")


if __name__ == "__main__":
    app()
