"""SQLite engine factory.

In-memory databases live on a single pooled connection, so the import log
sessions and the load transaction of a run all see the same database.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import create_engine

logger = logging.getLogger(__name__)


def get_connection_url(path: Optional[str] = None) -> str:
    """Build SQLite connection URL.

    Args:
        path: Database file, created with its parent directory on first
            use; None or ':memory:' for an in-memory database

    Returns:
        SQLite connection URL string
    """
    if path in (None, "", ":memory:"):
        return "sqlite://"

    db_file = Path(path).expanduser()
    db_file.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_file}"


def create_sqlite_engine(target, echo: bool = False) -> Engine:
    """Create engine for a sqlite DatabaseTarget."""
    connection_url = get_connection_url(target.path)
    logger.debug(f"Creating SQLite engine: {connection_url}")
    return create_engine(connection_url, echo=echo)
