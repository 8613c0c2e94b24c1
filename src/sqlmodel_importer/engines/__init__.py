"""Engine factories for import databases.

- sqlite_engine: in-memory and file SQLite databases
- postgres_engine: PostgreSQL via psycopg2
"""

from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import create_engine

from sqlmodel_importer.exceptions import ConfigurationError

from .postgres_engine import create_postgres_engine
from .sqlite_engine import create_sqlite_engine


def create_engine_for_target(target, echo: Optional[bool] = None) -> Engine:
    """Create database engine for a DatabaseTarget.

    Args:
        target: DatabaseTarget (see config.targets)
        echo: Overrides target.echo when given

    Raises:
        ConfigurationError: If the target type is not supported
    """
    echo = target.echo if echo is None else echo

    if target.type == "postgres":
        return create_postgres_engine(target, echo)
    elif target.type == "sqlite":
        return create_sqlite_engine(target, echo)
    else:
        raise ConfigurationError(f"Unsupported database type: {target.type}")


def create_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """Create engine from a SQLAlchemy URL (e.g. from ImporterSettings)."""
    return create_engine(database_url, echo=echo)


__all__ = [
    "create_engine_for_target",
    "create_engine_from_url",
    "create_postgres_engine",
    "create_sqlite_engine",
]
