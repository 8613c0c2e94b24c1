"""PostgreSQL engine factory.

Builds psycopg2-backed engines for password, trusted TCP and unix socket
connections. PostgreSQL targets get COPY-based bulk loading.
"""

import getpass
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import create_engine

logger = logging.getLogger(__name__)

# Shown in pg_stat_activity, so running imports can be told apart
APPLICATION_NAME = "sqlmodel-importer"


def get_connection_url(
    database_name: str,
    conn_method: str,
    user_name: str,
    password: Optional[str] = None,
    host: str = "localhost",
    port: int = 5432,
    socket_dir: str = "/var/run/postgresql",
) -> str:
    """Build PostgreSQL connection URL for different authentication methods.

    Args:
        database_name: Name of the database to connect to
        conn_method: Connection method ('password', 'tcp', 'socket')
        user_name: Database username
        password: Database password (required for 'password' method)
        host: Database host
        port: Database port
        socket_dir: Unix socket directory (for 'socket' method)

    Returns:
        PostgreSQL connection URL string
    """
    if conn_method == "password":
        if password is None:
            raise ValueError("Password connection method requires a password")
        return f"postgresql+psycopg2://{user_name}:{password}@{host}:{port}/{database_name}"

    elif conn_method == "tcp":
        return f"postgresql+psycopg2://{user_name}@{host}:{port}/{database_name}"

    elif conn_method == "socket":
        return f"postgresql+psycopg2://{user_name}@/{database_name}?host={socket_dir}&port={port}"

    else:
        raise ValueError(f"Invalid connection method: {conn_method}")


def create_postgres_engine(target, echo: bool = False) -> Engine:
    """Create engine for a postgres DatabaseTarget."""
    connection_url = get_connection_url(
        target.database,
        target.conn_method,
        target.user or getpass.getuser(),
        target.password,
        target.host,
        target.port,
        target.socket_dir,
    )
    logger.debug(f"Creating PostgreSQL engine for {target.database} via {target.conn_method}")
    return create_engine(connection_url, echo=echo, connect_args={"application_name": APPLICATION_NAME})
