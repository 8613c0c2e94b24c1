"""Named database targets.

A target describes the database an importer writes to: the import log and
the target tables live there. ImporterSettings.target selects one by name;
without it, ImporterSettings.database_url is used as is.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from sqlmodel_importer.exceptions import ConfigurationError


class DatabaseTarget(BaseModel):
    """Connection details for one import database."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["postgres", "sqlite"]
    database: str = "imports"
    description: str = ""
    echo: bool = False

    # SQLite
    path: Optional[str] = Field(default=None, description="Database file; in-memory when unset")

    # PostgreSQL
    host: str = "localhost"
    port: int = 5432
    user: Optional[str] = Field(default=None, description="Defaults to the current OS user")
    password: Optional[str] = None
    conn_method: Literal["password", "tcp", "socket"] = "tcp"
    socket_dir: str = "/var/run/postgresql"


DEFAULT_TARGETS: dict[str, DatabaseTarget] = {
    "sqlite_memory": DatabaseTarget(
        type="sqlite",
        description="In-memory SQLite, for trying importers with --dry-run",
    ),
    "sqlite_file": DatabaseTarget(
        type="sqlite",
        path="imports.db",
        description="imports.db in the working directory",
    ),
    "postgres_local": DatabaseTarget(
        type="postgres",
        conn_method="socket",
        description="Local PostgreSQL over the unix socket, as the current user",
    ),
    "postgres_container": DatabaseTarget(
        type="postgres",
        port=5433,
        user="postgres",
        password="postgres",
        conn_method="password",
        description="PostgreSQL container on port 5433 with password auth",
    ),
}


def get_target(name: str) -> DatabaseTarget:
    """Look up a named target.

    Returns:
        Copy of the target, safe to modify

    Raises:
        ConfigurationError: If no target has this name
    """
    if name not in DEFAULT_TARGETS:
        raise ConfigurationError(f"Unknown target '{name}'. Available: {sorted(DEFAULT_TARGETS)}")
    return DEFAULT_TARGETS[name].model_copy()


def list_available_targets() -> dict[str, str]:
    return {name: target.description for name, target in DEFAULT_TARGETS.items()}
