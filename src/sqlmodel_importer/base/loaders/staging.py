"""Temporary staging tables and bulk loading.

Rows are never written straight into a target table. They are bulk loaded
into a temporary table shaped like the target (same column types, no
constraints) and merged from there in set-based SQL.

Load methods:
- insert: batched multi-row INSERT through executemany (any dialect)
- copy: PostgreSQL COPY FROM STDIN through the psycopg2 cursor
- auto: copy on PostgreSQL, insert elsewhere
"""

import csv
import io
import logging
import uuid
from datetime import date, datetime, time
from typing import Any, Iterable

from sqlalchemy import Column, MetaData, Table, insert
from sqlalchemy.engine import Connection

from sqlmodel_importer.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOAD_METHODS = ("auto", "insert", "copy")

# COPY null marker, distinct from the empty string
COPY_NULL = "\\N"


def resolve_load_method(method: str, dialect_name: str) -> str:
    """Pick the concrete load method for a dialect.

    Raises:
        ConfigurationError: Unknown method, or copy on a non-PostgreSQL dialect
    """
    if method not in LOAD_METHODS:
        raise ConfigurationError(f"Unknown load method '{method}'. Available: {list(LOAD_METHODS)}")

    if method == "auto":
        return "copy" if dialect_name == "postgresql" else "insert"

    if method == "copy" and dialect_name != "postgresql":
        raise ConfigurationError(f"COPY loading requires PostgreSQL, not {dialect_name}")

    return method


def _copy_value(value: Any) -> Any:
    if value is None:
        return COPY_NULL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _chunks(records: list[dict], size: int) -> Iterable[list[dict]]:
    for start in range(0, len(records), size):
        yield records[start : start + size]


class StagingTable:
    """Temporary table mirroring selected columns of a target table."""

    def __init__(self, target: Table, columns: list[str]):
        unknown = [c for c in columns if c not in target.c]
        if unknown:
            raise ConfigurationError(f"Columns not on {target.name}: {unknown}")
        if not columns:
            raise ConfigurationError(f"No columns to stage for {target.name}")

        self.target = target
        self.columns = list(columns)
        self.name = f"_stage_{target.name}_{uuid.uuid4().hex[:8]}"
        self.table = Table(
            self.name,
            MetaData(),
            *[Column(name, target.c[name].type) for name in self.columns],
            prefixes=["TEMPORARY"],
        )

    def create(self, conn: Connection) -> None:
        self.table.create(conn)
        logger.debug(f"Created staging table {self.name}")

    def drop(self, conn: Connection) -> None:
        self.table.drop(conn, checkfirst=True)
        logger.debug(f"Dropped staging table {self.name}")

    def load(
        self, conn: Connection, records: list[dict], method: str = "auto", batch_size: int = 1000
    ) -> int:
        """Bulk load records into the staging table.

        Args:
            conn: Connection holding the open import transaction
            records: Row dicts; missing columns load as NULL
            method: auto, insert or copy
            batch_size: Rows per INSERT batch

        Returns:
            Number of rows loaded
        """
        rows = [{name: record.get(name) for name in self.columns} for record in records]
        if not rows:
            return 0

        method = resolve_load_method(method, conn.dialect.name)
        if method == "copy":
            self._copy(conn, rows)
        else:
            statement = insert(self.table)
            for batch in _chunks(rows, batch_size):
                conn.execute(statement, batch)

        logger.info(f"Staged {len(rows)} rows into {self.name} using {method}")
        return len(rows)

    def _copy(self, conn: Connection, rows: list[dict]) -> None:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        for row in rows:
            writer.writerow([_copy_value(row[name]) for name in self.columns])
        buffer.seek(0)

        quote = conn.dialect.identifier_preparer.quote
        column_list = ", ".join(quote(name) for name in self.columns)
        sql = (
            f"COPY {quote(self.name)} ({column_list}) "
            f"FROM STDIN WITH (FORMAT csv, NULL '{COPY_NULL}')"
        )

        cursor = conn.connection.cursor()
        try:
            cursor.copy_expert(sql, buffer)
        finally:
            cursor.close()
