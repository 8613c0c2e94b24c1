"""Import log table.

Every import run writes one row: which importer ran, which file (by name
and checksum), how it ended and how many records it read, rejected,
inserted, updated, left unchanged and deleted. The log backs idempotency
(a checksum that already succeeded is skipped) and record count checks
against the previous successful run.
"""

import enum
from datetime import UTC, datetime, timedelta
from typing import Optional

from sqlalchemy import TIMESTAMP, Column, Index
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, select


class ImportStatus(str, enum.Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


def utcnow() -> datetime:
    return datetime.now(UTC)


def _naive_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes for timezone-aware columns
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


class ImportLog(SQLModel, table=True):
    """One row per import run."""

    __tablename__ = "import_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    importer_name: str = Field(index=True, description="Importer that ran")
    source_name: str = Field(description="Source file name or identifier")
    checksum: str = Field(index=True, description="SHA-256 of the source file")
    status: ImportStatus = Field(default=ImportStatus.RUNNING, index=True)

    records_read: int = Field(default=0)
    records_rejected: int = Field(default=0)
    records_inserted: int = Field(default=0)
    records_updated: int = Field(default=0)
    records_unchanged: int = Field(default=0)
    records_deleted: int = Field(default=0)
    dry_run: bool = Field(default=False)

    started_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False, index=True),
    )
    finished_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(TIMESTAMP(timezone=True), nullable=True),
    )

    error_type: Optional[str] = Field(default=None)
    error_message: Optional[str] = Field(default=None)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (_naive_utc(self.finished_at) - _naive_utc(self.started_at)).total_seconds()

    def summary(self) -> dict:
        """Flat dict used by the CLI history listing."""
        return {
            "id": self.id,
            "importer": self.importer_name,
            "source": self.source_name,
            "checksum": self.checksum[:12],
            "status": ImportStatus(self.status).value,
            "read": self.records_read,
            "rejected": self.records_rejected,
            "inserted": self.records_inserted,
            "updated": self.records_updated,
            "unchanged": self.records_unchanged,
            "deleted": self.records_deleted,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "duration_seconds": self.duration_seconds,
            "error": self.error_message,
        }


# At most one running entry per importer. Inserting a second one fails, so
# two processes starting the same importer cannot both get past the guard.
_running_only = ImportLog.__table__.c.status == ImportStatus.RUNNING
Index(
    "uq_import_log_running",
    ImportLog.__table__.c.importer_name,
    unique=True,
    sqlite_where=_running_only,
    postgresql_where=_running_only,
)


def create_import_log_table(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine, tables=[ImportLog.__table__])


def find_successful_import(session: Session, importer_name: str, checksum: str) -> Optional[ImportLog]:
    """Latest non-dry-run successful import of this checksum, if any."""
    statement = (
        select(ImportLog)
        .where(ImportLog.importer_name == importer_name)
        .where(ImportLog.checksum == checksum)
        .where(ImportLog.status == ImportStatus.SUCCEEDED)
        .where(ImportLog.dry_run == False)  # noqa: E712
        .order_by(ImportLog.id.desc())
    )
    return session.exec(statement).first()


def last_successful_import(session: Session, importer_name: str) -> Optional[ImportLog]:
    statement = (
        select(ImportLog)
        .where(ImportLog.importer_name == importer_name)
        .where(ImportLog.status == ImportStatus.SUCCEEDED)
        .where(ImportLog.dry_run == False)  # noqa: E712
        .order_by(ImportLog.id.desc())
    )
    return session.exec(statement).first()


def find_running_import(
    session: Session, importer_name: str, stale_after: timedelta = timedelta(hours=1)
) -> Optional[ImportLog]:
    """Running import of this importer that started within stale_after.

    Older running entries belong to crashed processes and are ignored.
    """
    cutoff = _naive_utc(utcnow() - stale_after)
    statement = (
        select(ImportLog)
        .where(ImportLog.importer_name == importer_name)
        .where(ImportLog.status == ImportStatus.RUNNING)
        .order_by(ImportLog.id.desc())
    )
    for entry in session.exec(statement):
        if _naive_utc(entry.started_at) >= cutoff:
            return entry
    return None


def expire_stale_imports(
    session: Session, importer_name: str, stale_after: timedelta = timedelta(hours=1)
) -> list[ImportLog]:
    """Mark running entries older than stale_after as failed.

    Changes are added to the session but not committed.

    Returns:
        The entries that were marked failed
    """
    cutoff = _naive_utc(utcnow() - stale_after)
    statement = (
        select(ImportLog)
        .where(ImportLog.importer_name == importer_name)
        .where(ImportLog.status == ImportStatus.RUNNING)
    )
    expired = []
    for entry in session.exec(statement):
        if _naive_utc(entry.started_at) < cutoff:
            entry.status = ImportStatus.FAILED
            entry.finished_at = utcnow()
            entry.error_type = "StaleImport"
            entry.error_message = f"No result after {stale_after}; assumed abandoned"
            session.add(entry)
            expired.append(entry)
    return expired


def import_history(
    session: Session, importer_name: Optional[str] = None, limit: int = 20
) -> list[ImportLog]:
    statement = select(ImportLog).order_by(ImportLog.id.desc()).limit(limit)
    if importer_name:
        statement = statement.where(ImportLog.importer_name == importer_name)
    return list(session.exec(statement))
