"""Importer base class.

Provides the full import run for one source into one SQLModel table:
- Extract rows from a source and checksum it
- Guard against re-imports, concurrent runs and suspicious record counts
- Transform rows as plain dicts, validate them, collect rejects
- Bulk load into a temporary staging table and merge into the target
  inside a single transaction
- Record the outcome in the import log
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, ClassVar, Optional

import pandas as pd
from pydantic import BaseModel, ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel

from sqlmodel_importer.base.models import (
    LINEAGE_COLUMNS,
    ImportLog,
    ImportStatus,
    expire_stale_imports,
    find_running_import,
    find_successful_import,
    last_successful_import,
)
from sqlmodel_importer.base.models.import_log import utcnow
from sqlmodel_importer.base.sources import BaseSource, validate_columns
from sqlmodel_importer.config import ImporterSettings
from sqlmodel_importer.exceptions import (
    AlreadyImportedError,
    ConfigurationError,
    DuplicateKeyError,
    ImportInProgressError,
    RecordCountError,
    RowValidationError,
    TooManyRejectsError,
)

from .archive import ImportArchive
from .merge import MergeCounts, merge_staging
from .staging import LOAD_METHODS, StagingTable

logger = logging.getLogger(__name__)

DUPLICATE_POLICIES = ("skip", "error", "reimport")


@dataclass
class ImportResult:
    """Outcome of one import run."""

    importer_name: str
    source_name: str
    checksum: str
    status: ImportStatus
    import_log_id: Optional[int] = None
    records_read: int = 0
    records_rejected: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_unchanged: int = 0
    records_deleted: int = 0
    dry_run: bool = False
    rejects: list[RowValidationError] = field(default_factory=list)
    archive_paths: dict[str, str] = field(default_factory=dict)

    def apply_counts(self, counts: MergeCounts) -> None:
        self.records_inserted = counts.inserted
        self.records_updated = counts.updated
        self.records_unchanged = counts.unchanged
        self.records_deleted = counts.deleted

    def as_dict(self) -> dict[str, Any]:
        return {
            "importer": self.importer_name,
            "source": self.source_name,
            "checksum": self.checksum,
            "status": self.status.value,
            "import_log_id": self.import_log_id,
            "read": self.records_read,
            "rejected": self.records_rejected,
            "inserted": self.records_inserted,
            "updated": self.records_updated,
            "unchanged": self.records_unchanged,
            "deleted": self.records_deleted,
            "dry_run": self.dry_run,
            "archive": self.archive_paths,
        }


class BaseImporter(ABC):
    """Base class for importers.

    Subclasses declare the target model and import rules as class
    attributes and implement transform_row(), which maps one raw source
    row (a dict of strings) to one target row (a dict). Transformation
    never touches ORM instances; rows only become table rows through the
    staging table merge.

    Subclasses must implement:
    - transform_row(): Map a raw row to a target row

    Example:
        class ProductImporter(BaseImporter):
            name = "products"
            model = Product
            key_columns = ("sku",)
            required_columns = ("SKU", "Name", "Price")
            column_map = {"SKU": "sku", "Name": "name", "Price": "price"}
            row_schema = ProductRow

            def transform_row(self, row):
                row["sku"] = row["sku"].upper()
                return row
    """

    name: ClassVar[str] = ""
    model: ClassVar[Optional[type[SQLModel]]] = None

    # Natural key; defaults to the model's primary key
    key_columns: ClassVar[tuple[str, ...]] = ()
    # Source (pre-rename) columns that must be present
    required_columns: ClassVar[tuple[str, ...]] = ()
    # Source column -> target column
    column_map: ClassVar[dict[str, str]] = {}
    row_schema: ClassVar[Optional[type[BaseModel]]] = None

    max_errors: ClassVar[int] = 0
    min_records: ClassVar[int] = 1
    max_records: ClassVar[Optional[int]] = None
    # Largest allowed drop versus the last successful import (0.5 = half)
    max_shrink_ratio: ClassVar[Optional[float]] = None

    delete_missing: ClassVar[bool] = False
    load_method: ClassVar[str] = "auto"
    on_duplicate: ClassVar[str] = "skip"
    strip_values: ClassVar[bool] = True

    def __init__(self, engine: Engine, settings: Optional[ImporterSettings] = None):
        """Initialize importer.

        Args:
            engine: Engine for both the import log and the target table
            settings: Batch size, archive path and stale run threshold
        """
        self.engine = engine
        self.settings = settings or ImporterSettings()
        self.archive = ImportArchive(self.settings.archive_path) if self.settings.archive_path else None
        self._validate_configuration()

    @property
    def importer_name(self) -> str:
        return self.name or type(self).__name__

    @property
    def table(self):
        return self.model.__table__

    def _validate_configuration(self) -> None:
        if self.model is None or not hasattr(self.model, "__table__"):
            raise ConfigurationError(f"{type(self).__name__}.model must be a SQLModel table class")

        if not self.key_columns:
            self.key_columns = tuple(c.name for c in self.table.primary_key.columns)

        unknown = [k for k in self.key_columns if k not in self.table.c]
        if not self.key_columns or unknown:
            raise ConfigurationError(
                f"{type(self).__name__}: key columns {unknown or '(none)'} not on {self.table.name}"
            )

        if self.load_method not in LOAD_METHODS:
            raise ConfigurationError(f"Unknown load method '{self.load_method}'")

        if self.on_duplicate not in DUPLICATE_POLICIES:
            raise ConfigurationError(
                f"Unknown duplicate policy '{self.on_duplicate}'. Available: {list(DUPLICATE_POLICIES)}"
            )

    def create_tables(self) -> None:
        """Create the import log and target tables if missing."""
        SQLModel.metadata.create_all(self.engine, tables=[ImportLog.__table__, self.table])

    # -- transformation -------------------------------------------------

    @abstractmethod
    def transform_row(self, row: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Map one raw row to one target row.

        Args:
            row: Source row after column renaming; empty cells are None

        Returns:
            Target row dict, or None to drop the row without rejecting it

        Raises:
            ValueError or RowValidationError: To reject the row
        """
        pass

    def clean_row(self, row: dict[str, Any]) -> dict[str, Any]:
        cleaned = {}
        for key, value in row.items():
            if isinstance(value, str) and self.strip_values:
                value = value.strip()
            if value == "" or (isinstance(value, float) and math.isnan(value)):
                value = None
            cleaned[key] = value
        return cleaned

    def validate_row(self, row: dict[str, Any]) -> dict[str, Any]:
        """Validate a transformed row with row_schema, if set."""
        if self.row_schema is not None:
            row = self.row_schema.model_validate(row).model_dump()

        missing = [k for k in self.key_columns if row.get(k) is None]
        if missing:
            raise RowValidationError(f"Missing key value: {', '.join(missing)}", row=row)
        return row

    def rename_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        if not self.column_map:
            return df
        return df.rename(columns=self.column_map)

    def transform(self, df: pd.DataFrame) -> tuple[list[dict[str, Any]], list[RowValidationError]]:
        """Transform and validate all rows.

        Args:
            df: Source rows, indexed by source line number

        Returns:
            (accepted records, rejected rows)
        """
        records = []
        rejects = []

        for line_number, raw in zip(df.index.tolist(), df.to_dict("records")):
            row = self.clean_row(raw)
            try:
                transformed = self.transform_row(dict(row))
                if transformed is None:
                    continue
                records.append(self.validate_row(transformed))
            except ValidationError as e:
                errors = [
                    f"{'.'.join(str(part) for part in err['loc']) or 'row'}: {err['msg']}"
                    for err in e.errors()
                ]
                rejects.append(RowValidationError("; ".join(errors), line_number, row, errors))
            except RowValidationError as e:
                rejects.append(RowValidationError("; ".join(e.errors), line_number, row, e.errors))
            except (ValueError, TypeError, KeyError) as e:
                rejects.append(RowValidationError(str(e), line_number, row, [str(e)]))

        if rejects:
            logger.warning(f"{self.importer_name}: rejected {len(rejects)} of {len(df)} rows")
        return records, rejects

    # -- guards -----------------------------------------------------------

    def check_record_count(self, count: int, previous_count: Optional[int] = None) -> None:
        """Check count against bounds and the previous successful import.

        Raises:
            RecordCountError
        """
        if count < self.min_records:
            raise RecordCountError(f"{count} records read, at least {self.min_records} expected")

        if self.max_records is not None and count > self.max_records:
            raise RecordCountError(f"{count} records read, at most {self.max_records} expected")

        if self.max_shrink_ratio is not None and previous_count:
            floor = previous_count * (1 - self.max_shrink_ratio)
            if count < floor:
                raise RecordCountError(
                    f"{count} records read, previous import had {previous_count}; "
                    f"drop exceeds {self.max_shrink_ratio:.0%}"
                )

    def check_duplicate_keys(self, records: list[dict[str, Any]]) -> None:
        keys = Counter(tuple(record[k] for k in self.key_columns) for record in records)
        duplicates = [key for key, seen in keys.items() if seen > 1]
        if duplicates:
            raise DuplicateKeyError(duplicates)

    # -- load -------------------------------------------------------------

    def staged_columns(self, records: list[dict[str, Any]]) -> list[str]:
        present = set()
        for record in records:
            present.update(record)
        return [
            c.name for c in self.table.columns if c.name in present and c.name not in LINEAGE_COLUMNS
        ]

    def lineage_values(self, import_log_id: int) -> dict[str, Any]:
        values = {"import_log_id": import_log_id, "imported_at": utcnow()}
        return {k: v for k, v in values.items() if k in self.table.c}

    def load(self, records: list[dict[str, Any]], import_log_id: int, dry_run: bool = False) -> MergeCounts:
        """Stage and merge records in one transaction.

        The transaction is rolled back on any error, and always for dry runs.
        """
        staging = StagingTable(self.table, self.staged_columns(records))

        with self.engine.connect() as conn:
            transaction = conn.begin()
            try:
                staging.create(conn)
                staging.load(conn, records, self.load_method, self.settings.batch_size)
                counts = merge_staging(
                    conn,
                    staging,
                    list(self.key_columns),
                    delete_missing=self.delete_missing,
                    lineage=self.lineage_values(import_log_id),
                )
                if dry_run:
                    transaction.rollback()
                    logger.info(f"{self.importer_name}: dry run, changes rolled back")
                else:
                    transaction.commit()
            except Exception:
                transaction.rollback()
                raise
            finally:
                try:
                    with conn.begin():
                        staging.drop(conn)
                except SQLAlchemyError as e:
                    logger.warning(f"{self.importer_name}: could not drop staging table {staging.name}: {e}")

        return counts

    # -- run --------------------------------------------------------------

    def run(self, source: BaseSource, force: bool = False, dry_run: bool = False) -> ImportResult:
        """Import source into the target table.

        Args:
            source: Source to import
            force: Import even if this checksum already succeeded
            dry_run: Do everything but roll back the load

        Returns:
            ImportResult (status succeeded or skipped)

        Raises:
            ImporterError subclasses; failed runs are recorded in the
            import log before the error propagates
        """
        try:
            checksum = source.checksum()
        except Exception as e:
            self._record_failure(source.name, "", dry_run, e)
            raise

        result = ImportResult(
            importer_name=self.importer_name,
            source_name=source.name,
            checksum=checksum,
            status=ImportStatus.RUNNING,
            dry_run=dry_run,
        )
        logger.info(f"{self.importer_name}: importing {source.name} (checksum {checksum[:12]})")

        try:
            previous_count = self._start(result, force)
        except (ImportInProgressError, AlreadyImportedError) as e:
            self._record_failure(source.name, checksum, dry_run, e)
            raise

        if result.status == ImportStatus.SKIPPED:
            return result

        try:
            df = source.read()
            validate_columns(df, list(self.required_columns))
            df = self.rename_columns(df)
            result.records_read = len(df)
            self.check_record_count(len(df), previous_count)

            records, rejects = self.transform(df)
            result.rejects = rejects
            result.records_rejected = len(rejects)

            if rejects and self.archive:
                result.archive_paths.update(
                    {
                        f"rejected_{fmt}": path
                        for fmt, path in self.archive.write_rejects(
                            rejects, self.importer_name, f"{result.import_log_id}_rejected"
                        ).items()
                    }
                )
            if len(rejects) > self.max_errors:
                raise TooManyRejectsError(rejects, self.max_errors)

            self.check_duplicate_keys(records)
            if not records:
                raise RecordCountError("No records left after transformation")

            if self.archive and not dry_run:
                result.archive_paths.update(
                    {
                        f"accepted_{fmt}": path
                        for fmt, path in self.archive.write_records(
                            records, self.importer_name, f"{result.import_log_id}_accepted"
                        ).items()
                    }
                )

            result.apply_counts(self.load(records, result.import_log_id, dry_run=dry_run))
        except Exception as e:
            result.status = ImportStatus.FAILED
            self._finish(result, error=e)
            logger.error(f"{self.importer_name}: import of {source.name} failed: {e}")
            raise

        result.status = ImportStatus.SUCCEEDED
        self._finish(result)
        logger.info(f"{self.importer_name}: import of {source.name} succeeded")
        return result

    def _start(self, result: ImportResult, force: bool) -> Optional[int]:
        """Run the import log guards and open the log entry for this run.

        Writes a skipped entry when the checksum was already imported and
        the duplicate policy is "skip", otherwise a running entry.

        Returns:
            records_read of the last successful import, if any
        """
        stale_after = timedelta(minutes=self.settings.stale_after_minutes)

        with Session(self.engine) as session:
            running = find_running_import(session, self.importer_name, stale_after)
            if running is not None:
                raise ImportInProgressError(
                    f"{self.importer_name} is already running (import log #{running.id})"
                )

            for stale in expire_stale_imports(session, self.importer_name, stale_after):
                logger.warning(f"{self.importer_name}: import log #{stale.id} abandoned, marked failed")

            previous = None if force else find_successful_import(session, self.importer_name, result.checksum)
            if previous is not None and self.on_duplicate == "error":
                raise AlreadyImportedError(self.importer_name, result.checksum, previous.id)

            if previous is not None and self.on_duplicate == "skip":
                entry = ImportLog(
                    importer_name=self.importer_name,
                    source_name=result.source_name,
                    checksum=result.checksum,
                    status=ImportStatus.SKIPPED,
                    dry_run=result.dry_run,
                    finished_at=utcnow(),
                )
                session.add(entry)
                session.commit()
                session.refresh(entry)
                logger.info(
                    f"{self.importer_name}: {result.source_name} already imported "
                    f"(import log #{previous.id}), skipping"
                )
                result.status = ImportStatus.SKIPPED
                result.import_log_id = entry.id
                return None

            last = last_successful_import(session, self.importer_name)
            previous_count = last.records_read if last else None

            entry = ImportLog(
                importer_name=self.importer_name,
                source_name=result.source_name,
                checksum=result.checksum,
                status=ImportStatus.RUNNING,
                dry_run=result.dry_run,
            )
            session.add(entry)
            try:
                session.commit()
            except IntegrityError as e:
                # Another process opened its running entry after our check
                session.rollback()
                raise ImportInProgressError(f"{self.importer_name} is already running") from e
            session.refresh(entry)
            result.import_log_id = entry.id

        return previous_count

    def _record_failure(self, source_name: str, checksum: str, dry_run: bool, error: Exception) -> None:
        """Write a failed entry for a run that stopped before its log entry was opened."""
        with Session(self.engine) as session:
            session.add(
                ImportLog(
                    importer_name=self.importer_name,
                    source_name=source_name,
                    checksum=checksum,
                    status=ImportStatus.FAILED,
                    dry_run=dry_run,
                    finished_at=utcnow(),
                    error_type=type(error).__name__,
                    error_message=str(error),
                )
            )
            session.commit()
        logger.error(f"{self.importer_name}: import of {source_name} failed: {error}")

    def _finish(self, result: ImportResult, error: Optional[Exception] = None) -> None:
        with Session(self.engine) as session:
            entry = session.get(ImportLog, result.import_log_id)
            entry.status = result.status
            entry.records_read = result.records_read
            entry.records_rejected = result.records_rejected
            entry.records_inserted = result.records_inserted
            entry.records_updated = result.records_updated
            entry.records_unchanged = result.records_unchanged
            entry.records_deleted = result.records_deleted
            entry.finished_at = utcnow()
            if error is not None:
                entry.error_type = type(error).__name__
                entry.error_message = str(error)
            session.add(entry)
            session.commit()
