"""Importer exception hierarchy.

One exception class per failure condition so callers can react to each
condition separately:
- Source problems (unreadable, empty, missing columns)
- Row problems (validation, too many rejects, duplicate keys)
- Run guards (record counts, concurrent runs, already imported files)
- Importer misconfiguration
"""

from typing import Any


class ImporterError(Exception):
    """Base class for all importer errors."""


class ConfigurationError(ImporterError):
    """Importer class or runtime configuration is invalid."""


class SourceError(ImporterError):
    """Source file cannot be read."""


class EmptySourceError(SourceError):
    """Source file contains no data rows."""


class MissingColumnsError(SourceError):
    """Source file is missing required columns."""

    def __init__(self, missing: list[str], available: list[str] | None = None):
        self.missing = list(missing)
        self.available = list(available or [])
        super().__init__(
            f"Missing required columns: {', '.join(self.missing)}. "
            f"Available: {', '.join(self.available)}"
        )


class RowValidationError(ImporterError):
    """A single source row failed transformation or validation."""

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        row: dict[str, Any] | None = None,
        errors: list[str] | None = None,
    ):
        self.line_number = line_number
        self.row = dict(row or {})
        self.errors = list(errors or [message])
        prefix = f"Line {line_number}: " if line_number is not None else ""
        super().__init__(f"{prefix}{message}")


class TooManyRejectsError(ImporterError):
    """More rows were rejected than the importer tolerates."""

    def __init__(self, rejects: list[RowValidationError], max_errors: int):
        self.rejects = rejects
        self.max_errors = max_errors
        first = f" First: {rejects[0]}" if rejects else ""
        super().__init__(
            f"{len(rejects)} rows rejected, at most {max_errors} allowed.{first}"
        )


class DuplicateKeyError(ImporterError):
    """Source contains the same natural key more than once."""

    def __init__(self, keys: list[tuple]):
        self.keys = keys
        shown = ", ".join(str(k) for k in keys[:5])
        more = f" (and {len(keys) - 5} more)" if len(keys) > 5 else ""
        super().__init__(f"Duplicate keys in source: {shown}{more}")


class RecordCountError(ImporterError):
    """Record count is outside the expected bounds."""


class ImportInProgressError(ImporterError):
    """Another run of the same importer has not finished."""


class AlreadyImportedError(ImporterError):
    """Source checksum was already imported successfully."""

    def __init__(self, importer_name: str, checksum: str, import_log_id: int | None):
        self.importer_name = importer_name
        self.checksum = checksum
        self.import_log_id = import_log_id
        super().__init__(
            f"{importer_name}: checksum {checksum[:12]} already imported "
            f"(import log #{import_log_id})"
        )
