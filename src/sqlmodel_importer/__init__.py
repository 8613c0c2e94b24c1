"""sqlmodel-importer: idempotent, transactional CSV imports into SQLModel tables."""

from .base import (
    BaseImporter,
    BaseSource,
    CsvSource,
    DataFrameSource,
    ImportLog,
    ImportMetadata,
    ImportResult,
    ImportStatus,
)
from .config import ImporterSettings
from .exceptions import ImporterError

__version__ = "0.1.0"

__all__ = [
    "BaseImporter",
    "BaseSource",
    "CsvSource",
    "DataFrameSource",
    "ImportLog",
    "ImportMetadata",
    "ImportResult",
    "ImportStatus",
    "ImporterError",
    "ImporterSettings",
]
