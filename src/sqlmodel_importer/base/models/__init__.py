# sqlmodel-importer - Import log and lineage models

from .import_log import (
    ImportLog,
    ImportStatus,
    create_import_log_table,
    expire_stale_imports,
    find_running_import,
    find_successful_import,
    import_history,
    last_successful_import,
)
from .import_metadata import LINEAGE_COLUMNS, ImportMetadata

__all__ = [
    "ImportLog",
    "ImportMetadata",
    "ImportStatus",
    "LINEAGE_COLUMNS",
    "create_import_log_table",
    "expire_stale_imports",
    "find_running_import",
    "find_successful_import",
    "import_history",
    "last_successful_import",
]
