# sqlmodel-importer - Base Patterns
#
# Building blocks of an import run:
# - Sources (CSV files, in-memory DataFrames) with checksums
# - Import log and row lineage models
# - Staging table bulk loads and set-based merges
# - Importer base class tying extract, transform and load together
#

from .loaders import BaseImporter, ImportArchive, ImportResult, MergeCounts, StagingTable
from .models import ImportLog, ImportMetadata, ImportStatus
from .sources import BaseSource, CsvSource, DataFrameSource

__all__ = [
    # Sources
    "BaseSource",
    "CsvSource",
    "DataFrameSource",
    # Loaders
    "BaseImporter",
    "ImportArchive",
    "ImportResult",
    "MergeCounts",
    "StagingTable",
    # Models
    "ImportLog",
    "ImportMetadata",
    "ImportStatus",
]
