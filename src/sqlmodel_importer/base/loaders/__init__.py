# sqlmodel-importer - Loaders

from .archive import ImportArchive
from .importer import BaseImporter, ImportResult
from .merge import MergeCounts, merge_staging
from .staging import LOAD_METHODS, StagingTable, resolve_load_method

__all__ = [
    "BaseImporter",
    "ImportArchive",
    "ImportResult",
    "LOAD_METHODS",
    "MergeCounts",
    "StagingTable",
    "merge_staging",
    "resolve_load_method",
]
