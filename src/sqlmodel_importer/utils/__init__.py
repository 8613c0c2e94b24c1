# sqlmodel-importer - Utilities
#
# registry is imported directly (sqlmodel_importer.utils.registry) since it
# depends on the loaders package.

from .checksum import file_checksum
from .logging_config import configure_logging

__all__ = [
    "configure_logging",
    "file_checksum",
]
