"""Import sources.

- BaseSource: Abstract base class for all sources
- CsvSource: CSV files with a header row
- DataFrameSource: In-memory pandas DataFrames
"""

from .base import BaseSource, DataFrameSource, validate_columns
from .csv_source import CsvSource

__all__ = [
    "BaseSource",
    "CsvSource",
    "DataFrameSource",
    "validate_columns",
]
