"""Base source classes for importer input.

A source yields one pandas DataFrame of raw string values plus a checksum
identifying its exact content. Importers never look past this interface.
"""

import hashlib
from abc import ABC, abstractmethod

import pandas as pd

from sqlmodel_importer.exceptions import EmptySourceError, MissingColumnsError

# Index name of DataFrames returned by read()
LINE_NUMBER = "line_number"


class BaseSource(ABC):
    """Abstract base class for import sources.

    Subclasses must implement:
    - checksum(): Stable digest of the source content
    - read(): Load the source into a DataFrame
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def checksum(self) -> str:
        """Hex digest identifying the source content."""
        pass

    @abstractmethod
    def read(self) -> pd.DataFrame:
        """Read the source.

        Returns:
            DataFrame with one string (or None) value per cell, indexed
            by the line number of each row in the source

        Raises:
            SourceError: If the source cannot be read
            EmptySourceError: If the source has no data rows
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class DataFrameSource(BaseSource):
    """Source wrapping an in-memory DataFrame.

    Useful for programmatic imports where rows come from an API call or a
    previous pipeline step rather than a file. Rows are numbered from 1.
    """

    def __init__(self, df: pd.DataFrame, name: str = "dataframe"):
        super().__init__(name)
        self.df = df

    def checksum(self) -> str:
        digest = hashlib.sha256()
        digest.update("|".join(str(c) for c in self.df.columns).encode())
        digest.update(pd.util.hash_pandas_object(self.df.astype(str), index=False).values.tobytes())
        return digest.hexdigest()

    def read(self) -> pd.DataFrame:
        if self.df.empty:
            raise EmptySourceError(f"{self.name} has no rows")
        df = self.df.copy()
        df.index = pd.RangeIndex(1, len(df) + 1, name=LINE_NUMBER)
        return df


def validate_columns(df: pd.DataFrame, required: list[str]) -> None:
    """Check that all required columns are present.

    Raises:
        MissingColumnsError: Listing every missing column in required order
    """
    available = [str(c) for c in df.columns]
    missing = [c for c in required if c not in available]
    if missing:
        raise MissingColumnsError(missing, available)
