"""CSV file source.

Reads every cell as a string so that type conversion happens in one place,
the importer's row validation, instead of being guessed by the CSV parser.
Rows keep their file line number (header is line 1) as the DataFrame index,
so blank lines and quoted multi-line fields do not shift reject reports.
"""

import csv
import logging
from pathlib import Path

import pandas as pd

from sqlmodel_importer.exceptions import EmptySourceError, SourceError
from sqlmodel_importer.utils.checksum import file_checksum

from .base import LINE_NUMBER, BaseSource

logger = logging.getLogger(__name__)


class CsvSource(BaseSource):
    """CSV file with a header row.

    Header names are stripped of surrounding whitespace. Empty cells are
    read as empty strings; the importer turns them into None. Blank lines
    are skipped and short rows are padded with empty cells.
    """

    def __init__(self, path: str | Path, delimiter: str = ",", encoding: str = "utf-8"):
        self.path = Path(path)
        super().__init__(self.path.name)
        self.delimiter = delimiter
        self.encoding = encoding
        self._checksum = None

    def checksum(self) -> str:
        if self._checksum is None:
            self._checksum = file_checksum(self.path)
        return self._checksum

    def read(self) -> pd.DataFrame:
        if not self.path.is_file():
            raise SourceError(f"Source file not found: {self.path}")

        try:
            with open(self.path, newline="", encoding=self.encoding) as f:
                header, rows, line_numbers = self._parse(csv.reader(f, delimiter=self.delimiter))
        except (csv.Error, UnicodeDecodeError) as e:
            raise SourceError(f"Cannot parse {self.path.name}: {e}") from e

        if header is None:
            raise EmptySourceError(f"{self.path.name} is empty")
        if not rows:
            raise EmptySourceError(f"{self.path.name} has a header but no data rows")

        logger.info(f"Read {len(rows)} rows from {self.path.name}")
        return pd.DataFrame(rows, columns=header, index=pd.Index(line_numbers, name=LINE_NUMBER))

    def _parse(self, reader) -> tuple[list[str] | None, list[list[str]], list[int]]:
        header = None
        rows = []
        line_numbers = []
        last_line = 0

        for record in reader:
            # A record starts on the line after the previous one ended
            first_line = last_line + 1
            last_line = reader.line_num
            if not any(cell.strip() for cell in record):
                continue

            if header is None:
                header = [cell.strip() for cell in record]
                header[0] = header[0].lstrip("\ufeff")
                duplicates = sorted({c for c in header if header.count(c) > 1})
                if duplicates:
                    raise SourceError(f"{self.path.name}: duplicate columns {duplicates}")
                continue

            if len(record) > len(header):
                raise SourceError(
                    f"{self.path.name} line {first_line}: expected {len(header)} fields, found {len(record)}"
                )
            rows.append(record + [""] * (len(header) - len(record)))
            line_numbers.append(first_line)

        return header, rows, line_numbers
