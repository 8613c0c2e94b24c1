"""Archive of imported and rejected rows.

Keeps a copy of what each run loaded and what it refused, so that any row
in a target table can be traced back to the file it came from.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from sqlmodel_importer.exceptions import RowValidationError


class ImportArchive:
    """Writes per-run archive files under archive_path/<importer>/."""

    def __init__(self, archive_path: Path):
        self.archive_path = Path(archive_path)
        self.archive_path.mkdir(parents=True, exist_ok=True)

    def write(
        self,
        df: pd.DataFrame,
        importer_name: str,
        label: str,
        formats: tuple[str, ...] = ("parquet", "json"),
    ) -> dict[str, str]:
        """Write DataFrame to the archive.

        Args:
            df: Rows to archive
            importer_name: Importer name for directory structure
            label: Suffix identifying the run and content (e.g. '12_accepted')
            formats: Output formats ('parquet', 'json')

        Returns:
            Dictionary mapping format to output file path
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = self.archive_path / importer_name
        output_dir.mkdir(parents=True, exist_ok=True)

        paths = {}

        if "parquet" in formats:
            parquet_path = output_dir / f"{timestamp}_{label}.parquet"
            df.to_parquet(parquet_path, index=False)
            paths["parquet"] = str(parquet_path)

        if "json" in formats:
            json_path = output_dir / f"{timestamp}_{label}.json"
            df.to_json(json_path, orient="records", date_format="iso", default_handler=str)
            paths["json"] = str(json_path)

        return paths

    def write_records(
        self,
        records: list[dict[str, Any]],
        importer_name: str,
        label: str,
        formats: tuple[str, ...] = ("parquet", "json"),
    ) -> dict[str, str]:
        return self.write(pd.DataFrame.from_records(records), importer_name, label, formats)

    def write_rejects(
        self, rejects: list[RowValidationError], importer_name: str, label: str
    ) -> dict[str, str]:
        """Write rejected rows with their line numbers and errors as JSON."""
        rows = [
            {"line_number": reject.line_number, "errors": "; ".join(reject.errors), **reject.row}
            for reject in rejects
        ]
        return self.write(pd.DataFrame.from_records(rows), importer_name, label, formats=("json",))
