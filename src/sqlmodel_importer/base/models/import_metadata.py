"""Row lineage mixin for import target tables.

Provides standard fields that tie a target row to the import run that last
wrote it:
- import_log_id: ImportLog row of the run that inserted or changed the row
- imported_at: When that run wrote the row
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import TIMESTAMP
from sqlmodel import Field

LINEAGE_COLUMNS = ("import_log_id", "imported_at")


class ImportMetadata:
    """Standard import lineage fields.

    Add to any target table definition:

    Example:
        class Product(ImportMetadata, SQLModel, table=True):
            sku: str = Field(primary_key=True)
            name: str

    Importers fill both fields on inserted and updated rows. Unchanged rows
    keep the lineage of the run that last changed them.
    """

    import_log_id: Optional[int] = Field(
        default=None,
        index=True,
        description="Import run that last inserted or updated this row",
    )

    imported_at: Optional[datetime] = Field(
        default=None,
        sa_type=TIMESTAMP(timezone=True),
        description="When this row was last written by an import",
    )
