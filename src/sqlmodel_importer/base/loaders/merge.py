"""Set-based merge of a staging table into its target table.

Rows are matched on the natural key. Matched rows whose values differ are
updated, unmatched staging rows are inserted and, for snapshot imports,
target rows missing from staging are deleted. Counts are taken before any
statement runs, inside the same transaction.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

from sqlalchemy import and_, delete, false, func, insert, literal, literal_column, or_, select, update
from sqlalchemy.engine import Connection

from sqlmodel_importer.exceptions import ConfigurationError

from .staging import StagingTable

logger = logging.getLogger(__name__)


@dataclass
class MergeCounts:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def merge_staging(
    conn: Connection,
    staging: StagingTable,
    key_columns: list[str],
    delete_missing: bool = False,
    lineage: Optional[dict[str, Any]] = None,
) -> MergeCounts:
    """Merge staged rows into the target table.

    Args:
        conn: Connection holding the open import transaction
        staging: Loaded staging table
        key_columns: Natural key columns (must be staged)
        delete_missing: Delete target rows whose key is not staged
        lineage: Extra target column values written on inserted and
            updated rows (e.g. import_log_id)

    Returns:
        MergeCounts
    """
    target = staging.target
    stage = staging.table

    missing_keys = [k for k in key_columns if k not in staging.columns]
    if not key_columns or missing_keys:
        raise ConfigurationError(f"Key columns must be staged, missing: {missing_keys or key_columns}")

    value_columns = [c for c in staging.columns if c not in key_columns]
    lineage = {k: v for k, v in (lineage or {}).items() if k in target.c and k not in staging.columns}

    key_match = and_(*[target.c[k] == stage.c[k] for k in key_columns])
    if value_columns:
        changed = or_(*[target.c[c].is_distinct_from(stage.c[c]) for c in value_columns])
    else:
        changed = false()

    staged = conn.execute(select(func.count()).select_from(stage)).scalar_one()
    matched = conn.execute(
        select(func.count()).select_from(stage.join(target, key_match))
    ).scalar_one()
    updated = conn.execute(
        select(func.count()).select_from(stage.join(target, key_match)).where(changed)
    ).scalar_one()

    in_staging = select(literal_column("1")).select_from(stage).where(key_match).correlate(target).exists()
    in_target = select(literal_column("1")).select_from(target).where(key_match).correlate(stage).exists()

    deleted = 0
    if delete_missing:
        deleted = conn.execute(
            select(func.count()).select_from(target).where(~in_staging)
        ).scalar_one()

    counts = MergeCounts(
        inserted=staged - matched,
        updated=updated,
        unchanged=matched - updated,
        deleted=deleted,
    )

    if deleted:
        conn.execute(delete(target).where(~in_staging))

    if updated:
        changed_in_staging = (
            select(literal_column("1")).select_from(stage).where(key_match, changed).correlate(target).exists()
        )
        values = {
            c: select(stage.c[c]).where(key_match).correlate(target).scalar_subquery()
            for c in value_columns
        }
        values.update(lineage)
        conn.execute(update(target).where(changed_in_staging).values(values))

    if counts.inserted:
        lineage_names = list(lineage)
        source_columns = [stage.c[c] for c in staging.columns] + [
            literal(lineage[name], type_=target.c[name].type).label(name) for name in lineage_names
        ]
        conn.execute(
            insert(target).from_select(
                staging.columns + lineage_names,
                select(*source_columns).where(~in_target),
            )
        )

    logger.info(
        f"Merged {staged} staged rows into {target.name}: "
        f"{counts.inserted} inserted, {counts.updated} updated, "
        f"{counts.unchanged} unchanged, {counts.deleted} deleted"
    )
    return counts
