from typing import Iterable, Optional

from sqlalchemy import and_, column, insert, literal_column, select, table, update
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql.expression import TableClause

from sqlbridge.core.etl.ingest import Record
from sqlbridge.core.etl.schema import find_identifier_column
from sqlbridge.core.identifiers import Identifier
from sqlbridge.core.schemas import RowAction


# -----------------------------------------------------------------------------
# UPSERT MODULE
# Purpose: decide whether one record is already stored, then insert it,
# update it, or leave it alone.
#
# Dedup key:
#   - record has a non-empty "id"  -> match on id, update the other columns
#   - no id                        -> match on every column (exact duplicate),
#                                     skip on match since no single row can
#                                     be targeted safely
# -----------------------------------------------------------------------------


def _table_clause(target: Identifier, columns: Iterable[str]) -> TableClause:
    return table(target.sql_name, *[column(Identifier(name).sql_name) for name in columns])


def record_identifier(record: Record) -> Optional[str]:
    """Name of the record's identifier column if it carries a usable value."""
    name = find_identifier_column(record)
    if name is None or record[name] in (None, ""):
        return None
    return name


async def find_existing(conn: AsyncConnection, target: Identifier, record: Record) -> bool:
    """
    Check whether `record` already has a row in `target`.

    Args:
        conn: Connection with the batch's open transaction (sees rows the
            same batch inserted earlier).
        target: Table to look in.
        record: Incoming record.

    Returns:
        True if a matching row exists.
    """
    # No columns means no predicate; matching on nothing would match every row
    if not record:
        return False

    clause = _table_clause(target, record)
    id_column = record_identifier(record)

    if id_column is not None:
        condition = clause.c[id_column] == record[id_column]
    else:
        # None compares as IS NULL here
        condition = and_(*[clause.c[name] == value for name, value in record.items()])

    stmt = select(literal_column("1")).select_from(clause).where(condition).limit(1)
    result = await conn.execute(stmt)
    return result.first() is not None


async def apply_record(
    conn: AsyncConnection, target: Identifier, record: Record, existing: bool
) -> RowAction:
    """
    Write one classified record. Values are bound as parameters.

    Returns:
        CREATED for an insert, UPDATED for an update by id, SKIPPED when the
        row exists but there is nothing that can or should be written.
    """
    clause = _table_clause(target, record)

    if not existing:
        await conn.execute(insert(clause).values(dict(record)))
        return RowAction.CREATED

    id_column = record_identifier(record)
    if id_column is None:
        return RowAction.SKIPPED

    changes = {name: value for name, value in record.items() if name != id_column}
    if not changes:
        # Only the id column: the stored row already holds everything we have
        return RowAction.SKIPPED

    stmt = (
        update(clause)
        .where(clause.c[id_column] == record[id_column])
        .values(changes)
    )
    await conn.execute(stmt)
    return RowAction.UPDATED
