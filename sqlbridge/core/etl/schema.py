import logging
from typing import Iterable, Optional

from sqlalchemy import Column, MetaData, Table, Text, inspect
from sqlalchemy.ext.asyncio import AsyncConnection

from sqlbridge.core.etl.ingest import Record
from sqlbridge.core.identifiers import Identifier

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# SCHEMA MODULE
# Purpose: make sure the destination table exists before rows are classified.
# Tables are created from the first record only; an existing table is used
# as-is, even if its columns differ from the incoming batch.
# -----------------------------------------------------------------------------


def find_identifier_column(columns: Iterable[str]) -> Optional[str]:
    """First column named "id" in any letter case, or None."""
    for name in columns:
        if name.lower() == "id":
            return name
    return None


async def table_exists(conn: AsyncConnection, table: Identifier) -> bool:
    """
    Look the table up in the database catalog.

    Catalog errors (permissions, lost connection) propagate instead of being
    read as "table is missing".
    """
    return await conn.run_sync(
        lambda sync_conn: inspect(sync_conn).has_table(table.sql_name)
    )


async def ensure_table(
    conn: AsyncConnection, table: Identifier, sample_record: Record
) -> bool:
    """
    Create `table` from the sample record's columns unless it already exists.

    Every column is TEXT. The first column called "id" (any case) becomes the
    primary key. Runs on the caller's open transaction, so the CREATE rolls
    back together with the rest of the batch.

    Args:
        conn: Connection with an open transaction.
        table: Destination table.
        sample_record: First record of the batch; only its keys are used.

    Returns:
        True if the table was created, False if it was already there.
    """
    if await table_exists(conn, table):
        logger.debug(f"Table {table.quoted} exists, leaving structure unchanged")
        return False

    identifier = find_identifier_column(sample_record)
    columns = [
        Column(Identifier(name).sql_name, Text, primary_key=(name == identifier))
        for name in sample_record
    ]
    new_table = Table(table.sql_name, MetaData(), *columns)

    await conn.run_sync(new_table.create)
    logger.info(f"Created table {table.quoted} with {len(columns)} TEXT columns")
    return True
