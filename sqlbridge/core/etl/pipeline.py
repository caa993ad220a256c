import logging
from typing import Dict, List, Union

from sqlbridge.core import schemas
from sqlbridge.core.database import Database
from sqlbridge.core.etl import ingest
from sqlbridge.core.etl.ingest import Record
from sqlbridge.core.etl.schema import ensure_table
from sqlbridge.core.etl.upsert import apply_record, find_existing
from sqlbridge.core.identifiers import Identifier

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PIPELINE MODULE - Orchestration
# Purpose: run schema -> classify -> write for every record of one upload,
# inside a single transaction, and report what happened per table.
# Either every row lands or none does.
# -----------------------------------------------------------------------------


async def ingest_records(
    database: Database, target: Identifier, records: List[Record]
) -> Dict[str, schemas.UpsertSummary]:
    """
    Upsert a batch of records into one table atomically.

    Rows are handled one at a time in input order, on one connection and one
    transaction, so a later exact duplicate of a row inserted earlier in the
    same batch is seen as existing.

    Args:
        database: Pool to take the connection from.
        target: Destination table.
        records: Batch, in input order. All records share the first one's keys.

    Returns:
        {table name: UpsertSummary}

    Raises:
        InvalidIdentifierError: a column name cannot be used in SQL.
        SQLAlchemyError: any statement failed; nothing was written.
    """
    summary = {target.name: schemas.UpsertSummary()}
    if not records:
        logger.info(f"No rows to ingest into {target.quoted}")
        return summary

    # Reject bad column names before a connection is taken
    for name in records[0]:
        Identifier(name)

    table_summary = summary[target.name]
    try:
        async with database.connect() as conn:
            async with conn.begin():
                created = await ensure_table(conn, target, records[0])
                if created:
                    logger.info(f"Ingesting into new table {target.quoted}")

                for record in records:
                    existing = await find_existing(conn, target, record)
                    action = await apply_record(conn, target, record, existing)
                    table_summary.record(action)
    except Exception as e:
        logger.error(f"Ingestion into {target.quoted} rolled back: {e}")
        raise

    logger.info(
        f"Ingested {len(records)} rows into {target.quoted}: "
        f"{table_summary.created} created, {table_summary.updated} updated, "
        f"{table_summary.skipped} skipped"
    )
    return summary


async def ingest_csv(
    database: Database, file_content: bytes, table_name: Union[str, Identifier]
) -> Dict[str, schemas.UpsertSummary]:
    """
    Complete CSV ingestion: parse, then upsert every row.

    Parsing happens before any connection is taken, so malformed input never
    opens a transaction.
    """
    target = table_name if isinstance(table_name, Identifier) else Identifier(table_name)
    records = ingest.read_csv_file(file_content)
    return await ingest_records(database, target, records)


async def ingest_upload(
    database: Database, request: schemas.UploadCsvRequest
) -> Dict[str, schemas.UpsertSummary]:
    """Entry point for the uploadCsv tool: base64 payload + file name."""
    logger.info(f"Processing CSV file: {request.file_name}")

    file_content = ingest.decode_file_data(request.file_data)
    logger.info(f"File data decoded, length: {len(file_content)} bytes")

    target = ingest.resolve_table_name(request.file_name, request.table_name)
    logger.info(f"Using table name: {target.name}")

    return await ingest_csv(database, file_content, target)
