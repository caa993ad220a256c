"""Read-only execution of caller-supplied SQL.

The statement runs inside a transaction that is made read-only and then
always rolled back, whatever the statement was and however it ended.
Statement errors come back as data; they are never raised to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from sqlbridge.core.database import Database

logger = logging.getLogger(__name__)


@dataclass
class QueryOutcome:
    """Rows from a successful query, or the error that stopped it."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


async def run_read_only(database: Database, sql: str) -> QueryOutcome:
    """
    Execute `sql` verbatim in a read-only transaction and roll it back.

    The text goes straight to the driver, with no bind-parameter parsing, so
    colons and percent signs in literals are left alone. Writes are refused
    by the database itself (SET TRANSACTION READ ONLY / PRAGMA query_only).

    Args:
        database: Pool to take the connection from.
        sql: Exactly one statement.

    Returns:
        QueryOutcome with rows as {column: value} dicts, or with `error` set.
    """
    logger.info(f"Executing SQL query: {sql}")

    async with database.connect() as conn:
        transaction = await conn.begin()
        try:
            await database.set_read_only(conn)
            result = await conn.exec_driver_sql(sql)
            rows = [dict(row._mapping) for row in result] if result.returns_rows else []
            return QueryOutcome(rows=rows)
        except SQLAlchemyError as e:
            logger.error(f"SQL query error: {e}")
            return QueryOutcome(error=str(e))
        finally:
            # Rollback problems are reported but never replace the outcome
            try:
                await transaction.rollback()
            except Exception as e:
                logger.warning(f"Could not roll back transaction: {e}")
            await database.clear_read_only(conn)
