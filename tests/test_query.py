import logging

import pytest
from sqlalchemy.ext.asyncio import AsyncTransaction

from sqlbridge.core.etl import pipeline
from sqlbridge.core.query import run_read_only

PEOPLE_CSV = b"id,name\n1,Alice\n2,Bob\n"


@pytest.mark.asyncio
async def test_select_returns_rows_as_dicts(database):
    await pipeline.ingest_csv(database, PEOPLE_CSV, "people")

    outcome = await run_read_only(database, 'SELECT id, name FROM people ORDER BY id')

    assert outcome.success
    assert outcome.rows == [{"id": "1", "name": "Alice"}, {"id": "2", "name": "Bob"}]


@pytest.mark.asyncio
async def test_sql_is_passed_verbatim(database):
    """Colons and percent signs are not treated as bind parameters"""
    outcome = await run_read_only(database, "SELECT '10:30' AS t, '100%' AS p, ':name' AS n")

    assert outcome.rows == [{"t": "10:30", "p": "100%", "n": ":name"}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "sql",
    [
        "DELETE FROM people",
        "INSERT INTO people (id, name) VALUES ('3', 'Mallory')",
        "UPDATE people SET name = 'x'",
        "DROP TABLE people",
    ],
)
async def test_writes_are_refused_and_leave_table_unchanged(database, fetch_rows, sql):
    await pipeline.ingest_csv(database, PEOPLE_CSV, "people")

    outcome = await run_read_only(database, sql)

    assert not outcome.success
    assert outcome.error
    rows = await fetch_rows("people", order_by="id")
    assert [r["name"] for r in rows] == ["Alice", "Bob"]


@pytest.mark.asyncio
async def test_create_table_is_refused(database, table_exists):
    outcome = await run_read_only(database, "CREATE TABLE sneaky (x TEXT)")

    assert not outcome.success
    assert not await table_exists("sneaky")


@pytest.mark.asyncio
async def test_invalid_sql_is_returned_not_raised(database):
    outcome = await run_read_only(database, "SELEC nonsense")

    assert not outcome.success
    assert "syntax error" in outcome.error
    assert outcome.rows == []


@pytest.mark.asyncio
async def test_pool_is_writable_again_after_guarded_query(database, fetch_rows):
    """The read-only flag must not stick to the pooled connection"""
    await run_read_only(database, "SELECT 1")
    await run_read_only(database, "DELETE FROM nowhere")

    summary = await pipeline.ingest_csv(database, PEOPLE_CSV, "people")

    assert summary["people"].created == 2
    assert len(await fetch_rows("people")) == 2


@pytest.mark.asyncio
async def test_rollback_failure_is_logged_not_returned(database, monkeypatch, caplog):
    async def broken_rollback(self):
        raise RuntimeError("connection went away")

    monkeypatch.setattr(AsyncTransaction, "rollback", broken_rollback)

    with caplog.at_level(logging.WARNING, logger="sqlbridge.core.query"):
        outcome = await run_read_only(database, "SELECT 42 AS answer")

    assert outcome.success
    assert outcome.rows == [{"answer": 42}]
    assert "Could not roll back transaction" in caplog.text
