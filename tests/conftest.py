import base64

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from sqlbridge.main import app
from sqlbridge.core.database import Database, get_database


# Fresh SQLite file per test so no state leaks between tests
@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    yield db
    await db.dispose()


# Client
@pytest_asyncio.fixture(scope="function")
async def client(database: Database):
    async def override_get_database():
        return database

    app.dependency_overrides[get_database] = override_get_database

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# Read a whole table back, bypassing the code under test
@pytest.fixture
def fetch_rows(database: Database):
    async def _fetch(table_name: str, order_by: str = None):
        sql = f'SELECT * FROM "{table_name}"'
        if order_by:
            sql += f' ORDER BY "{order_by}"'
        async with database.connect() as conn:
            result = await conn.exec_driver_sql(sql)
            return [dict(row._mapping) for row in result]

    return _fetch


@pytest.fixture
def table_exists(database: Database):
    async def _exists(table_name: str) -> bool:
        async with database.connect() as conn:
            result = await conn.exec_driver_sql(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table_name,),
            )
            return result.first() is not None

    return _exists


@pytest.fixture
def encode_csv():
    def _encode(text: str) -> str:
        return base64.b64encode(text.encode("utf-8")).decode("ascii")

    return _encode
