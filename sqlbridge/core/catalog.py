from typing import List
from urllib.parse import quote, unquote, urlsplit

from sqlalchemy import inspect
from sqlalchemy.engine import URL

from sqlbridge.core.database import Database
from sqlbridge.core.schemas import TableColumn

SCHEMA_PATH = "schema"


# -----------------------------------------------------------------------------
# CATALOG MODULE
# Purpose: read-only views of what tables exist and what columns they have.
# These back the "resources" side of both transports.
# -----------------------------------------------------------------------------


async def list_tables(database: Database) -> List[str]:
    """Names of all tables in the default schema, sorted."""
    async with database.connect() as conn:
        names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    return sorted(names)


async def describe_table(database: Database, table_name: str) -> List[TableColumn]:
    """
    Column names and type names for one table.

    Raises:
        LookupError: the table does not exist.
    """

    def _columns(sync_conn):
        inspector = inspect(sync_conn)
        if not inspector.has_table(table_name):
            raise LookupError(f"Table not found: {table_name}")
        return inspector.get_columns(table_name)

    async with database.connect() as conn:
        columns = await conn.run_sync(_columns)

    return [
        TableColumn(column_name=column["name"], data_type=str(column["type"]).lower())
        for column in columns
    ]


def resource_base_url(url: URL) -> str:
    """Database URL with the driver suffix and the password removed."""
    # URL.set(password=None) keeps the old password, so build a fresh URL
    public = URL.create(
        drivername=url.get_backend_name(),
        username=url.username,
        host=url.host,
        port=url.port,
        database=url.database,
    )
    return public.render_as_string(hide_password=False).rstrip("/")


def resource_uri(url: URL, table_name: str) -> str:
    """
    URI naming the schema resource of one table.

    Example:
        postgresql+asyncpg://app:secret@db:5432/shop, "orders"
            -> "postgresql://app@db:5432/shop/orders/schema"
    """
    return f"{resource_base_url(url)}/{quote(table_name, safe='')}/{SCHEMA_PATH}"


def table_from_resource_uri(uri: str) -> str:
    """Reverse of resource_uri: pull the table name back out."""
    path_components = urlsplit(str(uri)).path.split("/")
    schema = path_components.pop() if path_components else ""
    table_name = path_components.pop() if path_components else ""

    if schema != SCHEMA_PATH or not table_name:
        raise ValueError(f"Invalid resource URI: {uri}")

    return unquote(table_name)
