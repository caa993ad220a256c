from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status

from sqlbridge.core import catalog, schemas
from sqlbridge.core.database import Database, get_database

router = APIRouter(prefix="/resources", tags=["Resources"])

database_dep = Annotated[Database, Depends(get_database)]


@router.get("", response_model=List[schemas.ResourceInfo])
async def list_resources(database: database_dep):
    """One schema resource per table."""
    table_names = await catalog.list_tables(database)
    return [
        schemas.ResourceInfo(
            uri=catalog.resource_uri(database.url, table_name),
            name=f'"{table_name}" database schema',
        )
        for table_name in table_names
    ]


@router.get("/{table_name}/schema", response_model=List[schemas.TableColumn])
async def read_table_schema(table_name: str, database: database_dep):
    try:
        return await catalog.describe_table(database, table_name)
    except LookupError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Table not found: {table_name}",
        )
