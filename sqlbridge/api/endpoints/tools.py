from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from sqlbridge.core import schemas, tools
from sqlbridge.core.database import Database, get_database

router = APIRouter(prefix="/tools", tags=["Tools"])

database_dep = Annotated[Database, Depends(get_database)]


@router.get("", response_model=List[schemas.ToolDefinition])
async def list_tools():
    """Tool names, descriptions and JSON input schemas."""
    return tools.TOOLS


@router.post("/{name}", response_model=schemas.ToolResult)
async def run_tool(
    name: str,
    database: database_dep,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
):
    """
    Call a tool with the request body as its arguments.
    Tool failures come back as 200 with isError=true, like the stdio transport.
    """
    if tools.get_tool(name) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown tool: {name}"
        )

    return await tools.call_tool(database, name, arguments)
