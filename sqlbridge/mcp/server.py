"""MCP Server implementation for sqlbridge.

Exposes the shared tools and one schema resource per table over stdio.
"""

import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from sqlbridge.core import catalog, tools
from sqlbridge.core.database import Database

logger = logging.getLogger(__name__)


class ToolCallError(RuntimeError):
    """Raised to make the MCP server answer with isError=true."""


def create_server(database: Database) -> Server:
    """Create and configure the MCP server bound to one connection pool."""
    server = Server("sqlbridge")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in tools.TOOLS
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Execute a tool and return results."""
        result = await tools.call_tool(database, name, arguments)
        if result.is_error:
            # The low-level server turns a raised error into an isError result
            raise ToolCallError(result.text)
        return [TextContent(type="text", text=item.text) for item in result.content]

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        """One schema resource per table."""
        table_names = await catalog.list_tables(database)
        return [
            Resource(
                uri=AnyUrl(catalog.resource_uri(database.url, table_name)),
                name=f'"{table_name}" database schema',
                mimeType="application/json",
            )
            for table_name in table_names
        ]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        """Column names and types of one table."""
        table_name = catalog.table_from_resource_uri(str(uri))
        columns = await catalog.describe_table(database, table_name)
        text = json.dumps([column.model_dump() for column in columns], indent=2)
        return [ReadResourceContents(content=text, mime_type="application/json")]

    return server


async def run_server(database: Database) -> None:
    """Run the MCP server using stdio transport, then release the pool."""
    server = create_server(database)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("sqlbridge MCP server running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await database.dispose()
