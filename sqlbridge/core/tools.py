"""Tool definitions and dispatch shared by the MCP and REST transports.

Tools:
- query: run a read-only SQL statement
- uploadCsv: upsert a base64-encoded CSV file into a table
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlbridge.core import schemas
from sqlbridge.core.database import Database
from sqlbridge.core.etl import pipeline
from sqlbridge.core.query import run_read_only

logger = logging.getLogger(__name__)

QUERY_TOOL = "query"
UPLOAD_CSV_TOOL = "uploadCsv"

ToolArguments = Union[Mapping[str, Any], str, None]


TOOLS: List[schemas.ToolDefinition] = [
    schemas.ToolDefinition(
        name=QUERY_TOOL,
        description="Run a read-only SQL query",
        input_schema={
            "type": "object",
            "properties": {
                "sql": {"type": "string"},
            },
            "required": ["sql"],
        },
    ),
    schemas.ToolDefinition(
        name=UPLOAD_CSV_TOOL,
        description="Upload and process a CSV file into database tables",
        input_schema={
            "type": "object",
            "properties": {
                "fileName": {"type": "string"},
                "fileData": {
                    "type": "string",
                    "description": "Base64 encoded CSV file data",
                },
                "tableName": {
                    "type": "string",
                    "description": "Name for the database table to be created (optional)",
                },
            },
            "required": ["fileName", "fileData"],
        },
    ),
]


def parse_arguments(arguments: ToolArguments) -> Dict[str, Any]:
    """
    Normalize tool arguments to a dict.

    Some clients send the arguments object as a JSON-encoded string.
    """
    if arguments is None:
        return {}

    if isinstance(arguments, str):
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ValueError(f"Could not parse arguments as JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError("Tool arguments must be a JSON object")
        return parsed

    return dict(arguments)


def _query_arguments(arguments: ToolArguments) -> Dict[str, Any]:
    # A bare SELECT statement is accepted in place of {"sql": ...}
    if isinstance(arguments, str) and arguments.strip().upper().startswith("SELECT"):
        try:
            return parse_arguments(arguments)
        except ValueError:
            return {"sql": arguments}
    return parse_arguments(arguments)


async def call_tool(
    database: Database, name: str, arguments: ToolArguments = None
) -> schemas.ToolResult:
    """
    Run one tool and wrap its outcome.

    Failures (bad arguments, bad input data, database errors) come back as a
    ToolResult with is_error set instead of being raised.
    """
    logger.info(f"Handling tool request: {name}")

    if name == QUERY_TOOL:
        return await _query(database, arguments)
    if name == UPLOAD_CSV_TOOL:
        return await _upload_csv(database, arguments)

    logger.warning(f"Unknown tool: {name}")
    return schemas.ToolResult.fail(f"Unknown tool: {name}")


async def _query(database: Database, arguments: ToolArguments) -> schemas.ToolResult:
    try:
        request = schemas.QueryRequest.model_validate(_query_arguments(arguments))
    except ValueError as e:
        logger.error(f"Query preparation error: {e}")
        return schemas.ToolResult.fail(f"Error preparing SQL query: {e}")

    try:
        outcome = await run_read_only(database, request.sql)
    except Exception as e:
        # Connection could not be acquired or the transaction could not start
        logger.error(f"SQL query error: {e}")
        return schemas.ToolResult.fail(f"Error executing SQL query: {e}")

    if not outcome.success:
        return schemas.ToolResult.fail(f"Error executing SQL query: {outcome.error}")

    return schemas.ToolResult.ok(json.dumps(outcome.rows, indent=2, default=str))


async def _upload_csv(database: Database, arguments: ToolArguments) -> schemas.ToolResult:
    try:
        request = schemas.UploadCsvRequest.model_validate(parse_arguments(arguments))
        summary = await pipeline.ingest_upload(database, request)
    except Exception as e:
        logger.error(f"Error processing CSV: {e}")
        return schemas.ToolResult.fail(f"Error processing CSV: {e}")

    result = {table_name: counts.model_dump() for table_name, counts in summary.items()}
    logger.info(f"CSV processing complete: {json.dumps(result)}")
    return schemas.ToolResult.ok(json.dumps(result, indent=2))


def get_tool(name: str) -> Optional[schemas.ToolDefinition]:
    for tool in TOOLS:
        if tool.name == name:
            return tool
    return None
