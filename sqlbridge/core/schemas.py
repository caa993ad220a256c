from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# =========================
# Enums
# =========================
class RowAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


# =========================
# INGESTION
# =========================
class UpsertSummary(BaseModel):
    """Per-table reconciliation counters for one ingestion call."""

    created: int = Field(default=0, ge=0)
    updated: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)

    def record(self, action: RowAction) -> None:
        if action is RowAction.CREATED:
            self.created += 1
        elif action is RowAction.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped


class UploadCsvRequest(BaseModel):
    file_name: str = Field(alias="fileName", min_length=1)
    # Base64 encoded CSV file data
    file_data: str = Field(alias="fileData", min_length=1)
    # Overrides the name derived from file_name
    table_name: Optional[str] = Field(default=None, alias="tableName")

    model_config = ConfigDict(populate_by_name=True)


# =========================
# QUERY
# =========================
class QueryRequest(BaseModel):
    sql: str = Field(min_length=1)


# =========================
# TOOLS / RESOURCES
# =========================
class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """What every tool call returns, on both transports."""

    content: List[TextContent]
    is_error: bool = Field(default=False, alias="isError")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=False)

    @classmethod
    def fail(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(item.text for item in self.content)


class ToolDefinition(BaseModel):
    name: str
    description: str
    input_schema: Dict[str, Any] = Field(alias="inputSchema")

    model_config = ConfigDict(populate_by_name=True)


class TableColumn(BaseModel):
    column_name: str
    data_type: str


class ResourceInfo(BaseModel):
    uri: str
    name: str
    mime_type: str = Field(default="application/json", alias="mimeType")

    model_config = ConfigDict(populate_by_name=True)
