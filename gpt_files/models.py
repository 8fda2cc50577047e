"""Pydantic models for the remote Assistants v2 resources."""

from __future__ import annotations

from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteModel(BaseModel):
    """Base for remote records; unknown fields are kept for raw output."""

    model_config = ConfigDict(extra="allow")


class FileDestination(str, Enum):
    FILE = "file"
    CODE = "code"

    @property
    def label(self) -> str:
        return "vector store" if self is FileDestination.FILE else "code interpreter"


class Tool(RemoteModel):
    type: str  # code_interpreter | file_search | function


class CodeInterpreterResources(RemoteModel):
    file_ids: List[str] = Field(default_factory=list)


class VectorStoreView(RemoteModel):
    file_ids: List[str] = Field(default_factory=list)


class FileSearchResources(RemoteModel):
    vector_store_ids: List[str] = Field(default_factory=list)
    vector_stores: Optional[List[VectorStoreView]] = None


class ToolResources(RemoteModel):
    code_interpreter: Optional[CodeInterpreterResources] = None
    file_search: Optional[FileSearchResources] = None


class Assistant(RemoteModel):
    id: str
    object: str = "assistant"
    name: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    model: str
    tools: List[Tool] = Field(default_factory=list)
    tool_resources: ToolResources = Field(default_factory=ToolResources)

    @field_validator("tool_resources", mode="before")
    @classmethod
    def _null_resources(cls, value):
        return {} if value is None else value

    def has_tool(self, tool_type: str) -> bool:
        return any(tool.type == tool_type for tool in self.tools)


class FileObject(RemoteModel):
    id: str
    filename: str
    bytes: int = 0
    created_at: int = 0
    purpose: str = "assistants"


class FileCounts(RemoteModel):
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    total: int = 0


class VectorStore(RemoteModel):
    id: str
    object: str = "vector_store"
    name: Optional[str] = None
    created_at: int = 0
    usage_bytes: int = 0
    status: Optional[str] = None  # expired | in_progress | completed
    expires_at: Optional[int] = None
    last_active_at: Optional[int] = None
    file_counts: FileCounts = Field(default_factory=FileCounts)


class VectorStoreFile(RemoteModel):
    id: str
    object: str = "vector_store.file"
    vector_store_id: str
    usage_bytes: int = 0
    created_at: int = 0
    status: str = "in_progress"  # in_progress | completed | failed | cancelled


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Cursor pagination envelope returned by every list endpoint."""

    data: List[T] = Field(default_factory=list)
    has_more: bool = False
    first_id: Optional[str] = None
    last_id: Optional[str] = None
