from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .services.file_ops import FileEntry, format_modified


class FileEntryOut(BaseModel):
    name: str
    path: str
    type: Literal['file', 'dir']
    size: int
    modified: str
    extension: str = ''

    @classmethod
    def from_entry(cls, entry: FileEntry) -> 'FileEntryOut':
        return cls(
            name=entry.name,
            path=entry.path,
            type=entry.type,
            size=entry.size,
            modified=format_modified(entry.modified),
            extension=entry.extension,
        )


class PreviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str
    name: str
    content: str
    size: int
    modified: str
    type: str
    is_binary: bool = Field(alias='isBinary')
    offset: int
    limit: int
    has_more: bool = Field(alias='hasMore')


class ErrorResponse(BaseModel):
    error: str
    code: str


class HealthResponse(BaseModel):
    status: str = 'ok'
