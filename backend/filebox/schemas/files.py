"""File catalog schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class FileKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"

    @classmethod
    def parse(cls, value: "FileKind | str") -> "FileKind":
        """Accept enum members, their values and the legacy ``pdf`` alias."""
        if isinstance(value, FileKind):
            return value
        value = str(value).strip().lower()
        if value == "pdf":
            return cls.DOCUMENT
        return cls(value)


class SyncState(str, Enum):
    PENDING = "pending"  # reserved for offline uploads
    SYNCED = "synced"


class FileRecord(BaseModel):
    """One object owned by the signed-in identity."""

    model_config = ConfigDict(frozen=True)

    id: str  # full remote key, changes on rename
    name: str
    locator: str
    kind: FileKind
    sync_state: SyncState = SyncState.SYNCED

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value


class CatalogSnapshot(BaseModel):
    """What the presentation layer renders."""
    busy: bool
    records: list[FileRecord]


class RenameRequest(BaseModel):
    name: str
