"""Schemas for backup/restore."""

from datetime import datetime

from pydantic import BaseModel


class BackupInfo(BaseModel):
    """A stored backup directory."""

    timestamp: str
    created_at: datetime
    files: list[str]
    size_bytes: int


class BackupRunResponse(BaseModel):
    timestamp: str
    path: str


class RestoreResponse(BaseModel):
    """Rows restored per table."""

    source: str
    rows: dict[str, int]
