# src/backup/models.py - v1
"""Backup domain models: BackupEntry, BackupManifest."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class BackupEntry(BaseModel):
    """Snapshot of one path taken before it was faked."""

    path: str
    existed: bool
    kind: Literal["file", "dir", "symlink", "absent"]
    stored_as: str | None = None
    clean: bool = True
    created_at: datetime


class BackupManifest(BaseModel):
    """All snapshots taken under one namespace, in backup order."""

    namespace: str
    entries: list[BackupEntry] = Field(default_factory=list)

    def find(self, path: str) -> BackupEntry | None:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None
