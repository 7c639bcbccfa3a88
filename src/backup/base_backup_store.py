# src/backup/base_backup_store.py - v1
"""Abstract backup store interface.

The overlay only needs two operations: snapshot a path under a namespace
and restore everything snapshotted under that namespace.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseBackupStore(ABC):
    """Unified interface for backup/restore backends."""

    @abstractmethod
    def backup(self, path: str | Path, namespace: str, clean: bool = True) -> bool:
        """Snapshot ``path`` under ``namespace``.

        In clean mode a missing path is itself a restorable state: restoring
        removes whatever was created there afterwards.
        """

    @abstractmethod
    def restore_all(self, namespace: str) -> bool:
        """Restore every path snapshotted under ``namespace``."""

    @abstractmethod
    def has_backups(self, namespace: str) -> bool:
        """Return True if ``namespace`` holds any snapshot."""
