# src/backup/local_store.py - v1
"""Local filesystem backup store (default backend).

Snapshots are copied under ``{backup_root}/{namespace}/files/`` and described
by a JSON manifest next to them. Symlinks are preserved as links and
directories are copied as trees.
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from sosharness.backup.base_backup_store import BaseBackupStore
from sosharness.backup.models import BackupEntry, BackupManifest
from sosharness.core.errors import RevertFailure

logger = logging.getLogger(__name__)

_MANIFEST_FILE = "manifest.json"
_FILES_DIR = "files"


class LocalBackupStore(BaseBackupStore):
    """File-based backup store using a JSON manifest per namespace."""

    def __init__(self, backup_root: Path) -> None:
        self._root = Path(backup_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    def backup(self, path: str | Path, namespace: str, clean: bool = True) -> bool:
        """Snapshot a path. A path already saved in the namespace keeps its first snapshot."""
        target = Path(os.path.abspath(path))
        try:
            manifest = self._load(namespace)
        except ValidationError as exc:
            logger.error("Corrupt backup manifest for namespace %s: %s", namespace, exc)
            return False
        if manifest.find(str(target)) is not None:
            logger.debug("'%s' already backed up in namespace %s", target, namespace)
            return True

        stored = self._files_dir(namespace) / str(len(manifest.entries))
        try:
            if target.is_symlink():
                kind = "symlink"
                stored.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(target, stored, follow_symlinks=False)
            elif target.is_dir():
                kind = "dir"
                shutil.copytree(target, stored, symlinks=True)
            elif target.exists():
                kind = "file"
                stored.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(target, stored)
            elif clean:
                kind = "absent"
            else:
                logger.error("Cannot back up missing '%s' without clean mode", target)
                return False
        except OSError as exc:
            logger.error("Backup of '%s' failed: %s", target, exc)
            return False

        manifest.entries.append(
            BackupEntry(
                path=str(target),
                existed=kind != "absent",
                kind=kind,  # type: ignore[arg-type]
                stored_as=str(stored) if kind != "absent" else None,
                clean=clean,
                created_at=datetime.now(timezone.utc),
            )
        )
        self._save(manifest)
        logger.info("Backed up '%s' (%s) in namespace %s", target, kind, namespace)
        return True

    def restore_all(self, namespace: str) -> bool:
        """Restore all snapshots, newest first. The namespace is dropped on full success."""
        manifest_path = self._manifest_path(namespace)
        if not manifest_path.exists():
            logger.debug("Nothing to restore in namespace %s", namespace)
            return True

        try:
            manifest = self._load(namespace)
        except ValidationError as exc:
            logger.error("Corrupt backup manifest %s: %s", manifest_path, exc)
            return False

        failures = 0
        for entry in reversed(manifest.entries):
            try:
                self._restore_entry(entry)
            except RevertFailure as exc:
                failures += 1
                logger.error("%s", exc)

        if failures:
            logger.error(
                "Namespace %s: %d of %d paths not restored",
                namespace, failures, len(manifest.entries),
            )
            return False

        shutil.rmtree(self._namespace_dir(namespace), ignore_errors=True)
        logger.info(
            "Restored %d paths from namespace %s", len(manifest.entries), namespace
        )
        return True

    def has_backups(self, namespace: str) -> bool:
        return self._manifest_path(namespace).exists()

    # --- Internals ---

    def _restore_entry(self, entry: BackupEntry) -> None:
        try:
            _restore(entry)
        except OSError as exc:
            raise RevertFailure(f"Restore of '{entry.path}' failed: {exc}") from exc

    def _namespace_dir(self, namespace: str) -> Path:
        safe = namespace.replace("/", "_").replace("\\", "_")
        return self._root / safe

    def _files_dir(self, namespace: str) -> Path:
        return self._namespace_dir(namespace) / _FILES_DIR

    def _manifest_path(self, namespace: str) -> Path:
        return self._namespace_dir(namespace) / _MANIFEST_FILE

    def _load(self, namespace: str) -> BackupManifest:
        path = self._manifest_path(namespace)
        if not path.exists():
            return BackupManifest(namespace=namespace)
        return BackupManifest.model_validate_json(path.read_text(encoding="utf-8"))

    def _save(self, manifest: BackupManifest) -> None:
        path = self._manifest_path(manifest.namespace)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")


def _remove(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def _restore(entry: BackupEntry) -> None:
    target = Path(entry.path)
    if entry.clean or entry.kind in ("symlink", "file"):
        _remove(target)
    if not entry.existed or entry.stored_as is None:
        return

    stored = Path(entry.stored_as)
    target.parent.mkdir(parents=True, exist_ok=True)
    if entry.kind == "dir":
        shutil.copytree(stored, target, symlinks=True, dirs_exist_ok=True)
    else:
        shutil.copy2(stored, target, follow_symlinks=False)
