# src/fakes/overlay.py - v1
"""Overlay manager: install queued fakes over the live filesystem and revert them.

Every destination is snapshotted through the backup store (clean mode, so a
destination that did not exist is restored to non-existence) before being
overwritten. Application is best effort: a failing entry is recorded and
the pass continues with the next one.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from sosharness.backup.base_backup_store import BaseBackupStore
from sosharness.core.errors import BackupFailure, CopyFailure
from sosharness.fakes.models import (
    ApplyReport,
    CommandFake,
    FakeOutcome,
    FileFake,
    TreeFake,
    UnknownFake,
)
from sosharness.fakes.queue import FakeQueue

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class OverlayManager:
    """Apply and revert the fakes of one harness run."""

    def __init__(
        self,
        queue: FakeQueue,
        backup_store: BaseBackupStore,
        namespace: str,
    ) -> None:
        self._queue = queue
        self._backup = backup_store
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def apply_all(self) -> ApplyReport:
        """Install every queued fake in order.

        Returns:
            ApplyReport with one outcome per parsed entry.
        """
        report = ApplyReport()
        for entry in self._queue.entries():
            if isinstance(entry, (CommandFake, FileFake)):
                outcome = self._apply_copy(entry)
            elif isinstance(entry, TreeFake):
                logger.warning(
                    "Skipping unimplemented TREE fake entry (%s)", entry.archive
                )
                outcome = FakeOutcome(
                    line=entry.to_line(), kind=entry.kind, status="skipped",
                    detail="tree fakes are not extracted",
                )
            else:
                logger.warning("Unknown fake type (%s)", entry.kind)
                outcome = FakeOutcome(
                    line=entry.to_line(), kind=entry.kind, status="unknown",
                )
            report.outcomes.append(outcome)

        logger.info(
            "Applied %d of %d fakes (%d failed)",
            report.applied, len(report.outcomes), report.failed,
            extra={"data": {
                "applied": report.applied,
                "total": len(report.outcomes),
                "failed": report.failed,
            }},
        )
        return report

    def revert_all(self) -> bool:
        """Clear the queue, then restore everything backed up in this namespace.

        The queue is cleared even when restoring fails.
        """
        self._queue.reset()
        if self._backup.restore_all(self._namespace):
            logger.info("Fakes successfully uninstalled")
            return True
        logger.error("Fake uninstall error in namespace %s", self._namespace)
        return False

    def _apply_copy(self, entry: CommandFake | FileFake) -> FakeOutcome:
        line = entry.to_line()
        try:
            self._install(entry)
        except BackupFailure as exc:
            logger.error("%s, skipping", exc)
            return FakeOutcome(
                line=line, kind=entry.kind, status="backup_failed", detail=str(exc),
            )
        except CopyFailure as exc:
            logger.error("%s", exc)
            return FakeOutcome(
                line=line, kind=entry.kind, status="copy_failed", detail=str(exc),
            )

        logger.info("Installed %s fake '%s' to '%s'", entry.kind, entry.source, entry.destination)
        return FakeOutcome(line=line, kind=entry.kind, status="applied")

    def _install(self, entry: CommandFake | FileFake) -> None:
        dest = Path(entry.destination)
        if not self._backup.backup(dest, self._namespace, clean=True):
            raise BackupFailure(f"Cannot backup '{dest}'")

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            if dest.is_symlink():
                # replace the link itself, never write through it
                dest.unlink()
            shutil.copyfile(entry.source, dest)
            if isinstance(entry, CommandFake):
                os.chmod(dest, os.stat(dest).st_mode | _EXEC_BITS)
        except OSError as exc:
            raise CopyFailure(
                f"Cannot install {entry.kind} fake '{entry.source}' to '{dest}': {exc}"
            ) from exc
