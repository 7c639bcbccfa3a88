# src/cache/report_store.py - v1
"""Report store: stored report archives plus a line-oriented DB.

Each generated report is moved into the store directory together with its
checksum file and described by one DB line. Lines are only appended, except
for the reuse counter bump on a cache hit (atomic rewrite) and purge.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path

from sosharness.cache.models import (
    ReportFingerprint,
    StoreFile,
    StoreListing,
    StoreRecord,
)
from sosharness.storage import layout

logger = logging.getLogger(__name__)


class ReportStore:
    """File-based report cache keyed by ReportFingerprint."""

    def __init__(
        self,
        store_dir: Path,
        db_path: Path,
        name_prefix: str = "sosreport",
        checksum_suffixes: list[str] | None = None,
    ) -> None:
        self._dir = Path(store_dir).expanduser()
        self._dir.mkdir(parents=True, exist_ok=True)
        self._db = Path(db_path).expanduser()
        self._db.touch(exist_ok=True)
        self._prefix = name_prefix
        self._checksum_suffixes = checksum_suffixes or [".md5"]

    @property
    def store_dir(self) -> Path:
        return self._dir

    @property
    def db_path(self) -> Path:
        return self._db

    # --- DB ---

    def records(self) -> list[StoreRecord]:
        """Parse all DB lines, skipping malformed ones."""
        parsed: list[StoreRecord] = []
        for line in self._db.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                parsed.append(StoreRecord.from_line(line))
            except ValueError as e:
                logger.warning("Skipping malformed DB line: %s", e)
        return parsed

    def append(self, record: StoreRecord) -> None:
        """Append one record to the DB."""
        with self._db.open("a", encoding="utf-8") as fh:
            fh.write(record.to_line() + "\n")
        logger.info("Recorded report %s as <%s>", record.filename, record.fingerprint.report_id)

    def lookup(self, fingerprint: ReportFingerprint) -> StoreRecord | None:
        """Find a reusable report for ``fingerprint`` and count the reuse.

        A record only matches when every fingerprint field is equal and its
        report file is still present in the store.
        """
        lines = self._db.read_text(encoding="utf-8").splitlines()
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            try:
                record = StoreRecord.from_line(line)
            except ValueError:
                continue
            if record.fingerprint != fingerprint:
                continue
            if not self.report_path(record).is_file():
                logger.warning(
                    "Report %s for <%s> is missing from the store, ignoring record",
                    record.filename, fingerprint.report_id,
                )
                continue

            record.reuse_count += 1
            lines[index] = record.to_line()
            self._rewrite(lines)
            logger.info(
                "Reusing report %s (use #%d)", record.filename, record.reuse_count
            )
            return record
        return None

    def _rewrite(self, lines: list[str]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self._db.parent, prefix=".db.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.writelines(f"{line}\n" for line in lines)
            os.replace(tmp, self._db)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # --- Reports ---

    def report_path(self, record: StoreRecord) -> Path:
        return self._dir / record.filename

    def adopt(self, report: Path) -> Path:
        """Move a freshly generated report and its checksum file into the store.

        A name already taken in the store gets a ``-<n>`` suffix before its
        extensions; stored reports are never overwritten.

        Returns:
            New path of the report inside the store.

        Raises:
            FileNotFoundError: If ``report`` does not exist.
        """
        report = Path(report)
        if not report.is_file():
            raise FileNotFoundError(f"report {report} does not exist")
        target = self._free_target(report.name)
        if target.name != report.name:
            logger.warning(
                "Store already holds %s, storing as %s", report.name, target.name
            )
        shutil.move(str(report), str(target))

        for suffix in self._checksum_suffixes:
            checksum = layout.checksum_path(report, suffix)
            if checksum.exists():
                shutil.move(str(checksum), str(layout.checksum_path(target, suffix)))
                break
        else:
            logger.warning("No checksum file found next to %s", report)

        return target

    def _free_target(self, name: str) -> Path:
        target = self._dir / name
        stem, dot, extensions = name.partition(".")
        counter = 1
        while target.exists() or target.is_symlink():
            counter += 1
            target = self._dir / f"{stem}-{counter}{dot}{extensions}"
        return target

    def update_latest(self, report: Path) -> None:
        """Point the 'lastreport' symlink at ``report``."""
        link = layout.latest_link(self._dir)
        if link.exists() or link.is_symlink():
            link.unlink()
        link.symlink_to(report)

    def latest(self) -> Path | None:
        link = layout.latest_link(self._dir)
        if not link.is_symlink():
            return None
        return Path(os.readlink(link))

    def write_side_files(self, report: Path, params: str, output: str) -> None:
        """Store params and captured tool output next to ``report``."""
        layout.params_path(report).write_text(params + "\n", encoding="utf-8")
        layout.output_path(report).write_text(output, encoding="utf-8")

    def write_listing(self, report: Path) -> int:
        """Write member names of the report archive to its .listing file.

        Directory members end with ``/`` like in ``tar tf`` output.

        Returns:
            Number of listed entries (0 when the archive cannot be read).
        """
        names: list[str] = []
        try:
            with tarfile.open(report) as tar:
                names = [
                    f"{member.name.rstrip('/')}/" if member.isdir() else member.name
                    for member in tar.getmembers()
                ]
        except (tarfile.TarError, OSError) as e:
            logger.error("Cannot list report %s: %s", report, e)

        layout.listing_path(report).write_text(
            "".join(f"{name}\n" for name in names), encoding="utf-8"
        )
        logger.info(
            "Listed %d entries of %s", len(names), report.name,
            extra={"data": {"report": report.name, "entries": len(names)}},
        )
        return len(names)

    # --- Maintenance ---

    def purge_all(self) -> int:
        """Delete every stored report file and empty the DB.

        Returns:
            Number of files removed.
        """
        removed = 0
        for path in self._dir.glob(f"{self._prefix}*"):
            if path.is_file() or path.is_symlink():
                path.unlink()
                removed += 1
        link = layout.latest_link(self._dir)
        if link.is_symlink():
            link.unlink()
        self._db.write_text("", encoding="utf-8")
        logger.info("Deleted all previously generated reports (%d files)", removed)
        return removed

    def list_reports(self) -> StoreListing:
        """Directory listing plus DB contents, for human inspection."""
        files = [
            StoreFile(
                name=path.name,
                size_bytes=path.lstat().st_size,
                is_symlink=path.is_symlink(),
            )
            for path in sorted(self._dir.iterdir())
        ]
        listing = StoreListing(
            store_dir=str(self._dir),
            files=files,
            records=self.records(),
            raw_db=self._db.read_text(encoding="utf-8"),
        )
        logger.info("Listed %d already generated reports", len(listing.records))
        return listing
