# src/api/facade.py - v2
"""Public API facade: fakes, report generation with reuse, report assertions.

Usage:
    from sosharness.api.facade import Harness

    harness = Harness()
    harness.fake_command("fixtures/fake-lsblk", "/usr/bin/lsblk")
    result = harness.report("--batch -o block")
    assert harness.assert_file_included("sos_commands/block/lsblk")

One Harness owns one HarnessContext. Harness runs sharing a storage root
must not overlap: the fake list, DB and log are not locked.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from sosharness.api.models import ReportRequest, ReportResult
from sosharness.backup.base_backup_store import BaseBackupStore
from sosharness.cache.fingerprint import compute_fingerprint
from sosharness.cache.models import ReportFingerprint, StoreListing, StoreRecord
from sosharness.cache.report_store import ReportStore
from sosharness.config.settings import Settings, load_settings
from sosharness.core.errors import (
    ArtifactNotRecognized,
    UnsupportedModeError,
    UsageError,
)
from sosharness.fakes.models import CommandFake, FileFake, TreeFake
from sosharness.fakes.overlay import OverlayManager
from sosharness.fakes.queue import FakeQueue
from sosharness.logging.context import set_operation_context, set_report_context
from sosharness.logging.logger import setup_logging
from sosharness.runner.exit_status import ExitStatusSpec
from sosharness.runner.tool_runner import (
    BUILD_FLAG,
    find_report_path,
    has_flag,
    run_report_tool,
)
from sosharness.storage import layout

logger = logging.getLogger(__name__)


@dataclass
class HarnessContext:
    """Everything one harness run works with, built once by init_harness()."""

    settings: Settings
    root: Path
    queue: FakeQueue
    backup_store: BaseBackupStore
    report_store: ReportStore
    overlay: OverlayManager
    current_report: Path | None = None

    @property
    def backup_namespace(self) -> str:
        return self.settings.backup_namespace


def init_harness(
    settings: Settings | None = None,
    backup_store: BaseBackupStore | None = None,
    configure_logging: bool = True,
) -> HarnessContext:
    """Create storage, configure logging and clear the fake queue.

    Args:
        settings: Harness settings. Loaded from .env if None.
        backup_store: Backup backend. Defaults to LocalBackupStore under the root.
        configure_logging: Attach console and file handlers to the sosharness logger.

    Returns:
        Ready HarnessContext with an empty fake queue.

    Raises:
        OSError: If the storage directories cannot be created.
    """
    settings = settings or load_settings()
    root = settings.resolved_root
    layout.ensure_directories(root)

    if configure_logging:
        setup_logging(
            level=settings.log_level,
            log_format=settings.log_format,
            log_file=str(layout.log_path(root)),
            rotation=settings.log_rotation,
            retention=settings.log_retention,
        )

    if backup_store is None:
        from sosharness.backup.local_store import LocalBackupStore

        backup_store = LocalBackupStore(settings.resolved_backup_root)

    queue = FakeQueue(layout.fake_list_path(root))
    queue.reset()

    report_store = ReportStore(
        store_dir=layout.store_dir(root),
        db_path=layout.db_path(root),
        name_prefix=settings.report_name_prefix,
        checksum_suffixes=settings.checksum_suffixes_list,
    )
    overlay = OverlayManager(queue, backup_store, settings.backup_namespace)

    logger.info("---")
    logger.info("Harness loaded by: %s (root=%s)", os.environ.get("TEST", "user"), root)

    return HarnessContext(
        settings=settings,
        root=root,
        queue=queue,
        backup_store=backup_store,
        report_store=report_store,
        overlay=overlay,
    )


class Harness:
    """Caller-facing operations of the harness."""

    def __init__(
        self,
        settings: Settings | None = None,
        backup_store: BaseBackupStore | None = None,
        context: HarnessContext | None = None,
    ) -> None:
        self._ctx = context or init_harness(settings, backup_store)

    @property
    def context(self) -> HarnessContext:
        return self._ctx

    @property
    def current_report(self) -> Path | None:
        """Report produced or reused by the last successful report() call."""
        return self._ctx.current_report

    # --- Fakes ---

    def fake_command(self, fake: str | Path, destination: str | Path) -> CommandFake:
        """Enqueue a fake command, installed executable on the next report()."""
        set_operation_context("fake_command")
        return self._ctx.queue.enqueue_command(fake, destination)

    def fake_file(self, fake: str | Path, destination: str | Path) -> FileFake:
        """Enqueue a fake file, installed on the next report()."""
        set_operation_context("fake_file")
        return self._ctx.queue.enqueue_file(fake, destination)

    def fake_tree(self, archive: str | Path) -> TreeFake:
        """Enqueue a fake tree archive. Tree fakes are queued but not extracted yet."""
        set_operation_context("fake_tree")
        return self._ctx.queue.enqueue_tree(archive)

    def unfake(self) -> bool:
        """Immediately uninstall all applied fakes and clear the queue."""
        set_operation_context("unfake")
        return self._ctx.overlay.revert_all()

    # --- Reports ---

    def report(
        self,
        params: str,
        namespace: str | None = None,
        skip_revert: bool = False,
        expected_exit: str | int | None = None,
    ) -> ReportResult:
        """Return a report for ``params``, reusing a stored one when possible.

        A stored report is reused when namespace, params (order-insensitive)
        and queued non-tree fakes all match. Otherwise queued fakes are
        installed, the tool runs and its report is moved into the store.
        Fakes are reverted afterwards unless ``skip_revert`` is set; the
        revert outcome is reported in ``revert_ok`` but never fails the call.

        Args:
            params: Parameter string for the report tool.
            namespace: Cache namespace. Blank means the default namespace.
            skip_revert: Keep fakes installed (e.g. for several reports
                with the same fake setup).
            expected_exit: Accepted exit statuses ("0", "0-2", "0,3").

        Returns:
            ReportResult pointing at the stored report.

        Raises:
            UsageError: On blank params or a malformed namespace/exit spec.
            UnsupportedModeError: If params request --build.
            ExternalToolFailure: If the tool exits outside ``expected_exit``.
            ArtifactNotRecognized: If the tool output does not name a report.
        """
        set_operation_context("report")
        request = self._make_request(params, namespace, skip_revert, expected_exit)
        ctx = self._ctx

        fingerprint = compute_fingerprint(
            request.params, request.namespace, ctx.queue.raw()
        )
        set_report_context(request.namespace, fingerprint.report_id)
        logger.info("Asked for <%s>", fingerprint.report_id)

        record = ctx.report_store.lookup(fingerprint)
        if record is not None:
            return self._reuse(request, fingerprint, record)

        if has_flag(request.params, BUILD_FLAG):
            ctx.current_report = None
            logger.error("%s parameter detected but not supported yet, bailing out", BUILD_FLAG)
            raise UnsupportedModeError(f"{BUILD_FLAG} is not supported")

        if any(line.startswith("TREE") for line in ctx.queue.lines()):
            logger.warning("Tree fakes not yet implemented, will be skipped")

        apply_report = ctx.overlay.apply_all()
        try:
            result = self._generate(request, fingerprint)
        except Exception:
            ctx.current_report = None
            self._maybe_revert(request)
            raise

        result.apply_report = apply_report
        result.revert_ok = self._maybe_revert(request)
        return result

    def _make_request(
        self,
        params: str,
        namespace: str | None,
        skip_revert: bool,
        expected_exit: str | int | None,
    ) -> ReportRequest:
        if not params or not params.strip():
            logger.error("report: bad usage, params are required")
            raise UsageError("report: params are required")
        ns = (namespace or "").strip() or self._ctx.settings.default_namespace
        try:
            return ReportRequest(
                params=params,
                namespace=ns,
                skip_revert=skip_revert,
                expected_exit=ExitStatusSpec.parse(expected_exit),
            )
        except ValidationError as exc:
            logger.error("report: bad usage, %s", exc)
            raise UsageError(f"report: {exc}") from exc

    def _reuse(
        self,
        request: ReportRequest,
        fingerprint: ReportFingerprint,
        record: StoreRecord,
    ) -> ReportResult:
        ctx = self._ctx
        report_path = ctx.report_store.report_path(record)
        ctx.current_report = report_path
        ctx.report_store.update_latest(report_path)
        logger.info("report=%s (reused)", report_path)
        return ReportResult(
            report_path=report_path,
            fingerprint=fingerprint,
            reused=True,
            reuse_count=record.reuse_count,
            revert_ok=self._maybe_revert(request),
        )

    def _generate(
        self, request: ReportRequest, fingerprint: ReportFingerprint
    ) -> ReportResult:
        ctx = self._ctx
        settings = ctx.settings
        store = ctx.report_store

        run = run_report_tool(
            settings.report_command,
            request.params,
            request.expected_exit,
            interactive_input=settings.interactive_input,
            stream=settings.stream_output,
        )

        found = find_report_path(
            run.output, settings.report_marker, settings.report_name_prefix
        )
        if found is None:
            logger.error("Generated report not recognized from tool output")
            raise ArtifactNotRecognized("report path not found in tool output")

        try:
            report_path = store.adopt(Path(found))
        except FileNotFoundError as exc:
            logger.error("Announced report %s does not exist", found)
            raise ArtifactNotRecognized(f"announced report {found} does not exist") from exc
        store.update_latest(report_path)
        store.append(StoreRecord(fingerprint=fingerprint, filename=report_path.name))

        ctx.queue.copy_to(layout.fakelist_path(report_path))
        store.write_side_files(report_path, request.params, run.output)
        entries = store.write_listing(report_path)

        ctx.current_report = report_path
        logger.info("report=%s", report_path)
        return ReportResult(
            report_path=report_path,
            fingerprint=fingerprint,
            tool_returncode=run.returncode,
            listing_entries=entries,
        )

    def _maybe_revert(self, request: ReportRequest) -> bool | None:
        if request.skip_revert or self._ctx.queue.is_empty():
            return None
        return self._ctx.overlay.revert_all()

    # --- Assertions on the current report ---

    def assert_file_included(self, pattern: str) -> bool:
        """True if a path in the current report's listing matches ``pattern``."""
        set_operation_context("assert_file_included")
        matched = self._listing_matches(pattern)
        ok = matched is True
        log = logger.info if ok else logger.error
        log("assert_file_included '%s': %s", pattern, "PASS" if ok else "FAIL")
        return ok

    def assert_file_not_included(self, pattern: str) -> bool:
        """True if no path in the current report's listing matches ``pattern``."""
        set_operation_context("assert_file_not_included")
        matched = self._listing_matches(pattern)
        ok = matched is False
        log = logger.info if ok else logger.error
        log("assert_file_not_included '%s': %s", pattern, "PASS" if ok else "FAIL")
        return ok

    def _listing_matches(self, pattern: str) -> bool | None:
        """Search the precomputed listing; None when there is nothing to search."""
        if not pattern:
            raise UsageError("a pattern is required")
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise UsageError(f"invalid pattern {pattern!r}: {exc}") from exc

        report = self._ctx.current_report
        if report is None:
            logger.error("No report generated yet")
            return None
        listing = layout.listing_path(report)
        if not listing.is_file():
            logger.error("Listing %s is missing", listing)
            return None
        return any(
            regex.search(line)
            for line in listing.read_text(encoding="utf-8").splitlines()
        )

    # --- Store maintenance ---

    def list_reports(self) -> StoreListing:
        """Stored files and DB records, for human inspection."""
        set_operation_context("list_reports")
        return self._ctx.report_store.list_reports()

    def purge_reports(self) -> int:
        """Delete all stored reports and empty the DB."""
        set_operation_context("purge_reports")
        self._ctx.current_report = None
        return self._ctx.report_store.purge_all()
