# tests/unit/cache/test_unit_report_store.py - v1
"""Tests for cache/report_store.py - DB, lookup, adoption, listing, purge."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest

from sosharness.cache.models import ReportFingerprint, StoreRecord
from sosharness.cache.report_store import ReportStore


@pytest.fixture
def store(tmp_path: Path) -> ReportStore:
    return ReportStore(
        store_dir=tmp_path / "storage",
        db_path=tmp_path / "storage" / "db.txt",
        checksum_suffixes=[".md5", ".sha256"],
    )


@pytest.fixture
def fingerprint() -> ReportFingerprint:
    return ReportFingerprint(param_hash="a" * 40, namespace="default", fake_hash="b" * 40)


def _make_report(directory: Path, name: str = "sosreport-host-1.tar.xz") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    with tarfile.open(path, "w:xz") as tar:
        for member in ("sosreport-host/etc/hosts", "sosreport-host/proc/cpuinfo"):
            info = tarfile.TarInfo(member)
            info.size = 1
            tar.addfile(info, io.BytesIO(b"x"))
    return path


def _store_report(store: ReportStore, fingerprint: ReportFingerprint, name: str) -> StoreRecord:
    (store.store_dir / name).write_bytes(b"report")
    record = StoreRecord(fingerprint=fingerprint, filename=name)
    store.append(record)
    return record


class TestDatabase:
    def test_append_adds_one_line(self, store, fingerprint):
        store.append(StoreRecord(fingerprint=fingerprint, filename="sosreport-1.tar.xz"))
        lines = store.db_path.read_text().splitlines()
        assert lines == [f"1 {'a' * 40} default {'b' * 40} sosreport-1.tar.xz"]

    def test_records_skip_malformed(self, store, fingerprint, caplog):
        store.db_path.write_text("broken line\n\n")
        store.append(StoreRecord(fingerprint=fingerprint, filename="sosreport-1.tar.xz"))
        assert len(store.records()) == 1
        assert "malformed" in caplog.text


class TestLookup:
    def test_miss_on_empty_store(self, store, fingerprint):
        assert store.lookup(fingerprint) is None

    def test_hit_increments_reuse_count(self, store, fingerprint):
        _store_report(store, fingerprint, "sosreport-1.tar.xz")
        record = store.lookup(fingerprint)
        assert record is not None
        assert record.reuse_count == 2
        assert store.records()[0].reuse_count == 2
        assert store.lookup(fingerprint).reuse_count == 3

    def test_only_matching_line_rewritten(self, store, fingerprint):
        other = fingerprint.model_copy(update={"namespace": "other"})
        _store_report(store, other, "sosreport-0.tar.xz")
        _store_report(store, fingerprint, "sosreport-1.tar.xz")
        store.lookup(fingerprint)
        counts = [(r.filename, r.reuse_count) for r in store.records()]
        assert counts == [("sosreport-0.tar.xz", 1), ("sosreport-1.tar.xz", 2)]

    @pytest.mark.parametrize("field", ["param_hash", "namespace", "fake_hash"])
    def test_every_field_must_match(self, store, fingerprint, field):
        _store_report(store, fingerprint, "sosreport-1.tar.xz")
        assert store.lookup(fingerprint.model_copy(update={field: "different"})) is None

    def test_missing_report_file_is_miss(self, store, fingerprint):
        store.append(StoreRecord(fingerprint=fingerprint, filename="sosreport-gone.tar.xz"))
        assert store.lookup(fingerprint) is None
        assert store.records()[0].reuse_count == 1


class TestAdopt:
    def test_moves_report_and_checksum(self, store, tmp_path):
        report = _make_report(tmp_path / "var" / "tmp")
        report.with_name(report.name + ".md5").write_text("abc\n")

        adopted = store.adopt(report)

        assert adopted == store.store_dir / report.name
        assert adopted.exists()
        assert (store.store_dir / (report.name + ".md5")).read_text() == "abc\n"
        assert not report.exists()

    def test_alternate_checksum_suffix(self, store, tmp_path):
        report = _make_report(tmp_path / "var" / "tmp")
        report.with_name(report.name + ".sha256").write_text("def\n")
        store.adopt(report)
        assert (store.store_dir / (report.name + ".sha256")).exists()

    def test_same_name_never_overwritten(self, store, tmp_path):
        first = store.adopt(_make_report(tmp_path / "run1"))
        incoming = _make_report(tmp_path / "run2")
        incoming.with_name(incoming.name + ".md5").write_text("second\n")

        second = store.adopt(incoming)

        assert first.name == "sosreport-host-1.tar.xz"
        assert second.name == "sosreport-host-1-2.tar.xz"
        assert first.exists() and second.exists()
        assert (store.store_dir / "sosreport-host-1-2.tar.xz.md5").read_text() == "second\n"

    def test_missing_report_raises(self, store, tmp_path):
        with pytest.raises(FileNotFoundError):
            store.adopt(tmp_path / "sosreport-gone.tar.xz")

    def test_missing_checksum_warns(self, store, tmp_path, caplog):
        report = _make_report(tmp_path / "var" / "tmp")
        store.adopt(report)
        assert "No checksum" in caplog.text


class TestLatest:
    def test_update_latest(self, store, tmp_path):
        first = store.store_dir / "sosreport-1.tar.xz"
        second = store.store_dir / "sosreport-2.tar.xz"
        first.write_bytes(b"")
        second.write_bytes(b"")
        store.update_latest(first)
        store.update_latest(second)
        assert store.latest() == second

    def test_latest_none(self, store):
        assert store.latest() is None


class TestSideFiles:
    def test_write_listing(self, store, tmp_path):
        report = _make_report(store.store_dir)
        assert store.write_listing(report) == 2
        listing = (store.store_dir / (report.name + ".listing")).read_text()
        assert listing == "sosreport-host/etc/hosts\nsosreport-host/proc/cpuinfo\n"

    def test_write_listing_marks_directories(self, store):
        report = store.store_dir / "sosreport-dirs.tar"
        with tarfile.open(report, "w") as tar:
            directory = tarfile.TarInfo("sosreport-host/sos_commands/block")
            directory.type = tarfile.DIRTYPE
            tar.addfile(directory)
            info = tarfile.TarInfo("sosreport-host/sos_commands/block/lsblk")
            info.size = 1
            tar.addfile(info, io.BytesIO(b"x"))
        store.write_listing(report)
        listing = (store.store_dir / (report.name + ".listing")).read_text().splitlines()
        assert listing == [
            "sosreport-host/sos_commands/block/",
            "sosreport-host/sos_commands/block/lsblk",
        ]

    def test_write_listing_unreadable(self, store, caplog):
        report = store.store_dir / "sosreport-bad.tar.xz"
        report.write_bytes(b"not a tarball")
        assert store.write_listing(report) == 0
        assert (store.store_dir / (report.name + ".listing")).read_text() == ""
        assert "Cannot list" in caplog.text

    def test_write_side_files(self, store):
        report = _make_report(store.store_dir)
        store.write_side_files(report, "--batch -k general", "tool output\n")
        base = store.store_dir / report.name
        assert Path(f"{base}.params").read_text() == "--batch -k general\n"
        assert Path(f"{base}.output").read_text() == "tool output\n"


class TestMaintenance:
    def test_purge_all(self, store, fingerprint):
        _store_report(store, fingerprint, "sosreport-1.tar.xz")
        (store.store_dir / "sosreport-1.tar.xz.md5").write_text("x")
        store.update_latest(store.store_dir / "sosreport-1.tar.xz")

        removed = store.purge_all()

        assert removed == 2
        assert store.db_path.read_text() == ""
        assert not list(store.store_dir.glob("sosreport*"))
        assert store.latest() is None
        assert store.db_path.exists()

    def test_purge_empty_store(self, store):
        assert store.purge_all() == 0
        assert store.db_path.read_text() == ""

    def test_list_reports(self, store, fingerprint):
        _store_report(store, fingerprint, "sosreport-1.tar.xz")
        listing = store.list_reports()
        names = [f.name for f in listing.files]
        assert "sosreport-1.tar.xz" in names
        assert "db.txt" in names
        assert len(listing.records) == 1
        assert listing.raw_db.startswith("1 ")
