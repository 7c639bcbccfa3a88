# src/storage/layout.py - v2
"""Harness directory structure definition.

Defines path conventions for the harness root, the report store and the
side files kept next to every stored report:

    {root}/fakelist.txt             pending fakes (truncated on init)
    {root}/backup/{namespace}/      snapshots taken before faking
    {root}/storage/log.txt          harness log
    {root}/storage/db.txt           one line per stored report
    {root}/storage/lastreport       symlink to the latest report
    {root}/storage/{report}         report archive
    {root}/storage/{report}.md5     checksum moved along with the report
    {root}/storage/{report}.fakelist|.params|.output|.listing
"""

from __future__ import annotations

from pathlib import Path


FAKE_LIST_FILE = "fakelist.txt"
BACKUP_DIR = "backup"
STORE_DIR = "storage"
LOG_FILE = "log.txt"
DB_FILE = "db.txt"
LATEST_LINK = "lastreport"

# Side files stored next to each report
FAKELIST_SUFFIX = ".fakelist"
PARAMS_SUFFIX = ".params"
OUTPUT_SUFFIX = ".output"
LISTING_SUFFIX = ".listing"


def fake_list_path(root: Path) -> Path:
    """Return path of the pending fake list."""
    return root / FAKE_LIST_FILE


def backup_dir(root: Path) -> Path:
    """Return the default backup directory."""
    return root / BACKUP_DIR


def store_dir(root: Path) -> Path:
    """Return the report store directory."""
    return root / STORE_DIR


def log_path(root: Path) -> Path:
    return store_dir(root) / LOG_FILE


def db_path(root: Path) -> Path:
    return store_dir(root) / DB_FILE


def latest_link(store: Path) -> Path:
    """Return path to the 'lastreport' symlink."""
    return store / LATEST_LINK


# --- Per-report side files ---

def _side_file(report: Path, suffix: str) -> Path:
    return report.with_name(report.name + suffix)


def fakelist_path(report: Path) -> Path:
    return _side_file(report, FAKELIST_SUFFIX)


def params_path(report: Path) -> Path:
    return _side_file(report, PARAMS_SUFFIX)


def output_path(report: Path) -> Path:
    return _side_file(report, OUTPUT_SUFFIX)


def listing_path(report: Path) -> Path:
    return _side_file(report, LISTING_SUFFIX)


def checksum_path(report: Path, suffix: str = ".md5") -> Path:
    return _side_file(report, suffix)


def ensure_directories(root: Path) -> None:
    """Create the harness root and store directories."""
    store_dir(root).mkdir(parents=True, exist_ok=True)
    log_path(root).touch(exist_ok=True)
    db_path(root).touch(exist_ok=True)
