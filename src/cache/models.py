# src/cache/models.py - v2
"""Cache domain models: ReportFingerprint, StoreRecord, StoreFile, StoreListing.

A store record is persisted as one whitespace separated DB line:
``reuse_count param_hash namespace fake_hash filename``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ReportFingerprint(BaseModel):
    """Identity of a report request: equal fingerprints may share a report."""

    param_hash: str
    namespace: str
    fake_hash: str

    @property
    def report_id(self) -> str:
        return f"{self.param_hash} {self.namespace} {self.fake_hash}"


class StoreRecord(BaseModel):
    """Single DB row linking a fingerprint to a stored report file."""

    reuse_count: int = 1
    fingerprint: ReportFingerprint
    filename: str

    def to_line(self) -> str:
        return f"{self.reuse_count} {self.fingerprint.report_id} {self.filename}"

    @classmethod
    def from_line(cls, line: str) -> StoreRecord:
        """Parse a DB line.

        Raises:
            ValueError: If the line does not have five fields or a numeric count.
        """
        fields = line.split()
        if len(fields) != 5:
            raise ValueError(f"Expected 5 fields, got {len(fields)}: {line!r}")
        count, param_hash, namespace, fake_hash, filename = fields
        return cls(
            reuse_count=int(count),
            fingerprint=ReportFingerprint(
                param_hash=param_hash, namespace=namespace, fake_hash=fake_hash,
            ),
            filename=filename,
        )


class StoreFile(BaseModel):
    """A file present in the store directory."""

    name: str
    size_bytes: int
    is_symlink: bool = False


class StoreListing(BaseModel):
    """Human oriented view of the store: directory contents plus DB."""

    store_dir: str
    files: list[StoreFile] = Field(default_factory=list)
    records: list[StoreRecord] = Field(default_factory=list)
    raw_db: str = ""
