# src/api/models.py - v2
"""API-level models: ReportRequest, ReportResult."""

from __future__ import annotations

import shlex
from pathlib import Path

from pydantic import BaseModel, field_validator

from sosharness.cache.models import ReportFingerprint
from sosharness.fakes.models import ApplyReport
from sosharness.runner.exit_status import ExitStatusSpec


class ReportRequest(BaseModel):
    """Normalized arguments of one report request."""

    params: str
    namespace: str
    skip_revert: bool = False
    expected_exit: ExitStatusSpec

    @field_validator("params")
    @classmethod
    def validate_params(cls, v: str) -> str:  # noqa: N805
        # params become argv of the tool, so they must tokenize
        try:
            shlex.split(v)
        except ValueError as exc:
            raise ValueError(f"params cannot be split into arguments: {exc}") from exc
        return v

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:  # noqa: N805
        if any(ch.isspace() for ch in v):
            raise ValueError("namespace must not contain whitespace")
        return v


class ReportResult(BaseModel):
    """Return value of Harness.report()."""

    report_path: Path
    fingerprint: ReportFingerprint
    reused: bool = False
    reuse_count: int = 1
    apply_report: ApplyReport | None = None
    tool_returncode: int | None = None
    listing_entries: int | None = None
    # None when no revert was attempted; never affects success
    revert_ok: bool | None = None
