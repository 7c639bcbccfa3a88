# src/runner/models.py - v1
"""Runner models: ToolRunResult."""

from __future__ import annotations

from pydantic import BaseModel


class ToolRunResult(BaseModel):
    """Outcome of one report tool invocation."""

    command: list[str]
    returncode: int
    output: str
    batch: bool
    duration_seconds: float
