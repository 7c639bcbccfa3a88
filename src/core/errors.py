# src/core/errors.py - v1
"""Harness error taxonomy.

Fatal errors carry a distinct ``exit_code`` so callers (and the CLI) can
branch on the failure kind. Per-fake failures (backup, copy) are recorded as
outcomes by the overlay and never abort a whole apply pass.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for all harness errors."""

    exit_code: int = 1


class UsageError(HarnessError):
    """Wrong argument count or shape. Raised before any state is mutated."""

    exit_code = 1


class UnsupportedModeError(HarnessError):
    """The report tool was asked for a mode the harness cannot post-process."""

    exit_code = 10


class ArtifactNotRecognized(HarnessError):
    """The tool succeeded but its output did not announce an artifact path."""

    exit_code = 20


class ExternalToolFailure(HarnessError):
    """The tool exited with a status outside the accepted bound."""

    exit_code = 30

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class BackupFailure(HarnessError):
    """A destination could not be backed up before faking it."""


class CopyFailure(HarnessError):
    """A fake payload could not be installed to its destination."""


class RevertFailure(HarnessError):
    """Restoring backed up paths after generation failed."""
