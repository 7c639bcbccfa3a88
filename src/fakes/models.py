# src/fakes/models.py - v1
"""Fake domain models: CommandFake, FileFake, TreeFake, UnknownFake, FakeOutcome, ApplyReport.

Fakes are typed in memory and only serialized as ``KIND:arg1[:arg2]`` lines
at the fake list boundary.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

FIELD_SEPARATOR = ":"


class CommandFake(BaseModel):
    """Replacement executable installed over ``destination``."""

    kind: Literal["CMD"] = "CMD"
    source: str
    destination: str

    def to_line(self) -> str:
        return FIELD_SEPARATOR.join((self.kind, self.source, self.destination))


class FileFake(BaseModel):
    """Replacement file installed over ``destination``."""

    kind: Literal["FILE"] = "FILE"
    source: str
    destination: str

    def to_line(self) -> str:
        return FIELD_SEPARATOR.join((self.kind, self.source, self.destination))


class TreeFake(BaseModel):
    """Archive of a filesystem tree meant to be extracted into ``/``."""

    kind: Literal["TREE"] = "TREE"
    archive: str

    def to_line(self) -> str:
        return FIELD_SEPARATOR.join((self.kind, self.archive))


class UnknownFake(BaseModel):
    """Well-formed line with a kind the harness does not know."""

    kind: str
    fields: list[str] = Field(default_factory=list)

    def to_line(self) -> str:
        return FIELD_SEPARATOR.join((self.kind, *self.fields))


FakeEntry = Annotated[
    Union[CommandFake, FileFake, TreeFake],
    Field(discriminator="kind"),
]


class FakeOutcome(BaseModel):
    """Result of applying a single queued fake."""

    line: str
    kind: str
    status: Literal["applied", "skipped", "backup_failed", "copy_failed", "unknown"]
    detail: str | None = None


class ApplyReport(BaseModel):
    """Per-entry outcomes of one apply pass plus aggregate status."""

    outcomes: list[FakeOutcome] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no entry failed (skipped tree fakes do not count)."""
        return all(o.status in ("applied", "skipped") for o in self.outcomes)

    @property
    def applied(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "applied")

    @property
    def failed(self) -> int:
        return sum(
            1 for o in self.outcomes
            if o.status in ("backup_failed", "copy_failed", "unknown")
        )
