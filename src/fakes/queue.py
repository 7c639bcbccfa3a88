# src/fakes/queue.py - v1
"""Fake queue: ordered, append-only list of pending substitutions.

The queue is persisted as a line-oriented scratch file so that the exact
text can be hashed into the report fingerprint and frozen next to every
generated report. It is truncated once per harness initialization and on
every revert.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from sosharness.core.errors import UsageError
from sosharness.fakes.models import (
    FIELD_SEPARATOR,
    CommandFake,
    FakeEntry,
    FileFake,
    TreeFake,
    UnknownFake,
)

logger = logging.getLogger(__name__)

_ENTRY_ADAPTER: TypeAdapter[FakeEntry] = TypeAdapter(FakeEntry)

# Positional field names per known kind
_KIND_FIELDS: dict[str, tuple[str, ...]] = {
    "CMD": ("source", "destination"),
    "FILE": ("source", "destination"),
    "TREE": ("archive",),
}


class FakeQueue:
    """Persistent queue of fakes backed by a plain text file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    # --- Enqueue ---

    def enqueue_command(self, fake: str | Path, destination: str | Path) -> CommandFake:
        """Enqueue a reversible install of a fake command.

        Args:
            fake: Replacement executable; must exist.
            destination: Path the fake is installed over when applied.

        Returns:
            The queued entry.

        Raises:
            UsageError: On blank arguments or a missing fake.
        """
        source, dest = self._check_pair("enqueue_command", fake, destination)
        entry = CommandFake(source=source, destination=dest)
        self._append(entry.to_line())
        logger.info("Enqueued fake command '%s' as '%s'", source, dest)
        return entry

    def enqueue_file(self, fake: str | Path, destination: str | Path) -> FileFake:
        """Enqueue a reversible install of a fake file."""
        source, dest = self._check_pair("enqueue_file", fake, destination)
        entry = FileFake(source=source, destination=dest)
        self._append(entry.to_line())
        logger.info("Enqueued fake file '%s' as '%s'", source, dest)
        return entry

    def enqueue_tree(self, archive: str | Path) -> TreeFake:
        """Enqueue a reversible install of a tar tree of files."""
        if not _present(archive):
            logger.error("enqueue_tree: bad usage, archive is required")
            raise UsageError("enqueue_tree: archive is required")
        resolved = _canonicalize("enqueue_tree", archive)
        entry = TreeFake(archive=resolved)
        self._append(entry.to_line())
        logger.info("Enqueued fake archive '%s'", resolved)
        return entry

    # --- Read ---

    def raw(self) -> str:
        """Return the serialized queue exactly as stored."""
        return self._path.read_text(encoding="utf-8")

    def lines(self) -> list[str]:
        return [line for line in self.raw().splitlines() if line.strip()]

    def entries(self) -> list[CommandFake | FileFake | TreeFake | UnknownFake]:
        """Parse queued lines in order, skipping malformed ones."""
        parsed: list[CommandFake | FileFake | TreeFake | UnknownFake] = []
        for line in self.lines():
            entry = parse_line(line)
            if entry is not None:
                parsed.append(entry)
        return parsed

    def __len__(self) -> int:
        return len(self.lines())

    def is_empty(self) -> bool:
        return len(self) == 0

    # --- Mutate ---

    def reset(self) -> None:
        """Truncate the queue to empty."""
        self._path.write_text("", encoding="utf-8")
        logger.debug("Fake queue %s cleared", self._path)

    def copy_to(self, target: Path) -> None:
        """Freeze a copy of the current queue at ``target``."""
        shutil.copyfile(self._path, target)

    def _append(self, line: str) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def _check_pair(
        self, operation: str, fake: str | Path, destination: str | Path
    ) -> tuple[str, str]:
        if not _present(fake) or not _present(destination):
            logger.error("%s: bad usage, fake and destination are required", operation)
            raise UsageError(f"{operation}: fake and destination are required")
        dest = str(destination)
        if FIELD_SEPARATOR in dest:
            logger.error("%s: bad usage, '%s' contains '%s'", operation, dest, FIELD_SEPARATOR)
            raise UsageError(f"{operation}: destination must not contain '{FIELD_SEPARATOR}'")
        # Only the source is canonicalized: the destination may not exist yet.
        return _canonicalize(operation, fake), dest


def parse_line(line: str) -> CommandFake | FileFake | TreeFake | UnknownFake | None:
    """Parse one ``KIND:arg1[:arg2]`` line. Returns None for malformed lines."""
    fields = line.rstrip("\n").split(FIELD_SEPARATOR)
    if len(fields) < 2:
        logger.warning("Skipping wrongly formatted fake (%s)", line)
        return None

    kind, args = fields[0], fields[1:]
    names = _KIND_FIELDS.get(kind)
    if names is None:
        return UnknownFake(kind=kind, fields=args)

    if len(args) != len(names) or not all(args):
        logger.warning("Skipping wrongly formatted %s fake (%s)", kind, line)
        return None

    try:
        return _ENTRY_ADAPTER.validate_python({"kind": kind, **dict(zip(names, args))})
    except ValidationError as exc:
        logger.warning("Skipping invalid fake (%s): %s", line, exc)
        return None


def _present(value: str | Path | None) -> bool:
    return value is not None and str(value).strip() != ""


def _canonicalize(operation: str, path: str | Path) -> str:
    """Resolve ``path`` to its absolute canonical form; it must exist."""
    p = Path(path).expanduser()
    if not p.exists():
        logger.error("%s: '%s' does not exist", operation, path)
        raise UsageError(f"{operation}: '{path}' does not exist")
    resolved = str(p.resolve())
    if FIELD_SEPARATOR in resolved:
        logger.error("%s: '%s' contains '%s'", operation, resolved, FIELD_SEPARATOR)
        raise UsageError(f"{operation}: path must not contain '{FIELD_SEPARATOR}'")
    return resolved
