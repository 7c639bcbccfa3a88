# src/runner/exit_status.py - v1
"""Accepted exit status specification: ``"0"``, ``"0-2"`` or ``"0,2,5-7"``."""

from __future__ import annotations

from pydantic import BaseModel

from sosharness.core.errors import UsageError

DEFAULT_KEYWORD = "default"


class ExitStatusSpec(BaseModel):
    """Set of inclusive ranges of accepted exit statuses."""

    ranges: list[tuple[int, int]]

    def accepts(self, status: int) -> bool:
        return any(low <= status <= high for low, high in self.ranges)

    def __str__(self) -> str:
        return ",".join(
            str(low) if low == high else f"{low}-{high}" for low, high in self.ranges
        )

    @classmethod
    def parse(cls, value: str | int | None) -> ExitStatusSpec:
        """Parse a spec; blank, None and ``"default"`` mean ``0``.

        Raises:
            UsageError: On a malformed spec.
        """
        if isinstance(value, int):
            return cls(ranges=[(value, value)])
        text = (value or "").strip()
        if not text or text == DEFAULT_KEYWORD:
            return cls(ranges=[(0, 0)])

        ranges: list[tuple[int, int]] = []
        for part in text.split(","):
            low_text, sep, high_text = part.strip().partition("-")
            try:
                low = int(low_text)
                high = int(high_text) if sep else low
            except ValueError:
                raise UsageError(f"Invalid exit status spec: {value!r}") from None
            if low > high:
                raise UsageError(f"Invalid exit status range: {part!r}")
            ranges.append((low, high))
        return cls(ranges=ranges)
