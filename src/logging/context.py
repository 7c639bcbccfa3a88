# src/logging/context.py - v2
"""Contextual logging support: attach namespace, report_id, operation to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per report request.
_namespace: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "namespace", default=None
)
_report_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "report_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    namespace: str | None = None
    report_id: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        namespace=_namespace.get(),
        report_id=_report_id.get(),
        operation=_operation.get(),
    )


def set_report_context(namespace: str, report_id: str) -> None:
    """Set report-level context (called once per report request)."""
    _namespace.set(namespace)
    _report_id.set(report_id)


def set_operation_context(operation: str | None) -> None:
    """Set the name of the public operation being executed."""
    _operation.set(operation)


def clear_context() -> None:
    """Reset all context variables."""
    _namespace.set(None)
    _report_id.set(None)
    _operation.set(None)
