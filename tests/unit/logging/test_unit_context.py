# tests/unit/logging/test_context.py - v2
"""Tests for logging/context.py - contextual logging variables."""

from __future__ import annotations

from sosharness.logging.context import (
    clear_context,
    get_context,
    set_operation_context,
    set_report_context,
)


class TestLogContext:
    def test_initial_state(self):
        ctx = get_context()
        assert ctx.namespace is None
        assert ctx.report_id is None
        assert ctx.operation is None

    def test_set_report_context(self):
        set_report_context("default", "abc default def")
        ctx = get_context()
        assert ctx.namespace == "default"
        assert ctx.report_id == "abc default def"

    def test_set_operation_context(self):
        set_operation_context("report")
        assert get_context().operation == "report"

    def test_as_dict_filters_none(self):
        set_report_context("ns", "id")
        d = get_context().as_dict()
        assert d == {"namespace": "ns", "report_id": "id"}

    def test_clear(self):
        set_report_context("ns", "id")
        set_operation_context("unfake")
        clear_context()
        ctx = get_context()
        assert ctx.namespace is None
        assert ctx.operation is None
