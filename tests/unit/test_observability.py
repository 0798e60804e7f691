"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour the
rest of the package relies on.
"""

from __future__ import annotations

import logging

import pytest

from lib_dynamic_config import bind_trace_id, get_logger
from lib_dynamic_config.observability import TRACE_ID, log_error, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_dynamic_config")
    bind_trace_id("trace-123")
    try:
        log_info("config_loaded", layer="APPLICATION", source=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert record.getMessage() == "config_loaded"
    assert getattr(record, "context") == {"trace_id": "trace-123", "layer": "APPLICATION", "source": None}


def test_log_error_attaches_active_exception(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_dynamic_config")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        log_error("listener_failed", exc_info=True, listener="demo")
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.exc_info is not None and record.exc_info[0] is RuntimeError


def test_bind_trace_id_clears_context() -> None:
    """Clearing the trace ID should reset the context variable to None."""

    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    """make_event should merge optional metadata after the base keys."""

    event = make_event("LIBRARIES", None, {"keys": 3})
    assert event == {"layer": "LIBRARIES", "source": None, "keys": 3}
