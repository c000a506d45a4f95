"""Tests for structured logging (pos_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from pos_kernel.exceptions import NothingToFinalizeError, SessionClosedError
from pos_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from pos_modules.stock_take.models import StockTakeStatus


@pytest.fixture(autouse=True)
def _clean_logging():
    """Start each test unconfigured, then restore the suite's DEBUG setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def stream() -> StringIO:
    """Configure logging into a buffer and return it."""
    buffer = StringIO()
    configure_logging(stream=buffer)
    return buffer


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:

    def test_core_fields(self, stream):
        get_logger("modules.stock_take.service").info("stock_take_started")

        [record] = _records(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "stock_take_started"
        assert record["logger"] == "pos_kernel.modules.stock_take.service"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_extra_payload(self, stream):
        get_logger("test").info("stock_take_count_recorded", extra={
            "counted": 48, "variance": -2,
        })

        [record] = _records(stream)
        assert record["counted"] == 48
        assert record["variance"] == -2

    def test_domain_values_serialized(self, stream):
        product_id = uuid4()
        at = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        get_logger("test").info("values", extra={
            "product_id": product_id,
            "status": StockTakeStatus.COMPLETED,
            "completed_at": at,
            "ratio": Decimal("0.25"),
        })

        [record] = _records(stream)
        assert record["product_id"] == str(product_id)
        assert record["status"] == "completed"
        assert record["completed_at"] == at.isoformat()
        assert record["ratio"] == "0.25"

    def test_context_included(self, stream):
        LogContext.set(stock_take_id="st-1", location="Main Store")
        get_logger("test").info("with_context")

        [record] = _records(stream)
        assert record["stock_take_id"] == "st-1"
        assert record["location"] == "Main Store"

    def test_no_context_keys_when_empty(self, stream):
        get_logger("test").info("bare")

        [record] = _records(stream)
        assert "stock_take_id" not in record
        assert "actor_id" not in record

    def test_plain_exception(self, stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        [record] = _records(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_kernel_exception_fields(self, stream):
        try:
            raise SessionClosedError("st-1", "completed", "finalize")
        except SessionClosedError:
            get_logger("test").error("stock_take_error", exc_info=True)

        [record] = _records(stream)
        assert record["exc_code"] == "SESSION_CLOSED"
        assert record["exc_stock_take_id"] == "st-1"
        assert record["exc_status"] == "completed"
        assert record["exc_action"] == "finalize"

    def test_default_level_drops_debug(self, stream):
        log = get_logger("test")
        log.debug("hidden")
        log.warning("shown")

        assert [r["message"] for r in _records(stream)] == ["shown"]

    def test_formatter_standalone(self):
        record = logging.LogRecord("pos_kernel.x", logging.INFO, "f.py", 1, "hello %s", ("there",), None)

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "hello there"


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_ignores_none(self):
        LogContext.set(stock_take_id="a", actor_id=None)
        assert LogContext.get_all() == {"stock_take_id": "a"}

    def test_values_stringified(self):
        uid = uuid4()
        LogContext.set(actor_id=uid)
        assert LogContext.get_all()["actor_id"] == str(uid)

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_get_all_is_a_copy(self):
        LogContext.set(location="Main Store")
        LogContext.get_all()["location"] = "Back Room"
        assert LogContext.get_all()["location"] == "Main Store"

    def test_nested_bind_unwinds(self):
        with LogContext.bind(stock_take_id="outer"):
            with LogContext.bind(stock_take_id="inner", location="Main Store"):
                assert LogContext.get_all() == {
                    "stock_take_id": "inner", "location": "Main Store",
                }
            assert LogContext.get_all() == {"stock_take_id": "outer"}
        assert LogContext.get_all() == {}

    def test_bind_unwinds_on_error(self):
        with pytest.raises(NothingToFinalizeError):
            with LogContext.bind(stock_take_id="st-1"):
                raise NothingToFinalizeError("st-1", 0)
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="unknown log context"):
            LogContext.set(tenant="acme")
        with pytest.raises(TypeError, match="unknown log context"):
            with LogContext.bind(tenant="acme"):
                pass


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_first_call_wins(self):
        configure_logging(stream=StringIO())
        configure_logging(stream=StringIO())
        structured = [
            h for h in logging.getLogger("pos_kernel").handlers
            if isinstance(h.formatter, StructuredFormatter)
        ]
        assert len(structured) == 1

    def test_string_level(self):
        configure_logging(level="debug", stream=StringIO())
        assert logging.getLogger("pos_kernel").level == logging.DEBUG

    def test_does_not_propagate(self):
        configure_logging(stream=StringIO())
        assert logging.getLogger("pos_kernel").propagate is False

    def test_child_logger_uses_root_handler(self):
        buffer = StringIO()
        configure_logging(level=logging.DEBUG, stream=buffer)

        get_logger("pos_modules.deep.module").debug("nested")

        [record] = _records(buffer)
        assert record["logger"] == "pos_kernel.pos_modules.deep.module"
