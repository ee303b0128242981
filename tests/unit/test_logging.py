"""Tests for logging setup and execution context."""
import json
import logging

from dynamic_node.observability import (
    CustomJsonFormatter,
    TraceContextFilter,
    get_logger,
    setup_logging,
    with_trace_context,
)


def _record(**extra):
    record = logging.LogRecord("dynamic_node.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatter:
    """Test the JSON formatter."""

    def test_standard_fields(self):
        """Test level, logger and message are present."""
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

        payload = json.loads(formatter.format(_record()))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "dynamic_node.test"
        assert payload["message"] == "hello world"
        assert "timestamp" in payload

    def test_context_fields(self):
        """Test execution context is copied when set."""
        formatter = CustomJsonFormatter("%(message)s")

        payload = json.loads(formatter.format(_record(execution_id="e1", item_index=0, workflow_id=None)))

        assert payload["execution_id"] == "e1"
        assert payload["item_index"] == 0
        assert "workflow_id" not in payload or payload["workflow_id"] is None


def test_trace_context_filter_sets_defaults():
    record = _record()
    assert TraceContextFilter().filter(record)
    assert record.execution_id is None
    assert record.item_index is None


def test_with_trace_context_skips_empty_values():
    extra = with_trace_context(get_logger(__name__), execution_id="e1", item_index=0, attempt=2)
    assert extra == {"execution_id": "e1", "item_index": 0, "attempt": 2}


def test_adapter_merges_call_extra(caplog):
    logger = get_logger("dynamic_node.test")

    with caplog.at_level(logging.INFO, logger="dynamic_node.test"):
        logger.info("done", extra={"item_index": 3})

    assert caplog.records[0].item_index == 3


def test_setup_logging_installs_single_handler(monkeypatch):
    monkeypatch.setenv("DYNAMIC_NODE_LOG_LEVEL", "WARNING")

    setup_logging()
    setup_logging()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING
