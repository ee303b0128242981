"""Structured JSON logging with execution context."""
import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from dynamic_node.config import get_settings

CONTEXT_FIELDS = ("execution_id", "workflow_id", "item_index", "node_name")


class TraceContextFilter(logging.Filter):
    """Add execution context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default context fields if not present."""
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, None)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_record[name] = value


def setup_logging() -> None:
    """Configure root logging from settings (JSON or plain text)."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stderr)
    if settings.log_format == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(TraceContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call extra into the adapter's extra."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> logging.LoggerAdapter:
    """
    Get a logger with execution context support.

    Args:
        name: Logger name (typically __name__)

    Returns:
        LoggerAdapter that can accept context in extra dict
    """
    logger = logging.getLogger(name)
    return ContextLoggerAdapter(logger, extra={})


def with_trace_context(
    logger: logging.LoggerAdapter,
    execution_id: str | None = None,
    workflow_id: str | None = None,
    item_index: int | None = None,
    node_name: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create an extra dict with execution context for logging.

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if execution_id:
        extra["execution_id"] = execution_id
    if workflow_id:
        extra["workflow_id"] = workflow_id
    if item_index is not None:
        extra["item_index"] = item_index
    if node_name:
        extra["node_name"] = node_name
    return extra
