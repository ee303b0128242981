"""Observability package."""
from dynamic_node.observability.logging import (
    ContextLoggerAdapter,
    CustomJsonFormatter,
    TraceContextFilter,
    get_logger,
    setup_logging,
    with_trace_context,
)

__all__ = [
    "ContextLoggerAdapter",
    "CustomJsonFormatter",
    "TraceContextFilter",
    "get_logger",
    "setup_logging",
    "with_trace_context",
]
