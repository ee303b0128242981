"""Errors raised (or recorded) by the dynamic node orchestration layer."""

from __future__ import annotations

from typing import Any, Optional

from node_sdk import NodeOperationError


class DynamicNodeError(NodeOperationError):
    """Base class for dynamic node errors."""


class InvalidInputError(DynamicNodeError):
    """Node JSON is not parseable or not an object."""


class MissingFieldError(DynamicNodeError):
    """A node definition lacks a required field."""

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"Node JSON must include a non-empty `{field}` field")


class ItemCountError(DynamicNodeError):
    """Wrong number of items where exactly one is required."""

    def __init__(self, actual: int, expected: int = 1) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(f"Expected exactly {expected} item(s), received {actual}")


class ExpressionEvaluationError(DynamicNodeError):
    """An expression in a node parameter could not be evaluated."""

    def __init__(self, parameter: str, expression: Any, cause: BaseException, item_index: int = 0) -> None:
        self.parameter = parameter
        self.expression = expression
        self.cause = cause
        super().__init__(
            f"Failed to evaluate expression in parameter '{parameter}': {cause}",
            item_index=item_index,
        )


class SubExecutionError(DynamicNodeError):
    """The execution engine failed while running a sub-workflow."""

    def __init__(self, cause: BaseException, item_index: Optional[int] = None) -> None:
        self.cause = cause
        where = f" for item {item_index}" if item_index is not None else ""
        super().__init__(f"Sub-workflow execution failed{where}: {cause}", item_index=item_index)


class AssemblyError(DynamicNodeError):
    """The sub-workflow document could not be assembled."""


class UnexpectedOutcomeShapeError(DynamicNodeError):
    """
    Describes an engine response the reducer could not use.

    Only ever recorded as a diagnostic; the reducer never raises it.
    """

    def __init__(self, shape: str, detail: str) -> None:
        self.shape = shape
        self.detail = detail
        super().__init__(f"Unexpected sub-workflow result ({shape}): {detail}")


__all__ = [
    "AssemblyError",
    "DynamicNodeError",
    "ExpressionEvaluationError",
    "InvalidInputError",
    "ItemCountError",
    "MissingFieldError",
    "SubExecutionError",
    "UnexpectedOutcomeShapeError",
]
