"""
BaseNode - Abstract base class for Python node implementations.

All nodes inherit from BaseNode and implement the execute() method.
A node reads its parameters, input items and host services (expression
evaluation, sub-workflow execution, parent workflow proxy) through the
NodeExecutionContext it is given before execution.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, TypedDict


logger = logging.getLogger(__name__)


# ==============================================================================
# NodeParameterType
# ==============================================================================

class NodeParameterType(str, Enum):
    """Parameter types understood by the node UI description."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OPTIONS = "options"
    JSON = "json"
    COLLECTION = "collection"
    FIXED_COLLECTION = "fixedCollection"
    NOTICE = "notice"


# ==============================================================================
# NodeExecutionData - Item format exchanged between nodes
# ==============================================================================

class NodeExecutionData(TypedDict, total=False):
    """
    Single item of execution data.

    Format: {"json": {...}, "binary": {...}, "pairedItem": {"item": 0}}
    """
    json: Dict[str, Any]
    binary: Optional[Dict[str, Any]]
    pairedItem: Optional[Dict[str, int]]


# ==============================================================================
# Host service contracts
# ==============================================================================

class ExpressionEvaluator(Protocol):
    """Evaluates one template expression against one item."""

    def evaluate(self, expression: str, item: Any, item_index: int) -> Any:
        ...


class ExecutionEngine(Protocol):
    """
    Runs a workflow document against a batch of items.

    Implementations may be synchronous or return an awaitable.
    """

    def execute_workflow(
        self,
        document: Dict[str, Any],
        items: List[NodeExecutionData],
        run_data: Optional[Dict[str, Any]] = None,
        options: Optional[Any] = None,
    ) -> Any:
        ...


def is_expression(value: Any) -> bool:
    """True for strings carrying an expression marker ("=" prefix or {{ ... }})."""
    return isinstance(value, str) and (value.startswith("=") or "{{" in value)


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all Python node implementations.

    Nodes define:
    - type: Unique identifier (e.g., "n8n-nodes-base.noOp")
    - version: Node version number
    - description: Node metadata dict
    - properties: Parameters

    And implement execute() which processes input items.

    Example:

        class UpperNode(BaseNode):
            type = "upper"

            def execute(self) -> List[List[NodeExecutionData]]:
                items = self.get_input_data()
                field = self.get_node_parameter("field", 0)
                return [[
                    {"json": {field: str(item["json"].get(field, "")).upper()}}
                    for item in items
                ]]
    """

    type: str = "base"
    version: int = 1

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "name": "base",
        "description": "",
        "group": [],
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties: Dict[str, Any] = {
        "parameters": [],
    }

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"node.{self.type}")
        self._context: Optional[NodeExecutionContext] = None

    @abstractmethod
    def execute(self) -> List[List[NodeExecutionData]]:
        """
        Execute node operation.

        Returns:
            List[List[NodeExecutionData]]: Nested list of execution results.
            - Outer list represents output branches (usually 1)
            - Inner list represents items in that branch

        Raises:
            NodeOperationError: On operation failure
        """
        raise NotImplementedError

    # ==== Context Management ====

    def set_context(self, context: "NodeExecutionContext") -> None:
        """Set the execution context."""
        self._context = context

    @property
    def context(self) -> "NodeExecutionContext":
        if self._context is None:
            raise NodeOperationError("No context set", node=self)
        return self._context

    # ==== Helper methods for subclasses ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
        raw: bool = False,
    ) -> Any:
        """
        Get parameter value.

        Args:
            name: Parameter name
            item_index: Index of item (for expression resolution)
            default: Default if not set
            raw: Return expression strings unevaluated
        """
        if self._context is None:
            return default
        return self._context.get_node_parameter(name, item_index, default, raw=raw)

    def get_input_data(self) -> List[NodeExecutionData]:
        """
        Get input items from previous node.

        Returns:
            List of input items, each with 'json' key.
        """
        if self._context is None:
            return []
        return self._context.get_input_data()

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get full node definition for registration."""
        return {
            "type": cls.type,
            "version": cls.version,
            "description": cls.description,
            "properties": cls.properties,
        }


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Parameters (with expression resolution)
    - Input data
    - Parent workflow/execution identifiers
    - Sub-workflow execution through the host engine
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        input_data: List[NodeExecutionData],
        workflow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
        node_name: Optional[str] = None,
        expression_evaluator: Optional[ExpressionEvaluator] = None,
        engine: Optional[ExecutionEngine] = None,
    ) -> None:
        self._parameters = parameters
        self._input_data = input_data
        self.workflow_id = workflow_id
        self.execution_id = execution_id
        self.node_name = node_name
        self.expression_evaluator = expression_evaluator
        self.engine = engine

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
        raw: bool = False,
    ) -> Any:
        """Get parameter value, resolving an expression against the indexed item."""
        value = self._parameters.get(name, default)
        if raw or self.expression_evaluator is None or not is_expression(value):
            return value

        item = self._input_data[item_index] if item_index < len(self._input_data) else {}
        try:
            return self.expression_evaluator.evaluate(value, item, item_index)
        except Exception as e:
            raise NodeOperationError(
                f"Could not evaluate parameter '{name}': {e}",
                item_index=item_index,
            ) from e

    def get_input_data(self) -> List[NodeExecutionData]:
        """Get input items."""
        return self._input_data

    def get_workflow_data_proxy(self, item_index: int = 0) -> Dict[str, Any]:
        """Expression-style view of the running workflow and execution."""
        return {
            "$execution": {"id": self.execution_id},
            "$workflow": {"id": self.workflow_id},
            "$itemIndex": item_index,
        }

    def execute_workflow(
        self,
        document: Dict[str, Any],
        items: List[NodeExecutionData],
        run_data: Optional[Dict[str, Any]] = None,
        options: Optional[Any] = None,
    ) -> Any:
        """Run a workflow document on the host engine."""
        if self.engine is None:
            raise NodeOperationError("No execution engine available in this context")
        return self.engine.execute_workflow(document, items, run_data, options)


ProxyAccessor = Callable[[int], Dict[str, Any]]


# ==============================================================================
# Errors
# ==============================================================================

class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        item_index: Optional[int] = None,
    ) -> None:
        self.message = message
        self.node = node
        self.item_index = item_index
        super().__init__(message)


__all__ = [
    "BaseNode",
    "ExecutionEngine",
    "ExpressionEvaluator",
    "NodeExecutionContext",
    "NodeExecutionData",
    "NodeOperationError",
    "NodeParameterType",
    "ProxyAccessor",
    "is_expression",
]
