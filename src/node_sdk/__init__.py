"""
Node SDK - Minimal Python node execution semantics.

This package provides the runtime for executing Python nodes:
- NodeItem: Data item flowing through workflows
- NodeExecutionContext: Runtime context for a node
- BaseNode: Abstract base class for node implementations
- ExpressionEvaluator / ExecutionEngine: host service contracts
"""

from .items import NodeItem, PairedItem, to_execution_items
from .basenode import (
    BaseNode,
    ExecutionEngine,
    ExpressionEvaluator,
    NodeExecutionContext,
    NodeExecutionData,
    NodeOperationError,
    NodeParameterType,
    ProxyAccessor,
    is_expression,
)

__all__ = [
    # Items
    "NodeItem",
    "PairedItem",
    "NodeExecutionData",
    "to_execution_items",
    # Context
    "NodeExecutionContext",
    "ExecutionEngine",
    "ExpressionEvaluator",
    "ProxyAccessor",
    "is_expression",
    # Base class
    "BaseNode",
    "NodeParameterType",
    # Errors
    "NodeOperationError",
]
