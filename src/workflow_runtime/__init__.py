"""
Workflow Runtime - Sync DAG execution for n8n-compatible workflows.

This package provides:
- WorkflowDefinition: JSON structure describing a workflow
- CompiledGraph: Executable workflow DAG
- WorkflowExecutor: Sync execution engine
- InProcessWorkflowEngine: execute_workflow() contract on top of the executor
"""

from .models import Edge, WorkflowConnection, WorkflowDefinition, WorkflowNode, parse_workflow
from .graph import CompiledGraph, CompiledNode
from .executor import (
    DefaultNodeExecutor,
    NodeRunResult,
    NodeStatus,
    WorkflowExecutor,
    WorkflowResult,
    WorkflowStatus,
)
from .engine import InProcessWorkflowEngine, WorkflowExecutionError

__all__ = [
    # Models
    "Edge",
    "WorkflowDefinition",
    "WorkflowNode",
    "WorkflowConnection",
    "parse_workflow",
    # Graph
    "CompiledGraph",
    "CompiledNode",
    # Executor
    "DefaultNodeExecutor",
    "NodeRunResult",
    "NodeStatus",
    "WorkflowExecutor",
    "WorkflowResult",
    "WorkflowStatus",
    # Engine
    "InProcessWorkflowEngine",
    "WorkflowExecutionError",
]
