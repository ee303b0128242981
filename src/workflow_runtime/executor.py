"""
Workflow Executor - Sync DAG execution engine.

Executes a compiled workflow graph node by node in topological order,
routing each node's output ports to the inputs wired to them.
"""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Type

from node_sdk import BaseNode, ExecutionEngine, ExpressionEvaluator, NodeExecutionContext

from .graph import CompiledGraph
from .models import WorkflowDefinition, WorkflowNode, parse_workflow


logger = logging.getLogger(__name__)


class NodeStatus(str, Enum):
    """Status of a node after execution."""
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class WorkflowStatus(str, Enum):
    """Overall workflow execution status."""
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class NodeRunResult:
    """Result of running a single node."""
    node_name: str
    status: NodeStatus
    output_data: List[List[Dict[str, Any]]] = field(default_factory=list)
    error: Optional[str] = None
    error_traceback: Optional[str] = None
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == NodeStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == NodeStatus.ERROR


@dataclass
class WorkflowResult:
    """Result of workflow execution."""
    workflow_id: str
    workflow_name: str
    status: WorkflowStatus
    node_results: Dict[str, NodeRunResult] = field(default_factory=dict)
    last_node: Optional[str] = None
    error: Optional[str] = None
    error_node: Optional[str] = None
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == WorkflowStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == WorkflowStatus.ERROR

    @property
    def last_output(self) -> List[List[Dict[str, Any]]]:
        """Output ports of the last node that ran."""
        if self.last_node is None:
            return []
        return self.node_results[self.last_node].output_data


class NodeExecutorProtocol(Protocol):
    """Protocol for node executors."""

    def execute_node(
        self,
        node: WorkflowNode,
        input_data: List[Dict[str, Any]],
        workflow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> List[List[Dict[str, Any]]]:
        ...


class DefaultNodeExecutor:
    """
    Node executor that instantiates node classes from a type registry.
    """

    def __init__(
        self,
        node_registry: Optional[Dict[str, Type[BaseNode]]] = None,
        expression_evaluator: Optional[ExpressionEvaluator] = None,
        engine: Optional[ExecutionEngine] = None,
    ):
        """
        Args:
            node_registry: Map of node_type -> node class
            expression_evaluator: Evaluator handed to node contexts
            engine: Engine handed to node contexts for sub-workflows
        """
        self._registry: Dict[str, Type[BaseNode]] = dict(node_registry or {})
        self.expression_evaluator = expression_evaluator
        self.engine = engine

    def register_node(self, node_type: str, node_class: Type[BaseNode]) -> None:
        """Register a node class."""
        self._registry[node_type] = node_class

    @property
    def node_types(self) -> List[str]:
        return sorted(self._registry)

    def execute_node(
        self,
        node: WorkflowNode,
        input_data: List[Dict[str, Any]],
        workflow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> List[List[Dict[str, Any]]]:
        """Execute a node by looking it up in the registry."""
        if node.type not in self._registry:
            raise ValueError(f"Unknown node type: {node.type}")

        instance = self._registry[node.type]()
        instance.set_context(NodeExecutionContext(
            parameters=node.parameters,
            input_data=input_data,
            workflow_id=workflow_id,
            execution_id=execution_id,
            node_name=node.name,
            expression_evaluator=self.expression_evaluator,
            engine=self.engine,
        ))
        return instance.execute()


class WorkflowExecutor:
    """
    Sync workflow executor.

    Executes a workflow DAG synchronously, respecting:
    - Node dependencies (topological order)
    - Output port routing (a node without arriving items is skipped)
    - Error handling (continueOnFail turns the error into an item)
    - Disabled nodes (skip)

    Usage:
        executor = WorkflowExecutor(node_executor=DefaultNodeExecutor(registry))
        result = executor.execute(workflow_definition, items)
    """

    def __init__(self, node_executor: Optional[NodeExecutorProtocol] = None):
        self._node_executor = node_executor or DefaultNodeExecutor()

    def execute(
        self,
        workflow: WorkflowDefinition | Dict[str, Any],
        input_data: Optional[List[Dict[str, Any]]] = None,
        execution_id: Optional[str] = None,
    ) -> WorkflowResult:
        """
        Execute a workflow.

        Args:
            workflow: Workflow definition or JSON dict
            input_data: Items handed to the start nodes
            execution_id: Identifier forwarded to node contexts

        Returns:
            WorkflowResult with execution outcome
        """
        start_time = time.perf_counter()

        if isinstance(workflow, dict):
            workflow = parse_workflow(workflow)

        try:
            graph = CompiledGraph(workflow)
        except ValueError as e:
            return WorkflowResult(
                workflow_id=workflow.id or "unknown",
                workflow_name=workflow.name,
                status=WorkflowStatus.ERROR,
                error=f"Compilation failed: {e}",
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        result = self._execute_graph(graph, input_data, execution_id)
        result.duration_ms = (time.perf_counter() - start_time) * 1000
        return result

    def _execute_graph(
        self,
        graph: CompiledGraph,
        input_data: Optional[List[Dict[str, Any]]],
        execution_id: Optional[str],
    ) -> WorkflowResult:
        result = WorkflowResult(
            workflow_id=graph.workflow_id,
            workflow_name=graph.workflow_name,
            status=WorkflowStatus.SUCCESS,
        )
        start_items = input_data if input_data is not None else [{"json": {}}]
        outputs: Dict[str, List[List[Dict[str, Any]]]] = {}

        for node_name in graph.execution_order:
            compiled = graph.get_node(node_name)
            node = compiled.node

            if node.disabled:
                result.node_results[node_name] = NodeRunResult(node_name, NodeStatus.SKIPPED)
                continue

            if compiled.incoming:
                node_input = graph.collect_input(node_name, outputs)
                if not node_input:
                    # Nothing arrived on the wired outputs
                    result.node_results[node_name] = NodeRunResult(node_name, NodeStatus.SKIPPED)
                    continue
            else:
                node_input = start_items

            logger.debug("Executing node: %s (%s)", node_name, node.type)
            run = self._execute_node(node, node_input, graph.workflow_id, execution_id)
            result.node_results[node_name] = run

            if run.is_error and not node.continue_on_fail:
                logger.error("Node %s failed: %s", node_name, run.error)
                result.status = WorkflowStatus.ERROR
                result.error = run.error
                result.error_node = node_name
                break

            if run.is_error:
                run.output_data = [[{"json": {"error": run.error}}]]
            outputs[node_name] = run.output_data
            result.last_node = node_name

        return result

    def _execute_node(
        self,
        node: WorkflowNode,
        input_data: List[Dict[str, Any]],
        workflow_id: str,
        execution_id: Optional[str],
    ) -> NodeRunResult:
        start_time = time.perf_counter()
        try:
            output = self._node_executor.execute_node(node, input_data, workflow_id, execution_id)
        except Exception as e:
            return NodeRunResult(
                node_name=node.name,
                status=NodeStatus.ERROR,
                error=str(e),
                error_traceback=traceback.format_exc(),
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        return NodeRunResult(
            node_name=node.name,
            status=NodeStatus.SUCCESS,
            output_data=output or [],
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )


__all__ = [
    "DefaultNodeExecutor",
    "NodeExecutorProtocol",
    "NodeRunResult",
    "NodeStatus",
    "WorkflowExecutor",
    "WorkflowResult",
    "WorkflowStatus",
]
