"""
In-process execution engine.

Implements the execute_workflow() contract expected by nodes that run
sub-workflows (such as the Dynamic Node) on top of WorkflowExecutor.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError

from node_sdk import BaseNode, ExpressionEvaluator

from .executor import DefaultNodeExecutor, WorkflowExecutor, WorkflowResult
from .models import parse_workflow


logger = logging.getLogger(__name__)


class WorkflowExecutionError(Exception):
    """A workflow run failed."""

    def __init__(self, message: str, node_name: Optional[str] = None, execution_id: Optional[str] = None):
        self.node_name = node_name
        self.execution_id = execution_id
        super().__init__(message)


def _option(options: Any, attribute: str, key: str, default: Any = None) -> Any:
    """Read an option from a pydantic/attribute object or a camelCase dict."""
    if options is None:
        return default
    if isinstance(options, dict):
        return options.get(key, default)
    return getattr(options, attribute, default)


class InProcessWorkflowEngine:
    """
    Runs workflow documents in the current process.

    Usage:
        engine = InProcessWorkflowEngine(NODE_CLASSES, evaluator=my_evaluator)
        outcome = await engine.execute_workflow(document, items)
        # {"executionId": "...", "data": [[...]]}
    """

    def __init__(
        self,
        node_types: Dict[str, Type[BaseNode]],
        evaluator: Optional[ExpressionEvaluator] = None,
        background_workers: int = 4,
    ) -> None:
        self.evaluator = evaluator
        # Fire-and-forget runs; not tied to any caller's event loop
        self._background = ThreadPoolExecutor(
            max_workers=background_workers,
            thread_name_prefix="workflow-background",
        )
        self.node_executor = DefaultNodeExecutor(node_types, expression_evaluator=evaluator, engine=self)

    def run(
        self,
        document: Dict[str, Any],
        items: List[Dict[str, Any]],
        execution_id: Optional[str] = None,
    ) -> WorkflowResult:
        """Synchronously run a document and return the raw WorkflowResult."""
        try:
            workflow = parse_workflow(document)
        except ValidationError as e:
            raise WorkflowExecutionError(f"Invalid workflow document: {e}", execution_id=execution_id) from e
        executor = WorkflowExecutor(node_executor=self.node_executor)
        return executor.execute(workflow, items, execution_id=execution_id)

    def _run_checked(
        self,
        document: Dict[str, Any],
        items: List[Dict[str, Any]],
        execution_id: str,
    ) -> Dict[str, Any]:
        result = self.run(document, items, execution_id)
        if result.is_error:
            raise WorkflowExecutionError(
                result.error or "Workflow failed",
                node_name=result.error_node,
                execution_id=execution_id,
            )
        return {"executionId": execution_id, "data": result.last_output}

    def _log_background_result(self, execution_id: str, future: "Future[Any]") -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Background execution %s failed: %s", execution_id, error)
        else:
            logger.debug("Background execution %s finished", execution_id)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting background runs, optionally waiting for pending ones."""
        self._background.shutdown(wait=wait)

    async def execute_workflow(
        self,
        document: Dict[str, Any],
        items: List[Dict[str, Any]],
        run_data: Optional[Dict[str, Any]] = None,
        options: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        Run a workflow document against items.

        The run happens in a worker thread so nodes may start their own
        event loop. With doNotWaitToFinish the call returns as soon as the
        run is scheduled and `data` is None.

        Raises:
            WorkflowExecutionError: Invalid document or a failing node.
        """
        execution_id = str(uuid.uuid4())
        parent = _option(options, "parent_execution", "parentExecution")
        parent_id = _option(parent, "execution_id", "executionId")
        logger.debug("Starting execution %s (parent execution %s)", execution_id, parent_id)

        if _option(options, "do_not_wait_to_finish", "doNotWaitToFinish", False):
            future = self._background.submit(self._run_checked, document, list(items), execution_id)
            future.add_done_callback(lambda f: self._log_background_result(execution_id, f))
            return {"executionId": execution_id, "data": None}

        return await asyncio.to_thread(self._run_checked, document, list(items), execution_id)


__all__ = [
    "InProcessWorkflowEngine",
    "WorkflowExecutionError",
]
