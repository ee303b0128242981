"""
Sub-Execution Dispatcher.

Hands assembled sub-workflow documents to the host execution engine,
either once per input item (sequentially, best effort) or once for the
whole batch. Every dispatch carries the parent execution/workflow ids so
expressions referencing the parent keep resolving inside the sub-workflow.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from node_sdk import ExecutionEngine, NodeExecutionData, ProxyAccessor

from dynamic_node.errors import SubExecutionError


logger = logging.getLogger(__name__)


class ExecutionMode(str, Enum):
    """Dispatch cardinality."""
    PER_ITEM = "perItem"
    BATCH = "batch"


class _NotCollected:
    """Outcome of a dispatch that did not wait for the sub-workflow."""

    _instance: Optional["_NotCollected"] = None

    def __new__(cls) -> "_NotCollected":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_COLLECTED"

    def __bool__(self) -> bool:
        return False


NOT_COLLECTED = _NotCollected()


class ParentExecution(BaseModel):
    """Identifiers of the execution that started the sub-workflow."""
    model_config = ConfigDict(populate_by_name=True)

    execution_id: Optional[str] = Field(None, alias="executionId")
    workflow_id: Optional[str] = Field(None, alias="workflowId")


class ExecuteWorkflowOptions(BaseModel):
    """Options handed to the execution engine with every dispatch."""
    model_config = ConfigDict(populate_by_name=True)

    parent_execution: ParentExecution = Field(default_factory=ParentExecution, alias="parentExecution")
    do_not_wait_to_finish: bool = Field(False, alias="doNotWaitToFinish")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _no_parent(item_index: int) -> Dict[str, Any]:
    return {"$execution": {"id": None}, "$workflow": {"id": None}}


def parent_from_proxy(proxy: Dict[str, Any]) -> ParentExecution:
    """Read `$execution.id` / `$workflow.id` from a workflow data proxy."""
    execution = proxy.get("$execution") or {}
    workflow = proxy.get("$workflow") or {}
    return ParentExecution(
        execution_id=execution.get("id"),
        workflow_id=workflow.get("id"),
    )


DocumentBuilder = Callable[[NodeExecutionData, int], Dict[str, Any]]


class SubExecutionDispatcher:
    """
    Dispatches sub-workflow documents to an execution engine.

    Usage:
        dispatcher = SubExecutionDispatcher(engine, context.get_workflow_data_proxy)
        outcome = await dispatcher.dispatch(document, items)
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        proxy_for: Optional[ProxyAccessor] = None,
    ) -> None:
        """
        Args:
            engine: Host execution engine (sync or async execute_workflow)
            proxy_for: Returns the parent workflow data proxy for an item index
        """
        self._engine = engine
        self._proxy_for = proxy_for or _no_parent

    def build_options(self, item_index: int, wait_for_completion: bool) -> ExecuteWorkflowOptions:
        return ExecuteWorkflowOptions(
            parent_execution=parent_from_proxy(self._proxy_for(item_index)),
            do_not_wait_to_finish=not wait_for_completion,
        )

    async def dispatch(
        self,
        document: Dict[str, Any],
        items: List[NodeExecutionData],
        *,
        item_index: int = 0,
        wait_for_completion: bool = True,
    ) -> Any:
        """
        Run one sub-execution.

        Returns:
            The engine's raw outcome, or NOT_COLLECTED when not waiting.

        Raises:
            SubExecutionError: The engine raised.
        """
        options = self.build_options(item_index, wait_for_completion)
        try:
            outcome = self._engine.execute_workflow(document, items, None, options)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            raise SubExecutionError(e, item_index=item_index) from e

        if not wait_for_completion:
            logger.debug("Sub-workflow scheduled without waiting; result not collected")
            return NOT_COLLECTED
        return outcome

    async def dispatch_per_item(
        self,
        build_document: DocumentBuilder,
        items: List[NodeExecutionData],
        *,
        wait_for_completion: bool = True,
    ) -> List[Tuple[int, Any]]:
        """
        One isolated sub-execution per item, in input order.

        A failing item is logged and contributes nothing; later items still
        run.

        Returns:
            (item_index, outcome) for every item whose dispatch succeeded.
        """
        outcomes: List[Tuple[int, Any]] = []
        for index, item in enumerate(items):
            document = build_document(item, index)
            try:
                outcome = await self.dispatch(
                    document,
                    [item],
                    item_index=index,
                    wait_for_completion=wait_for_completion,
                )
            except SubExecutionError as e:
                logger.warning(str(e), extra={"item_index": index})
                continue
            outcomes.append((index, outcome))
        return outcomes

    async def dispatch_batch(
        self,
        document: Dict[str, Any],
        items: List[NodeExecutionData],
        *,
        wait_for_completion: bool = True,
    ) -> Any:
        """Single sub-execution over all items; engine errors propagate."""
        return await self.dispatch(
            document,
            items,
            item_index=0,
            wait_for_completion=wait_for_completion,
        )


__all__ = [
    "DocumentBuilder",
    "ExecuteWorkflowOptions",
    "ExecutionMode",
    "NOT_COLLECTED",
    "ParentExecution",
    "SubExecutionDispatcher",
    "parent_from_proxy",
]
