"""
Dynamic workflow runner.

Orchestrates one Dynamic Node invocation:

    normalize -> (per item) substitute -> assemble -> dispatch -> reduce

All validation (node JSON, names, item count) happens before the first
dispatch, so a rejected input never reaches the engine. After that,
per-item failures are absorbed: the item contributes nothing and the
rest of the batch proceeds.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from node_sdk import ExecutionEngine, ExpressionEvaluator, NodeExecutionData, ProxyAccessor

from dynamic_node.assembler import assemble, load_skeleton
from dynamic_node.config import Settings, get_settings
from dynamic_node.dispatcher import NOT_COLLECTED, ExecutionMode, SubExecutionDispatcher
from dynamic_node.errors import ItemCountError
from dynamic_node.expressions import substitute_all
from dynamic_node.normalizer import NormalizedInput, load_raw_input, normalize
from dynamic_node.observability import get_logger, with_trace_context
from dynamic_node.reducer import aggregate, reduce_outcome


logger = get_logger(__name__)


class DynamicNodeConfig(BaseModel):
    """Caller configuration of one invocation (the node's parameters)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    node_json: Any = Field(default_factory=dict, alias="nodeJson")
    execute_individually: bool = Field(True, alias="executeIndividually")
    do_not_wait_to_finish: bool = Field(False, alias="doNotWaitToFinish")
    include_all_nodes: bool = Field(False, alias="includeAllNodes")
    require_single_item: bool = Field(False, alias="requireSingleItem")

    @property
    def mode(self) -> ExecutionMode:
        return ExecutionMode.PER_ITEM if self.execute_individually else ExecutionMode.BATCH


class DynamicWorkflowRunner:
    """
    Runs user-supplied node JSON as a synthesized sub-workflow.

    Usage:
        runner = DynamicWorkflowRunner(engine, evaluator=evaluator)
        results = await runner.run(items, DynamicNodeConfig(node_json=raw))
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        evaluator: Optional[ExpressionEvaluator] = None,
        proxy_for: Optional[ProxyAccessor] = None,
        settings: Optional[Settings] = None,
        skeleton: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Args:
            engine: Host execution engine
            evaluator: Host expression evaluator (per-item substitution)
            proxy_for: Parent workflow data proxy accessor
            settings: Settings (global settings by default)
            skeleton: Skeleton workflow (loaded from settings/asset by default)
        """
        self.settings = settings or get_settings()
        self.evaluator = evaluator
        self.skeleton = skeleton if skeleton is not None else load_skeleton(self.settings.skeleton_path)
        self.dispatcher = SubExecutionDispatcher(engine, proxy_for)
        self._proxy_for = proxy_for

    def _trace(self, item_index: Optional[int] = None) -> Dict[str, Any]:
        proxy = self._proxy_for(item_index or 0) if self._proxy_for else {}
        return with_trace_context(
            logger,
            execution_id=(proxy.get("$execution") or {}).get("id"),
            workflow_id=(proxy.get("$workflow") or {}).get("id"),
            item_index=item_index,
        )

    def _normalize(self, raw: Dict[str, Any], config: DynamicNodeConfig) -> NormalizedInput:
        return normalize(raw, include_all=config.include_all_nodes, settings=self.settings)

    async def run(
        self,
        items: List[NodeExecutionData],
        config: DynamicNodeConfig,
    ) -> List[NodeExecutionData]:
        """
        Execute the configured node JSON over the input items.

        Returns:
            Result items of every sub-execution, in input order.

        Raises:
            InvalidInputError, MissingFieldError, ItemCountError: before any dispatch
            SubExecutionError: batch mode only
        """
        items = list(items or [])
        raw = load_raw_input(config.node_json)
        # Validates every definition up front; per-item runs re-normalize for fresh ids
        normalized = self._normalize(raw, config)

        if config.require_single_item and len(items) != 1:
            raise ItemCountError(len(items))

        flatten = config.include_all_nodes and normalized.is_export
        wait = not config.do_not_wait_to_finish

        if config.mode == ExecutionMode.PER_ITEM:
            return await self._run_per_item(raw, config, items, flatten, wait)
        return await self._run_batch(normalized, items, flatten, wait)

    async def _run_per_item(
        self,
        raw: Dict[str, Any],
        config: DynamicNodeConfig,
        items: List[NodeExecutionData],
        flatten: bool,
        wait: bool,
    ) -> List[NodeExecutionData]:
        def build_document(item: NodeExecutionData, index: int) -> Dict[str, Any]:
            normalized = self._normalize(raw, config)
            definitions = substitute_all(normalized.definitions, item, index, self.evaluator)
            return assemble(self.skeleton, definitions, normalized.connections)

        outcomes = await self.dispatcher.dispatch_per_item(
            build_document,
            items,
            wait_for_completion=wait,
        )
        if not wait:
            logger.info("Dispatched %d sub-workflow(s) without waiting", len(outcomes), extra=self._trace())
            return []

        results = aggregate(reduce_outcome(outcome, flatten=flatten) for _, outcome in outcomes)
        logger.debug(
            "Per-item run finished: %d/%d item(s) succeeded, %d result item(s)",
            len(outcomes), len(items), len(results),
            extra=self._trace(),
        )
        return results

    async def _run_batch(
        self,
        normalized: NormalizedInput,
        items: List[NodeExecutionData],
        flatten: bool,
        wait: bool,
    ) -> List[NodeExecutionData]:
        definitions = normalized.definitions
        if self.settings.batch_expressions == "first_item" and items:
            definitions = substitute_all(definitions, items[0], 0, self.evaluator)

        document = assemble(self.skeleton, definitions, normalized.connections)
        outcome = await self.dispatcher.dispatch_batch(document, items, wait_for_completion=wait)
        if outcome is NOT_COLLECTED:
            logger.info("Dispatched batch sub-workflow without waiting", extra=self._trace())
            return []
        return reduce_outcome(outcome, flatten=flatten)


__all__ = [
    "DynamicNodeConfig",
    "DynamicWorkflowRunner",
]
