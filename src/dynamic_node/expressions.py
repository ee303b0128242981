"""
Expression Substitution Pass.

Resolves expression strings in a node definition's parameters against one
input item before the definition is dispatched in per-item mode. The
expression language itself belongs to the host; it is reached through an
ExpressionEvaluator.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from node_sdk import ExpressionEvaluator, is_expression

from dynamic_node.errors import ExpressionEvaluationError
from dynamic_node.normalizer import NodeDefinition


logger = logging.getLogger(__name__)


def _is_pair_list(value: Any) -> bool:
    """A non-empty list of {name, value} pairs."""
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(entry, dict) and "name" in entry and "value" in entry for entry in value)
    )


def _pairs_of(value: Any) -> Optional[List[dict]]:
    """
    Return the {name, value} list carried by a parameter, if any.

    Either the parameter itself is the list, or it is a fixed collection
    holding the list under `parameters` (e.g. queryParameters.parameters).
    """
    if _is_pair_list(value):
        return value
    if isinstance(value, dict) and _is_pair_list(value.get("parameters")):
        return value["parameters"]
    return None


def _evaluate(
    evaluator: ExpressionEvaluator,
    parameter: str,
    expression: str,
    item: Any,
    item_index: int,
) -> Any:
    """Evaluate one expression; on failure log and return it unchanged."""
    try:
        return evaluator.evaluate(expression, item, item_index)
    except Exception as e:
        error = ExpressionEvaluationError(parameter, expression, e, item_index=item_index)
        logger.warning(
            "%s; keeping the unevaluated value",
            error,
            extra={"item_index": item_index},
        )
        return expression


def substitute(
    definition: NodeDefinition,
    item: Any,
    item_index: int,
    evaluator: Optional[ExpressionEvaluator],
) -> NodeDefinition:
    """
    Evaluate expression parameters of a definition against one item.

    The input definition is never modified; a deep copy is returned.
    Failing expressions are logged and left in place.

    Args:
        definition: Normalized node definition
        item: The input item the expressions resolve against
        item_index: Index of that item in the input batch
        evaluator: Host expression evaluator (None returns an untouched copy)
    """
    working = definition.clone()
    if evaluator is None:
        return working

    parameters = working.parameters
    for name, value in parameters.items():
        if is_expression(value):
            parameters[name] = _evaluate(evaluator, name, value, item, item_index)
            continue

        pairs = _pairs_of(value)
        if pairs is None:
            continue
        for pair in pairs:
            if is_expression(pair["value"]):
                label = f"{name}.{pair['name']}"
                pair["value"] = _evaluate(evaluator, label, pair["value"], item, item_index)

    return working


def substitute_all(
    definitions: List[NodeDefinition],
    item: Any,
    item_index: int,
    evaluator: Optional[ExpressionEvaluator],
) -> List[NodeDefinition]:
    """substitute() applied to every definition of one sub-execution."""
    return [substitute(d, item, item_index, evaluator) for d in definitions]


__all__ = [
    "ExpressionEvaluator",
    "is_expression",
    "substitute",
    "substitute_all",
]
