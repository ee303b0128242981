"""
Result Reducer.

Execution engines answer in several shapes: a list of output ports
(each a list of items), an object wrapping such a list under `data`,
nothing at all, or something else entirely. classify() tags the shape,
reduce_outcome() turns it into one flat list of items and never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional

from node_sdk import NodeExecutionData

from dynamic_node.errors import UnexpectedOutcomeShapeError


logger = logging.getLogger(__name__)


class OutcomeShape(str, Enum):
    """Shapes an execution outcome can take."""
    PORTS = "ports"       # [[item, ...], ...]
    WRAPPED = "wrapped"   # {"data": [[item, ...], ...]}
    ABSENT = "absent"     # None
    OTHER = "other"       # anything else, including {"data": <not ports>}


@dataclass
class ClassifiedOutcome:
    shape: OutcomeShape
    ports: List[List[Any]] = field(default_factory=list)
    diagnostic: Optional[UnexpectedOutcomeShapeError] = None

    @property
    def usable(self) -> bool:
        return self.diagnostic is None


def _is_ports(value: Any) -> bool:
    """A list whose entries are all lists (None counts as an empty port)."""
    return isinstance(value, list) and all(port is None or isinstance(port, list) for port in value)


def _ports(value: List[Any]) -> List[List[Any]]:
    return [port or [] for port in value]


def _describe(value: Any) -> str:
    return type(value).__name__


def classify(outcome: Any) -> ClassifiedOutcome:
    """Tag an engine outcome with its shape."""
    if outcome is None:
        return ClassifiedOutcome(
            shape=OutcomeShape.ABSENT,
            diagnostic=UnexpectedOutcomeShapeError(OutcomeShape.ABSENT.value, "engine returned no result"),
        )

    if _is_ports(outcome):
        return ClassifiedOutcome(shape=OutcomeShape.PORTS, ports=_ports(outcome))

    if isinstance(outcome, dict) and "data" in outcome:
        data = outcome["data"]
        if _is_ports(data):
            return ClassifiedOutcome(shape=OutcomeShape.WRAPPED, ports=_ports(data))
        return ClassifiedOutcome(
            shape=OutcomeShape.OTHER,
            diagnostic=UnexpectedOutcomeShapeError(
                OutcomeShape.WRAPPED.value,
                f"`data` is {_describe(data)}, expected a list of output ports",
            ),
        )

    return ClassifiedOutcome(
        shape=OutcomeShape.OTHER,
        diagnostic=UnexpectedOutcomeShapeError(OutcomeShape.OTHER.value, f"got {_describe(outcome)}"),
    )


def reduce_outcome(outcome: Any, *, flatten: bool = False) -> List[NodeExecutionData]:
    """
    Reduce an engine outcome to a list of result items.

    Args:
        outcome: Raw engine outcome
        flatten: Concatenate every output port instead of taking port 0

    Returns:
        Result items (dicts only); an empty list for unusable outcomes,
        which are logged as warnings.
    """
    classified = classify(outcome)
    if not classified.usable:
        logger.warning(str(classified.diagnostic))
        return []

    ports = classified.ports
    if not ports:
        return []
    entries = [entry for port in ports for entry in port] if flatten else ports[0]

    items = [entry for entry in entries if isinstance(entry, dict)]
    dropped = len(entries) - len(items)
    if dropped:
        logger.warning("Dropped %d non-object entr%s from sub-workflow result", dropped, "y" if dropped == 1 else "ies")
    return items


def aggregate(reductions: Iterable[List[NodeExecutionData]]) -> List[NodeExecutionData]:
    """Concatenate per-sub-execution reductions, preserving order."""
    result: List[NodeExecutionData] = []
    for items in reductions:
        result.extend(items)
    return result


__all__ = [
    "ClassifiedOutcome",
    "OutcomeShape",
    "aggregate",
    "classify",
    "reduce_outcome",
]
