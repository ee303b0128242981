"""
Compiled Graph - Executable workflow DAG.

Takes a WorkflowDefinition and compiles it into an executable graph
with topological ordering and port-aware edges.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import Edge, WorkflowDefinition, WorkflowNode


logger = logging.getLogger(__name__)


@dataclass
class CompiledNode:
    """A workflow node with its resolved incoming and outgoing edges."""
    node: WorkflowNode
    incoming: List[Edge] = field(default_factory=list)
    outgoing: List[Edge] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def upstream(self) -> List[str]:
        return [e.source for e in self.incoming]

    @property
    def downstream(self) -> List[str]:
        return [e.target for e in self.outgoing]


class CompiledGraph:
    """
    Compiled workflow ready for execution.

    Raises ValueError at construction for duplicate node names or cycles.
    Connections pointing at unknown nodes are ignored with a warning.
    """

    def __init__(self, workflow: WorkflowDefinition):
        self.workflow_id = workflow.id or "unnamed"
        self.workflow_name = workflow.name
        self._workflow = workflow

        self._nodes: Dict[str, CompiledNode] = {}
        self._build_nodes()

        self._execution_order: List[str] = []
        self._compute_execution_order()

    def _build_nodes(self) -> None:
        for node in self._workflow.nodes:
            if node.name in self._nodes:
                raise ValueError(f"Duplicate node name: {node.name}")
            self._nodes[node.name] = CompiledNode(node=node)

        for edge in self._workflow.iter_edges():
            if edge.source not in self._nodes or edge.target not in self._nodes:
                logger.warning("Ignoring connection %s -> %s: unknown node", edge.source, edge.target)
                continue
            self._nodes[edge.source].outgoing.append(edge)
            self._nodes[edge.target].incoming.append(edge)

    def _compute_execution_order(self) -> None:
        """
        Compute topological order for execution.

        Kahn's algorithm; ties are broken by declaration order.
        """
        in_degree: Dict[str, int] = {name: len(n.incoming) for name, n in self._nodes.items()}
        queue = [name for name, degree in in_degree.items() if degree == 0]
        order = []

        while queue:
            node_name = queue.pop(0)
            order.append(node_name)
            for downstream_name in self._nodes[node_name].downstream:
                in_degree[downstream_name] -= 1
                if in_degree[downstream_name] == 0:
                    queue.append(downstream_name)

        if len(order) != len(self._nodes):
            remaining = sorted(set(self._nodes) - set(order))
            raise ValueError(f"Workflow has cycles involving: {remaining}")

        self._execution_order = order

    @property
    def execution_order(self) -> List[str]:
        """Get nodes in execution order."""
        return self._execution_order.copy()

    @property
    def node_names(self) -> List[str]:
        return list(self._nodes.keys())

    def get_node(self, name: str) -> Optional[CompiledNode]:
        return self._nodes.get(name)

    def get_start_nodes(self) -> List[str]:
        """Entry point node names."""
        return [
            name for name, node in self._nodes.items()
            if not node.incoming and not node.node.disabled
        ]

    def collect_input(
        self,
        node_name: str,
        outputs: Dict[str, List[List[Dict[str, Any]]]],
    ) -> List[Dict[str, Any]]:
        """
        Items arriving at a node from the upstream outputs produced so far.

        Each incoming edge contributes the items of the specific output
        port it is attached to.
        """
        node = self._nodes[node_name]
        items: List[Dict[str, Any]] = []
        for edge in node.incoming:
            ports = outputs.get(edge.source) or []
            if edge.output_index < len(ports):
                items.extend(ports[edge.output_index] or [])
        return items


__all__ = [
    "CompiledGraph",
    "CompiledNode",
]
