"""
Workflow Models - JSON structures for workflow definitions.

These models match the n8n workflow JSON format.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkflowConnection(BaseModel):
    """
    Connection to a target node input.

    Example: {"node": "HTTP Request", "type": "main", "index": 0}
    """
    model_config = ConfigDict(extra="allow")

    node: str = Field(..., description="Target node name")
    type: str = Field("main", description="Connection type")
    index: int = Field(0, description="Target input index")


class WorkflowNode(BaseModel):
    """
    A node in a workflow.

    Matches n8n workflow JSON node format.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Required
    name: str = Field(..., min_length=1, description="Node name (unique within workflow)")
    type: str = Field(..., description="Node type (e.g., 'n8n-nodes-base.noOp')")

    # Optional
    id: Optional[str] = Field(None, description="Node identity")
    type_version: Union[int, float] = Field(1, alias="typeVersion", description="Node type version")
    position: List[float] = Field(default_factory=lambda: [0.0, 0.0])
    parameters: Dict[str, Any] = Field(default_factory=dict)
    disabled: bool = Field(False, description="If true, node is skipped")
    continue_on_fail: bool = Field(False, alias="continueOnFail")
    notes: Optional[str] = Field(None, description="Node notes")

    @field_validator("position", mode="before")
    @classmethod
    def coerce_position(cls, v: Any) -> Any:
        """Accept both [x, y] and {"x": .., "y": ..}."""
        if isinstance(v, dict):
            return [v.get("x", 0), v.get("y", 0)]
        return v


@dataclass(frozen=True)
class Edge:
    """One resolved connection: source output -> target input."""
    source: str
    output_index: int
    target: str
    input_index: int
    type: str = "main"


class WorkflowDefinition(BaseModel):
    """
    Complete workflow definition.

    Matches n8n workflow JSON format.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Metadata
    id: Optional[str] = Field(None, description="Workflow ID")
    name: str = Field("Unnamed Workflow", description="Workflow name")
    active: bool = Field(False, description="Is workflow active?")

    # Structure
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: Dict[str, Dict[str, List[Optional[List[WorkflowConnection]]]]] = Field(
        default_factory=dict,
        description="Node connections: {source: {type: [[{node, type, index}]]}}"
    )
    settings: Dict[str, Any] = Field(default_factory=dict)

    def get_node(self, name: str) -> Optional[WorkflowNode]:
        """Get node by name."""
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def iter_edges(self, connection_type: str = "main") -> Iterator[Edge]:
        """Yield every connection of the given type, in declaration order."""
        for source, outputs in self.connections.items():
            for output_index, targets in enumerate(outputs.get(connection_type) or []):
                for conn in targets or []:
                    yield Edge(
                        source=source,
                        output_index=output_index,
                        target=conn.node,
                        input_index=conn.index,
                        type=connection_type,
                    )

    def get_downstream_nodes(self, node_name: str) -> List[str]:
        """Get names of nodes connected to this node's outputs."""
        return [e.target for e in self.iter_edges() if e.source == node_name]

    def get_upstream_nodes(self, node_name: str) -> List[str]:
        """Get names of nodes that connect to this node."""
        return [e.source for e in self.iter_edges() if e.target == node_name]

    def get_start_nodes(self) -> List[WorkflowNode]:
        """Nodes without incoming connections (entry points)."""
        targets = {e.target for e in self.iter_edges()}
        return [node for node in self.nodes if node.name not in targets and not node.disabled]


def parse_workflow(data: Dict[str, Any]) -> WorkflowDefinition:
    """Parse workflow JSON into WorkflowDefinition."""
    return WorkflowDefinition.model_validate(data)


__all__ = [
    "Edge",
    "WorkflowConnection",
    "WorkflowDefinition",
    "WorkflowNode",
    "parse_workflow",
]
