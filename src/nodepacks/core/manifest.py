"""
Core Node Pack Manifest - node classes by type.
"""

from typing import Dict, Type

from node_sdk import BaseNode
from dynamic_node.node import DynamicNode

from .nodes import NoOpNode, SetNode, StartNode


MANIFEST = {
    "name": "core",
    "version": "1.0.0",
    "description": "Nodes needed to run synthesized sub-workflows in process",
    "nodes": [
        StartNode.type,
        NoOpNode.type,
        SetNode.type,
        DynamicNode.type,
    ],
}


NODE_CLASSES: Dict[str, Type[BaseNode]] = {
    StartNode.type: StartNode,
    NoOpNode.type: NoOpNode,
    SetNode.type: SetNode,
    DynamicNode.type: DynamicNode,
}


def register_nodes() -> Dict[str, Type[BaseNode]]:
    """Node classes of the core pack, keyed by node type."""
    return dict(NODE_CLASSES)


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
