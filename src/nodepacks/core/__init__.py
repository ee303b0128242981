"""
Core Node Pack - Essential utility nodes.

This pack provides the nodes a synthesized sub-workflow runs on:
- Start: Workflow entry point
- NoOp: Pass-through node (no operation)
- Set: Set/modify data fields
- Dynamic Node: Run pasted node JSON as a sub-workflow
"""

from .nodes import NoOpNode, SetNode, StartNode
from .manifest import MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "StartNode",
    "NoOpNode",
    "SetNode",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
