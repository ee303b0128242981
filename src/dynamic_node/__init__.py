"""
Dynamic Node

Runs arbitrary, user-supplied node JSON inside a synthesized sub-workflow:

- normalizer: validate and prepare pasted node JSON / workflow exports
- expressions: per-item expression substitution
- assembler: inject definitions into the sub-workflow skeleton
- dispatcher: hand documents to the execution engine (per item or batch)
- reducer: turn engine responses into one list of items
- runner / node: the orchestration and its node wrapper
"""

from dynamic_node.errors import (
    AssemblyError,
    DynamicNodeError,
    ExpressionEvaluationError,
    InvalidInputError,
    ItemCountError,
    MissingFieldError,
    SubExecutionError,
    UnexpectedOutcomeShapeError,
)
from dynamic_node.normalizer import NodeDefinition, NormalizedInput, normalize, parse_node_json
from dynamic_node.expressions import substitute
from dynamic_node.assembler import assemble, load_skeleton
from dynamic_node.dispatcher import (
    NOT_COLLECTED,
    ExecuteWorkflowOptions,
    ExecutionMode,
    ParentExecution,
    SubExecutionDispatcher,
)
from dynamic_node.reducer import OutcomeShape, classify, reduce_outcome
from dynamic_node.runner import DynamicNodeConfig, DynamicWorkflowRunner
from dynamic_node.node import DynamicNode

__version__ = "1.0.0"

__all__ = [
    # Errors
    "AssemblyError",
    "DynamicNodeError",
    "ExpressionEvaluationError",
    "InvalidInputError",
    "ItemCountError",
    "MissingFieldError",
    "SubExecutionError",
    "UnexpectedOutcomeShapeError",
    # Pipeline stages
    "NodeDefinition",
    "NormalizedInput",
    "normalize",
    "parse_node_json",
    "substitute",
    "assemble",
    "load_skeleton",
    "NOT_COLLECTED",
    "ExecuteWorkflowOptions",
    "ExecutionMode",
    "ParentExecution",
    "SubExecutionDispatcher",
    "OutcomeShape",
    "classify",
    "reduce_outcome",
    # Orchestration
    "DynamicNodeConfig",
    "DynamicWorkflowRunner",
    "DynamicNode",
]
