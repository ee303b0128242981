"""
Node Definition Normalizer.

Turns user-supplied node JSON (a single node, or a full workflow export)
into NodeDefinitions that can be embedded into a sub-workflow skeleton:
export-only fields stripped, name validated and suffixed, a fresh id and
a canvas position assigned.

parse_node_json() is the validating boundary and returns a tagged
ParseSuccess / ParseFailure; normalize() is the raising convenience form.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from dynamic_node.config import Settings, get_settings
from dynamic_node.errors import DynamicNodeError, InvalidInputError, MissingFieldError


logger = logging.getLogger(__name__)

# Fields present in exports that are not part of a node's definition
EXPORT_ONLY_FIELDS = ("connections", "pinData", "meta")

# {source_name: {port: [[{"node", "type", "index"}, ...], ...]}}
ConnectionGraph = Dict[str, Dict[str, List[List[Dict[str, Any]]]]]


class NodeDefinition(BaseModel):
    """
    A node definition ready to be injected into a sub-workflow.

    Unknown fields (type, typeVersion, credentials, ...) are carried through
    untouched.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, description="Unique node name inside the sub-workflow")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    parameters: Dict[str, Any] = Field(default_factory=dict)
    position: List[Union[int, float]] = Field(default_factory=list)

    _original_name: str = PrivateAttr(default="")

    @property
    def original_name(self) -> str:
        """Name as it appeared in the user's JSON."""
        return self._original_name or self.name

    def to_node(self) -> Dict[str, Any]:
        """Plain dict for embedding into a workflow document."""
        return self.model_dump(mode="json")

    def clone(self) -> "NodeDefinition":
        """Deep copy keeping the original name."""
        copied = self.model_copy(deep=True)
        copied._original_name = self._original_name
        return copied


@dataclass
class NormalizedInput:
    """Definitions extracted from one RawInput plus their connection graph."""
    definitions: List[NodeDefinition]
    connections: ConnectionGraph = field(default_factory=dict)
    is_export: bool = False

    @property
    def first(self) -> NodeDefinition:
        return self.definitions[0]


@dataclass(frozen=True)
class ParseSuccess:
    value: NormalizedInput
    ok: bool = True


@dataclass(frozen=True)
class ParseFailure:
    error: DynamicNodeError
    ok: bool = False


ParseResult = Union[ParseSuccess, ParseFailure]


def load_raw_input(raw: Any) -> Dict[str, Any]:
    """
    Coerce RawInput into a mapping.

    Raises:
        InvalidInputError: Not parseable JSON, or not an object.
    """
    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidInputError(f"Node JSON must be valid JSON: {e}") from e

    if not isinstance(value, dict):
        raise InvalidInputError("Node JSON must be an object")
    return value


def is_full_export(value: Dict[str, Any]) -> bool:
    """A full workflow export carries a non-empty `nodes` list."""
    nodes = value.get("nodes")
    return isinstance(nodes, list) and len(nodes) > 0


def dynamic_node_name(original: str, ordinal: Optional[int] = None, suffix: str = "Dynamic Node") -> str:
    """`<original> - Dynamic Node` or `<original> - Dynamic Node [<ordinal>]`."""
    name = f"{original} - {suffix}"
    if ordinal is not None:
        name = f"{name} [{ordinal}]"
    return name


def _valid_position(position: Any) -> bool:
    return (
        isinstance(position, (list, tuple))
        and len(position) == 2
        and all(isinstance(v, Real) and not isinstance(v, bool) for v in position)
    )


def _build_definition(
    entry: Any,
    index: int,
    ordinal: Optional[int],
    settings: Settings,
) -> NodeDefinition:
    if not isinstance(entry, dict):
        raise InvalidInputError(f"Node entry {index} must be an object")

    data = copy.deepcopy(entry)
    for key in EXPORT_ONLY_FIELDS:
        data.pop(key, None)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MissingFieldError("name")

    parameters = data.get("parameters")
    if parameters is None:
        parameters = {}
    elif not isinstance(parameters, dict):
        raise InvalidInputError(f"`parameters` of node '{name}' must be an object")

    position = data.get("position")
    if _valid_position(position):
        position = [position[0], position[1]]
    else:
        position = [
            settings.default_position_x + settings.position_step * index,
            settings.default_position_y,
        ]

    data.update(
        name=dynamic_node_name(name, ordinal, settings.node_name_suffix),
        id=str(uuid.uuid4()),
        parameters=parameters,
        position=position,
    )
    definition = NodeDefinition.model_validate(data)
    definition._original_name = name
    return definition


def parse_node_json(
    raw: Any,
    *,
    include_all: bool = False,
    settings: Optional[Settings] = None,
) -> ParseResult:
    """
    Validate RawInput and extract node definitions.

    Args:
        raw: JSON string or parsed value (single node or full export)
        include_all: Take every node of an export together with its
            connections, instead of only the first node
        settings: Naming/layout settings (global settings by default)

    Returns:
        ParseSuccess with a NormalizedInput, or ParseFailure with the error.
    """
    settings = settings or get_settings()
    try:
        value = load_raw_input(raw)

        connections: ConnectionGraph = {}
        if is_full_export(value):
            entries = value["nodes"] if include_all else value["nodes"][:1]
            if include_all and isinstance(value.get("connections"), dict):
                connections = copy.deepcopy(value["connections"])
            is_export = True
        else:
            entries = [value]
            is_export = False

        multi = include_all and is_export
        definitions = [
            _build_definition(entry, index, index + 1 if multi else None, settings)
            for index, entry in enumerate(entries)
        ]
    except DynamicNodeError as e:
        return ParseFailure(error=e)

    return ParseSuccess(
        value=NormalizedInput(definitions=definitions, connections=connections, is_export=is_export)
    )


def normalize(
    raw: Any,
    *,
    include_all: bool = False,
    settings: Optional[Settings] = None,
) -> NormalizedInput:
    """
    Raising form of parse_node_json().

    Raises:
        InvalidInputError: Malformed or non-object input
        MissingFieldError: A definition without a non-empty name
    """
    result = parse_node_json(raw, include_all=include_all, settings=settings)
    if isinstance(result, ParseFailure):
        raise result.error
    logger.debug(
        "Normalized %d node definition(s): %s",
        len(result.value.definitions),
        [d.name for d in result.value.definitions],
    )
    return result.value


__all__ = [
    "ConnectionGraph",
    "EXPORT_ONLY_FIELDS",
    "NodeDefinition",
    "NormalizedInput",
    "ParseFailure",
    "ParseResult",
    "ParseSuccess",
    "dynamic_node_name",
    "is_full_export",
    "load_raw_input",
    "normalize",
    "parse_node_json",
]
