"""
Template Assembler.

Builds the sub-workflow document for one sub-execution: a deep copy of the
skeleton with the injected definitions appended, their connections renamed
to the injected names, and the skeleton's Start node wired to the first
injected definition.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from dynamic_node.errors import AssemblyError
from dynamic_node.normalizer import ConnectionGraph, NodeDefinition


logger = logging.getLogger(__name__)

START_NODE = "Start"
DEFAULT_SKELETON_PATH = Path(__file__).parent / "templates" / "sub_workflow.json"


def load_skeleton(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """
    Read a skeleton workflow from disk.

    Raises:
        AssemblyError: File missing, not JSON, or without nodes/connections.
    """
    skeleton_path = Path(path) if path else DEFAULT_SKELETON_PATH
    try:
        with open(skeleton_path, encoding="utf-8") as f:
            skeleton = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise AssemblyError(f"Cannot load sub-workflow skeleton {skeleton_path}: {e}") from e

    if not isinstance(skeleton, dict) or not isinstance(skeleton.get("nodes"), list):
        raise AssemblyError(f"Sub-workflow skeleton {skeleton_path} must be an object with a `nodes` list")
    skeleton.setdefault("connections", {})
    return skeleton


def _entry_descriptor(connections: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """The Start.main[0][0] descriptor, or None if the skeleton lacks one."""
    start = connections.get(START_NODE)
    if not isinstance(start, dict):
        return None
    main = start.get("main")
    if not isinstance(main, list) or not main:
        return None
    first_port = main[0]
    if not isinstance(first_port, list) or not first_port:
        return None
    descriptor = first_port[0]
    return descriptor if isinstance(descriptor, dict) else None


def find_entry_target(document: Dict[str, Any]) -> Optional[str]:
    """Name of the node the Start node is wired to."""
    descriptor = _entry_descriptor(document.get("connections") or {})
    return descriptor.get("node") if descriptor else None


def rename_connections(
    connections: ConnectionGraph,
    renames: Dict[str, str],
) -> ConnectionGraph:
    """
    Rewrite source keys and target `node` references to injected names.

    Sources or targets without an injected counterpart are dropped with a
    warning.
    """
    rewritten: ConnectionGraph = {}
    for source, ports in connections.items():
        new_source = renames.get(source)
        if new_source is None:
            logger.warning("Dropping connections from '%s': node was not injected", source)
            continue
        if not isinstance(ports, dict):
            logger.warning("Dropping malformed connections of '%s'", source)
            continue

        new_ports: Dict[str, List[List[Dict[str, Any]]]] = {}
        for port, fan_outs in ports.items():
            if fan_outs is None:
                fan_outs = []
            if not isinstance(fan_outs, list):
                logger.warning("Dropping malformed port '%s' of '%s'", port, source)
                continue
            new_fan_outs = []
            for output_index, fan_out in enumerate(fan_outs):
                if fan_out is None:
                    fan_out = []
                if not isinstance(fan_out, list):
                    logger.warning(
                        "Dropping malformed output %d of '%s'.%s", output_index, source, port,
                    )
                    new_fan_outs.append([])
                    continue
                targets = []
                for descriptor in fan_out:
                    target = descriptor.get("node") if isinstance(descriptor, dict) else None
                    if target not in renames:
                        logger.warning(
                            "Dropping connection '%s' -> '%s': target was not injected",
                            source, target,
                        )
                        continue
                    targets.append({**descriptor, "node": renames[target]})
                new_fan_outs.append(targets)
            new_ports[port] = new_fan_outs
        rewritten[new_source] = new_ports
    return rewritten


def assemble(
    skeleton: Dict[str, Any],
    definitions: List[NodeDefinition],
    connections: Optional[ConnectionGraph] = None,
) -> Dict[str, Any]:
    """
    Assemble a sub-workflow document.

    Args:
        skeleton: Shared skeleton workflow (never modified)
        definitions: Normalized definitions to inject; the first one is
            wired to the Start node
        connections: Graph between the definitions, keyed by original names

    Returns:
        A new workflow document dict.

    Raises:
        AssemblyError: No definitions were supplied.
    """
    if not definitions:
        raise AssemblyError("Cannot assemble a sub-workflow without node definitions")

    document = copy.deepcopy(skeleton)
    nodes = document.setdefault("nodes", [])
    document_connections = document.get("connections")
    if not isinstance(document_connections, dict):
        document_connections = document["connections"] = {}

    for definition in definitions:
        nodes.append(definition.to_node())

    if connections:
        renames: Dict[str, str] = {}
        for definition in definitions:
            if definition.original_name in renames:
                logger.warning(
                    "Duplicate node name '%s': connections attach to '%s'",
                    definition.original_name, definition.name,
                )
            renames[definition.original_name] = definition.name
        document_connections.update(rename_connections(connections, renames))

    entry = definitions[0].name
    descriptor = _entry_descriptor(document_connections)
    if descriptor is not None:
        descriptor["node"] = entry
    else:
        logger.debug("Skeleton has no Start connection; creating one")
        document_connections[START_NODE] = {
            "main": [[{"node": entry, "type": "main", "index": 0}]]
        }

    return document


__all__ = [
    "DEFAULT_SKELETON_PATH",
    "START_NODE",
    "assemble",
    "find_entry_target",
    "load_skeleton",
    "rename_connections",
]
