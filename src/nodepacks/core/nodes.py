"""
Core Nodes - Essential utility node implementations.

These are the node types a synthesized sub-workflow needs to run in
process: the skeleton's Start node plus a couple of simple transforms.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from node_sdk import BaseNode, NodeExecutionData, NodeOperationError, NodeParameterType


logger = logging.getLogger(__name__)


def _passthrough(items: List[NodeExecutionData]) -> List[NodeExecutionData]:
    return [
        {**item, "json": item.get("json", {}), "pairedItem": {"item": i}}
        for i, item in enumerate(items)
    ]


class StartNode(BaseNode):
    """
    Start - Entry point of a workflow.

    Emits the items the workflow was started with.
    """

    type = "n8n-nodes-base.start"
    version = 1

    description = {
        "displayName": "Start",
        "name": "start",
        "icon": "fa:play",
        "group": ["input"],
        "description": "Starts the workflow execution from this node",
        "version": 1,
        "inputs": [],
        "outputs": ["main"],
    }

    def execute(self) -> List[List[NodeExecutionData]]:
        return [_passthrough(self.get_input_data())]


class NoOpNode(BaseNode):
    """
    No Operation Node - Pass-through.

    Simply passes input items through unchanged.
    """

    type = "n8n-nodes-base.noOp"
    version = 1

    description = {
        "displayName": "No Operation",
        "name": "noOp",
        "icon": "fa:arrow-right",
        "group": ["transform"],
        "description": "No operation - passes items through",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    def execute(self) -> List[List[NodeExecutionData]]:
        """Pass through items unchanged."""
        return [_passthrough(self.get_input_data())]


class SetNode(BaseNode):
    """
    Set Node - Set or modify data fields.

    Manual mode takes `values` as a {name: value} mapping or as a list of
    {name, value} pairs; raw mode parses `jsonData`.
    """

    type = "n8n-nodes-base.set"
    version = 1

    description = {
        "displayName": "Set",
        "name": "set",
        "icon": "fa:pen",
        "group": ["transform"],
        "description": "Sets values on items",
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties = {
        "parameters": [
            {
                "displayName": "Mode",
                "name": "mode",
                "type": NodeParameterType.OPTIONS,
                "default": "manual",
                "options": [
                    {"name": "Manual", "value": "manual"},
                    {"name": "Raw JSON", "value": "raw"},
                ],
            },
            {
                "displayName": "Values",
                "name": "values",
                "type": NodeParameterType.FIXED_COLLECTION,
                "default": {},
                "displayOptions": {"show": {"mode": ["manual"]}},
            },
            {
                "displayName": "JSON Data",
                "name": "jsonData",
                "type": NodeParameterType.JSON,
                "default": "{}",
                "displayOptions": {"show": {"mode": ["raw"]}},
            },
            {
                "displayName": "Keep Only Set",
                "name": "keepOnlySet",
                "type": NodeParameterType.BOOLEAN,
                "default": False,
                "description": "If true, only keep the set values, discard others",
            },
        ],
    }

    def execute(self) -> List[List[NodeExecutionData]]:
        """Set values on items."""
        items = self.get_input_data()
        mode = self.get_node_parameter("mode", 0, "manual")
        keep_only_set = self.get_node_parameter("keepOnlySet", 0, False)

        results = []
        for i, item in enumerate(items):
            if mode == "raw":
                new_data = self._raw_values(i)
            else:
                new_data = self._manual_values(i)

            output = new_data if keep_only_set else {**item.get("json", {}), **new_data}
            results.append({"json": output, "pairedItem": {"item": i}})

        return [results]

    def _raw_values(self, item_index: int) -> Dict[str, Any]:
        json_data = self.get_node_parameter("jsonData", item_index, "{}")
        if isinstance(json_data, str):
            try:
                json_data = json.loads(json_data)
            except json.JSONDecodeError as e:
                raise NodeOperationError(f"jsonData is not valid JSON: {e}", node=self, item_index=item_index) from e
        if not isinstance(json_data, dict):
            raise NodeOperationError("jsonData must be a JSON object", node=self, item_index=item_index)
        return json_data

    def _manual_values(self, item_index: int) -> Dict[str, Any]:
        values = self.get_node_parameter("values", item_index, {})
        if isinstance(values, dict) and isinstance(values.get("parameters"), list):
            values = values["parameters"]
        if isinstance(values, list):
            return {
                entry["name"]: entry.get("value")
                for entry in values
                if isinstance(entry, dict) and "name" in entry
            }
        return dict(values or {})
