"""
Dynamic Node - Run pasted node JSON as a sub-workflow.

The node reads its parameters from the host context and hands the work to
DynamicWorkflowRunner on the host execution engine.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from node_sdk import BaseNode, NodeExecutionData, NodeParameterType

from dynamic_node.errors import InvalidInputError
from dynamic_node.runner import DynamicNodeConfig, DynamicWorkflowRunner


logger = logging.getLogger(__name__)


class DynamicNode(BaseNode):
    """
    Dynamically execute any node JSON within a workflow.

    The pasted node (or full export) runs inside a freshly synthesized
    sub-workflow on the host engine, once per input item or once for the
    whole batch.
    """

    type = "dynamicNode"
    version = 1

    description = {
        "displayName": "Dynamic Node",
        "name": "dynamicNode",
        "icon": "file:dynamicNode.svg",
        "group": ["transform"],
        "version": 1,
        "description": "Dynamically execute any node JSON within your workflow",
        "defaults": {"name": "Dynamic Node"},
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties = {
        "parameters": [
            {
                "displayName": "Node JSON",
                "name": "nodeJson",
                "type": NodeParameterType.JSON,
                "default": {},
                "required": True,
                "description": "Paste in your exported node JSON here",
            },
            {
                "displayName": "Execute Individually",
                "name": "executeIndividually",
                "type": NodeParameterType.BOOLEAN,
                "default": True,
                "description": "Run one sub-workflow per input item, evaluating expressions "
                               "against that item. Disable to run all items in one sub-workflow",
            },
            {
                "displayName": "Include All Nodes",
                "name": "includeAllNodes",
                "type": NodeParameterType.BOOLEAN,
                "default": False,
                "description": "When a full workflow export is pasted, inject every node and "
                               "its connections instead of only the first node",
            },
            {
                "displayName": "Require Single Item",
                "name": "requireSingleItem",
                "type": NodeParameterType.BOOLEAN,
                "default": False,
                "description": "Fail unless exactly one input item is received",
            },
            {
                "displayName": "Do Not Wait To Finish",
                "name": "doNotWaitToFinish",
                "type": NodeParameterType.BOOLEAN,
                "default": False,
                "description": "Start the sub-workflow and continue without collecting its results",
            },
        ]
    }

    icon = "file:dynamicNode.svg"
    color = "#7b61ff"

    def execute(self) -> List[List[NodeExecutionData]]:
        items = self.get_input_data()
        config = self._read_config()

        runner = DynamicWorkflowRunner(
            engine=self.context,
            evaluator=self.context.expression_evaluator,
            proxy_for=self.context.get_workflow_data_proxy,
        )
        results = asyncio.run(runner.run(items, config))
        logger.debug("Dynamic Node produced %d item(s) from %d input item(s)", len(results), len(items))
        return [results]

    # ---------- helpers ----------

    def _read_config(self) -> DynamicNodeConfig:
        values: Dict[str, Any] = {
            "nodeJson": self.get_node_parameter("nodeJson", 0, {}, raw=True),
        }
        for parameter in self.properties["parameters"][1:]:
            name = parameter["name"]
            value = self.get_node_parameter(name, 0, parameter["default"])
            values[name] = parameter["default"] if value is None else value
        try:
            return DynamicNodeConfig.model_validate(values)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid Dynamic Node parameters: {e}", node=self) from e
