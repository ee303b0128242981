"""
Node Items - Data structures flowing through workflows.

NodeItem is the fundamental data unit in workflows.
Each item has JSON data and optional binary attachments.
Nodes exchange items as plain dicts ({"json": ..., "binary": ...});
NodeItem validates and coerces caller-supplied data into that shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PairedItem(BaseModel):
    """
    Reference to the source item that produced this item.

    Used for tracking data lineage through workflows.
    """
    model_config = ConfigDict(extra="forbid")

    item: int = Field(..., description="Index of source item", ge=0)
    input: int = Field(0, description="Input branch index", ge=0)


class NodeItem(BaseModel):
    """
    A single data item flowing through a workflow.

    Each item has:
    - json_data: The main JSON data (dict)
    - binary: Optional binary attachments keyed by name
    - paired_item: Optional reference to source item

    Example:
        item = NodeItem(json_data={"name": "John", "email": "john@example.com"})
        item = NodeItem.coerce({"json": {"x": 5}})
    """
    model_config = ConfigDict(extra="forbid")

    json_data: Dict[str, Any] = Field(default_factory=dict, description="JSON data")
    binary: Dict[str, Any] = Field(
        default_factory=dict,
        description="Binary attachments keyed by name"
    )
    paired_item: Optional[PairedItem] = Field(
        None,
        description="Reference to source item"
    )

    @classmethod
    def coerce(cls, value: Any) -> "NodeItem":
        """
        Build an item from loosely shaped input.

        Accepts an execution-data dict ({"json": ..., "binary": ...}),
        any other dict (used as the JSON payload) or a scalar
        (wrapped as {"value": scalar}).
        """
        if isinstance(value, NodeItem):
            return value
        if isinstance(value, dict) and isinstance(value.get("json"), dict):
            paired = value.get("pairedItem")
            return cls(
                json_data=value["json"],
                binary=value.get("binary") or {},
                paired_item=PairedItem(**paired) if isinstance(paired, dict) else None,
            )
        if isinstance(value, dict):
            return cls(json_data=value)
        return cls(json_data={"value": value})

    @classmethod
    def coerce_list(cls, values: Any) -> List["NodeItem"]:
        """Coerce a list (or a single value) into a list of items."""
        if values is None:
            return []
        if not isinstance(values, list):
            values = [values]
        return [cls.coerce(value) for value in values]

    def to_execution_data(self) -> Dict[str, Any]:
        """Convert to the dict shape nodes exchange."""
        data: Dict[str, Any] = {"json": self.json_data}
        if self.binary:
            data["binary"] = self.binary
        if self.paired_item is not None:
            data["pairedItem"] = self.paired_item.model_dump()
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value from JSON data."""
        return self.json_data.get(key, default)


def to_execution_items(values: Any) -> List[Dict[str, Any]]:
    """Coerce arbitrary input into a list of execution-data dicts."""
    return [item.to_execution_data() for item in NodeItem.coerce_list(values)]


__all__ = [
    "NodeItem",
    "PairedItem",
    "to_execution_items",
]
