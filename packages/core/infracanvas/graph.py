"""GraphSnapshot: the canvas graph handed to the compiler.

The canvas owns the live graph; the compiler only ever sees a snapshot of
nodes and edges. Field aliases accept the camelCase keys the canvas emits.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class Position(BaseModel):
    x: float = 0
    y: float = 0


class Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    service_id: str = Field(validation_alias=AliasChoices("service_id", "serviceId", "service"))
    provider: str = ""
    display_name: str = Field(default="", validation_alias=AliasChoices("display_name", "displayName", "name"))
    user_config: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("user_config", "userConfig", "config")
    )
    # canvas-supplied terraform type, used only when no schema entry exists
    resource_type: str | None = Field(
        default=None, validation_alias=AliasChoices("resource_type", "resourceType", "terraformType")
    )
    position: Position | None = None


class Edge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_id: str = Field(validation_alias=AliasChoices("source_id", "sourceId", "source"))
    target_id: str = Field(validation_alias=AliasChoices("target_id", "targetId", "target"))
    relationship_label: str = Field(
        default="", validation_alias=AliasChoices("relationship_label", "relationshipLabel", "relationship", "label")
    )
    bidirectional: bool = False


class GraphSnapshot(BaseModel):
    """Provider plus the nodes and edges drawn on the canvas."""

    provider: str = "aws"
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_node_ids(self) -> GraphSnapshot:
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id {node.id!r}")
            seen.add(node.id)
        return self

    def node_provider(self, node: Node) -> str:
        return (node.provider or self.provider).lower()

    def to_yaml(self) -> str:
        data = self.model_dump(exclude_none=True)
        for node in data["nodes"]:
            node.pop("position", None)
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent, exclude_none=True)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> GraphSnapshot:
        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str | Path) -> GraphSnapshot:
        p = Path(path)
        text = p.read_text()
        if p.suffix in (".yaml", ".yml"):
            return cls.from_yaml(text)
        return cls.model_validate_json(text)
