"""Compiler records and attribute value variants.

Attribute values are one of:

- a plain literal (str, int, float, bool)
- ``Ref``: a symbolic expression emitted unquoted
- ``Block``: a nested ``key { ... }`` block
- ``list``: a list literal, or repeated blocks when every item is a Block
- ``dict``: a map literal (``key = { ... }``)

Synthesizers say which one they mean; the emitter never has to guess from
the value's shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Ref:
    """A reference to a resource, variable, data source or function call."""

    expr: str

    def __str__(self) -> str:
        return self.expr


@dataclass(frozen=True)
class Block:
    """A nested configuration block."""

    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResourceRecord:
    resource_type: str
    resource_name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    dependencies: tuple[str, ...] = ()
    node_id: str | None = None
    category: str = ""
    comment: str = ""

    @property
    def address(self) -> str:
        return f"{self.resource_type}.{self.resource_name}"

    @property
    def injected(self) -> bool:
        return self.node_id is None

    def ref(self, attr: str = "id") -> Ref:
        return Ref(f"{self.address}.{attr}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_type": self.resource_type,
            "resource_name": self.resource_name,
            "node_id": self.node_id,
            "category": self.category,
            "attributes": to_plain(self.attributes),
            "dependencies": list(self.dependencies),
        }


@dataclass(frozen=True)
class VariableRecord:
    name: str
    description: str = ""
    type: str = "string"
    default: Any = None
    has_default: bool = False
    sensitive: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "description": self.description, "type": self.type}
        if self.has_default:
            data["default"] = self.default
        if self.sensitive:
            data["sensitive"] = True
        return data


@dataclass(frozen=True)
class OutputRecord:
    name: str
    value: Ref
    description: str = ""
    sensitive: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "value": self.value.expr,
            "sensitive": self.sensitive,
        }


def to_plain(value: Any) -> Any:
    """Convert a value tree to JSON-friendly data (refs become their expression)."""
    if isinstance(value, Ref):
        return value.expr
    if isinstance(value, Block):
        return {k: to_plain(v) for k, v in value.attributes.items()}
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def iter_values(value: Any):
    """Yield every leaf value in an attribute tree."""
    if isinstance(value, Block):
        for v in value.attributes.values():
            yield from iter_values(v)
    elif isinstance(value, dict):
        for v in value.values():
            yield from iter_values(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from iter_values(v)
    else:
        yield value
