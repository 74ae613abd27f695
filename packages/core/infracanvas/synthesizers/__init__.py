"""Resource config synthesizers: one function per (provider, service_id).

A synthesizer takes a SynthesisContext (node, merged config, scaffolding
lookups, naming helpers) and returns the attribute map for one resource.
Built-in synthesizers live in the provider modules of this package; third
parties can add more through the ``infracanvas.synthesizers`` entry point
group (entry point name ``provider:service_id``).

Pairs with no synthesizer fall back to the merged config verbatim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from infracanvas.hcl import is_identifier
from infracanvas.naming import DEFAULT_SESSION, dns_name, sanitize_name, stable_suffix
from infracanvas.records import Block, Ref, ResourceRecord

if TYPE_CHECKING:
    from infracanvas.graph import Node
    from infracanvas.providers import ProviderProfile
    from infracanvas.scaffolding import Scaffolding
    from infracanvas.schema import SchemaEntry

log = logging.getLogger(__name__)

Synthesizer = Callable[["SynthesisContext"], dict[str, Any]]

_REGISTRY: dict[tuple[str, str], Synthesizer] = {}
_plugins_loaded = False


def register(provider: str, service_id: str) -> Callable[[Synthesizer], Synthesizer]:
    """Decorator registering a synthesizer for one service type."""

    def decorator(fn: Synthesizer) -> Synthesizer:
        _REGISTRY[(provider.lower(), service_id)] = fn
        return fn

    return decorator


def _load_plugins() -> None:
    global _plugins_loaded
    if _plugins_loaded:
        return
    _plugins_loaded = True
    from infracanvas.plugins import discover_synthesizers

    for key, fn in discover_synthesizers().items():
        _REGISTRY.setdefault(key, fn)


def get_synthesizer(provider: str, service_id: str) -> Synthesizer | None:
    _load_plugins()
    return _REGISTRY.get((provider.lower(), service_id))


def registered(provider: str | None = None) -> list[tuple[str, str]]:
    _load_plugins()
    keys = sorted(_REGISTRY)
    if provider:
        keys = [k for k in keys if k[0] == provider.lower()]
    return keys


@dataclass
class SynthesisContext:
    """Everything a synthesizer may look at for one node."""

    node: Node
    provider: str
    config: dict[str, Any]
    name: str
    entry: SchemaEntry | None = None
    profile: ProviderProfile | None = None
    scaffolding: Scaffolding | None = None
    session: str = DEFAULT_SESSION
    region: str = ""
    used_scaffolds: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.node.display_name or self.node.service_id

    def get(self, key: str, default: Any = None) -> Any:
        """Config value, treating None and empty strings as unset."""
        value = self.config.get(key)
        if value is None or value == "":
            return default
        return value

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1", "enabled", "on")
        return bool(value)

    def scaffold(self, kind: str, attr: str = "id") -> Ref | None:
        """Reference to a shared scaffold resource; marks it as a dependency."""
        if self.scaffolding is None:
            return None
        ref = self.scaffolding.reference(kind, attr)
        if ref is not None:
            address = self.scaffolding.address(kind)
            if address not in self.used_scaffolds:
                self.used_scaffolds.append(address)
        return ref

    def tags(self, name: str | None = None) -> dict[str, str]:
        if self.profile is None:
            return {}
        return self.profile.tags(name or self.label)

    def suffix(self, length: int = 8) -> str:
        return stable_suffix(self.node.id, self.session, length)

    def unique_name(self, base: str, max_len: int = 63) -> str:
        """DNS-style name with a suffix derived from node id and session."""
        suffix = self.suffix()
        stem = dns_name(base, max_len - len(suffix) - 1)
        return f"{stem}-{suffix}"


def tag_blocks(attributes: dict[str, Any], block_keys: frozenset[str] | set[str]) -> dict[str, Any]:
    """Mark plain dicts under block-style keys as Blocks (recursively)."""
    result: dict[str, Any] = {}
    for key, value in attributes.items():
        if key in block_keys:
            if isinstance(value, dict):
                value = Block(tag_blocks(value, block_keys))
            elif isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
                value = [Block(tag_blocks(v, block_keys)) for v in value]
        result[key] = value
    return result


def resource_type_for(node: Node, entry: SchemaEntry | None) -> str:
    if entry is not None:
        return entry.resource_type
    if node.resource_type and not is_identifier(node.resource_type):
        return sanitize_name(node.resource_type)
    return node.resource_type or sanitize_name(node.service_id)


def synthesize(
    node: Node,
    *,
    provider: str,
    name: str,
    config: dict[str, Any],
    dependencies: list[str],
    entry: SchemaEntry | None = None,
    profile: ProviderProfile | None = None,
    scaffolding: Scaffolding | None = None,
    session: str = DEFAULT_SESSION,
    region: str = "",
) -> ResourceRecord:
    """Build the ResourceRecord for one node."""
    resource_type = resource_type_for(node, entry)
    category = entry.category if entry else ""
    fn = get_synthesizer(provider, node.service_id) if entry is not None else None

    if fn is None:
        if entry is None:
            log.debug("No schema for %s/%s (node %s); passing config through", provider, node.service_id, node.id)
        else:
            log.debug("No synthesizer for %s/%s; passing config through", provider, node.service_id)
        block_keys = set(entry.block_keys) if entry else set()
        if profile is not None:
            block_keys |= profile.block_keys
        return ResourceRecord(
            resource_type=resource_type,
            resource_name=name,
            attributes=tag_blocks(dict(config), block_keys),
            dependencies=tuple(dependencies),
            node_id=node.id,
            category=category,
        )

    ctx = SynthesisContext(
        node=node,
        provider=provider,
        config=config,
        name=name,
        entry=entry,
        profile=profile,
        scaffolding=scaffolding,
        session=session,
        region=region,
    )
    attributes = fn(ctx)
    deps = list(dependencies)
    deps.extend(addr for addr in ctx.used_scaffolds if addr not in deps and addr != f"{resource_type}.{name}")
    return ResourceRecord(
        resource_type=resource_type,
        resource_name=name,
        attributes=attributes,
        dependencies=tuple(deps),
        node_id=node.id,
        category=category,
    )


# Built-in synthesizers register themselves on import.
from infracanvas.synthesizers import aws, azure, gcp  # noqa: E402,F401
