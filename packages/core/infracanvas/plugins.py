"""Plugin discovery: third-party synthesizers and service schemas via entry points.

Two groups are scanned:

``infracanvas.synthesizers``
    entry point name ``provider:service_id``, target a synthesizer callable
``infracanvas.schemas``
    entry point name is the provider key, target a services mapping (the same
    shape as one ``data/schemas/*.yaml`` file's ``services``) or a zero-argument
    callable returning one

A plugin that fails to load or has the wrong shape is logged and skipped.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Callable

logger = logging.getLogger(__name__)

SYNTHESIZER_GROUP = "infracanvas.synthesizers"
SCHEMA_GROUP = "infracanvas.schemas"

ALL_GROUPS = [SYNTHESIZER_GROUP, SCHEMA_GROUP]


def _load_group(group: str) -> dict[str, Any]:
    loaded: dict[str, Any] = {}
    try:
        eps = entry_points(group=group)
    except Exception as exc:
        logger.warning("Failed to scan entry point group %s: %s", group, exc)
        return loaded
    for ep in eps:
        try:
            loaded[ep.name] = ep.load()
        except Exception as exc:
            logger.warning("Failed to load plugin %s from %s: %s", ep.name, group, exc)
            continue
        logger.debug("Loaded plugin %s from group %s", ep.name, group)
    return loaded


def discover_plugins(group: str | None = None) -> dict[str, dict[str, Any]]:
    """Raw ``{group: {entry point name: loaded object}}`` for one or all groups."""
    return {g: _load_group(g) for g in ([group] if group else ALL_GROUPS)}


def discover_synthesizers() -> dict[tuple[str, str], Callable[..., dict[str, Any]]]:
    """Synthesizer plugins keyed by ``(provider, service_id)``."""
    found: dict[tuple[str, str], Callable[..., dict[str, Any]]] = {}
    for name, fn in _load_group(SYNTHESIZER_GROUP).items():
        provider, sep, service_id = name.partition(":")
        if not sep or not provider or not service_id or not callable(fn):
            logger.warning("Ignoring synthesizer plugin %r: expected 'provider:service_id' -> callable", name)
            continue
        found[(provider.lower(), service_id)] = fn
    return found


def discover_schemas() -> dict[str, dict[str, Any]]:
    """Schema plugins keyed by provider, callables already resolved."""
    found: dict[str, dict[str, Any]] = {}
    for provider, obj in _load_group(SCHEMA_GROUP).items():
        try:
            services = obj() if callable(obj) else obj
        except Exception as exc:
            logger.warning("Schema plugin %r raised while building its services: %s", provider, exc)
            continue
        if not isinstance(services, dict):
            logger.warning("Ignoring schema plugin %r: expected a mapping of services", provider)
            continue
        found.setdefault(provider.lower(), {}).update(services)
    return found


def list_plugins() -> dict[str, list[str]]:
    """Entry point names per group, whether or not they pass validation."""
    return {group: sorted(loaded) for group, loaded in discover_plugins().items()}
