"""Dependency references from graph edges.

An edge ``s -> t`` means ``t`` depends on ``s``. References are listed in edge
order and are not deduplicated: two edges from the same source give two
entries. Terraform accepts repeated ``depends_on`` entries, and keeping them
lets the canvas map every reference back to the edge that produced it.
Nothing here reorders or topologically sorts; Terraform works out statement
order from the references itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infracanvas.graph import Edge, Node

log = logging.getLogger(__name__)


def resolve_dependencies(edges: list[Edge], target_id: str, addresses: dict[str, str]) -> list[str]:
    """Addresses of every resource ``target_id`` depends on, in edge order.

    ``addresses`` maps node id to ``type.name``. Edges whose source is not a
    known resource (dangling edges) and self-loops are skipped.
    """
    deps: list[str] = []
    for edge in edges:
        if edge.target_id != target_id:
            continue
        if edge.source_id == target_id:
            continue
        addr = addresses.get(edge.source_id)
        if addr is None:
            log.debug("Ignoring dangling edge %s -> %s", edge.source_id, edge.target_id)
            continue
        deps.append(addr)
    return deps


def dependency_map(nodes: list[Node], edges: list[Edge], addresses: dict[str, str]) -> dict[str, list[str]]:
    """Dependencies for every node, keyed by node id."""
    result: dict[str, list[str]] = {node.id: [] for node in nodes}
    for edge in edges:
        if edge.target_id not in result or edge.source_id == edge.target_id:
            continue
        addr = addresses.get(edge.source_id)
        if addr is None:
            log.debug("Ignoring dangling edge %s -> %s", edge.source_id, edge.target_id)
            continue
        result[edge.target_id].append(addr)
    return result


def dangling_edges(nodes: list[Node], edges: list[Edge]) -> list[Edge]:
    """Edges with an endpoint missing from the node set."""
    ids = {node.id for node in nodes}
    return [e for e in edges if e.source_id not in ids or e.target_id not in ids]
