"""Implicit infrastructure: shared supporting resources nobody drew.

Compute and database nodes need network placement and an access-control
boundary; Lambda functions need an execution role; every Azure resource needs
a resource group. The injector scans the node set once and adds exactly one
shared instance of each required scaffold, unless the user already placed a
node of that service type, in which case lookups point at the user's node.

Providers without rules (anything not listed in _REQUIREMENTS) get no
scaffolding; that is not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from infracanvas.naming import sanitize_name
from infracanvas.providers import get_profile
from infracanvas.records import Block, Ref, ResourceRecord

if TYPE_CHECKING:
    from infracanvas.graph import Node
    from infracanvas.schema import SchemaEntry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaffoldKind:
    kind: str
    resource_type: str
    resource_name: str
    # user-placeable service type that satisfies this kind, if any
    service_id: str | None = None
    requires: tuple[str, ...] = ()
    description: str = ""


# Declaration order is emission order; a kind only requires kinds above it.
_KINDS: dict[str, list[ScaffoldKind]] = {
    "aws": [
        ScaffoldKind("vpc", "aws_vpc", "main", service_id="vpc", description="Shared VPC"),
        ScaffoldKind("subnet", "aws_subnet", "main", requires=("vpc",), description="Shared subnet"),
        ScaffoldKind(
            "security_group",
            "aws_security_group",
            "default",
            service_id="security_group",
            requires=("vpc",),
            description="Shared security group",
        ),
        ScaffoldKind(
            "db_subnet_group", "aws_db_subnet_group", "main", requires=("subnet",), description="Database subnet group"
        ),
        ScaffoldKind("lambda_role", "aws_iam_role", "lambda_role", description="Lambda execution role"),
    ],
    "azure": [
        ScaffoldKind("resource_group", "azurerm_resource_group", "main", description="Shared resource group"),
        ScaffoldKind(
            "vnet",
            "azurerm_virtual_network",
            "main",
            service_id="vnet",
            requires=("resource_group",),
            description="Shared virtual network",
        ),
        ScaffoldKind("subnet", "azurerm_subnet", "main", requires=("vnet",), description="Shared subnet"),
        ScaffoldKind(
            "network_interface",
            "azurerm_network_interface",
            "main",
            requires=("subnet",),
            description="Shared network interface",
        ),
    ],
    "gcp": [
        ScaffoldKind(
            "network",
            "google_compute_network",
            "main",
            service_id="network",
            description="Shared VPC network",
        ),
    ],
}

# provider -> {category or service_id or "*": kinds required}
_REQUIREMENTS: dict[str, dict[str, tuple[str, ...]]] = {
    "aws": {
        "compute": ("subnet", "security_group"),
        "database": ("subnet", "security_group"),
        "load_balancer": ("subnet", "security_group"),
        "container": ("subnet", "security_group"),
        "rds": ("db_subnet_group",),
        "lambda": ("lambda_role",),
        "security_group": ("vpc",),
    },
    "azure": {
        "*": ("resource_group",),
        "compute": ("network_interface",),
    },
    "gcp": {
        "compute": ("network",),
        "database": ("network",),
    },
}


def scaffold_kinds(provider: str) -> list[ScaffoldKind]:
    return list(_KINDS.get(provider.lower(), []))


def _kind_map(provider: str) -> dict[str, ScaffoldKind]:
    return {k.kind: k for k in _KINDS.get(provider.lower(), [])}


def _close(kinds: set[str], by_kind: dict[str, ScaffoldKind]) -> set[str]:
    result = set(kinds)
    pending = list(kinds)
    while pending:
        kind = by_kind.get(pending.pop())
        if kind is None:
            continue
        for dep in kind.requires:
            if dep not in result:
                result.add(dep)
                pending.append(dep)
    return result


@dataclass
class ScaffoldPlan:
    """Which scaffold kinds a graph needs and which the user already placed."""

    provider: str
    required: list[str] = field(default_factory=list)
    # kind -> node id of the user's explicit instance
    existing: dict[str, str] = field(default_factory=dict)

    @property
    def missing(self) -> list[str]:
        return [k for k in self.required if k not in self.existing]

    def reserved_names(self) -> list[tuple[str, str]]:
        by_kind = _kind_map(self.provider)
        return [(by_kind[k].resource_type, by_kind[k].resource_name) for k in self.missing]


def plan_scaffolding(
    provider: str,
    nodes: list[Node],
    entries: dict[str, SchemaEntry | None],
) -> ScaffoldPlan:
    """Scan nodes once and decide what to inject.

    ``entries`` maps node id to its resolved schema entry (None when unknown).
    Only nodes belonging to ``provider`` take part.
    """
    provider = provider.lower()
    plan = ScaffoldPlan(provider=provider)
    by_kind = _kind_map(provider)
    rules = _REQUIREMENTS.get(provider)
    if not by_kind or not rules:
        return plan

    wanted: set[str] = set()
    for node in nodes:
        if (node.provider or provider).lower() != provider:
            continue
        entry = entries.get(node.id)
        keys = ["*", node.service_id]
        if entry is not None:
            keys.append(entry.category)
        for key in keys:
            wanted.update(rules.get(key, ()))

    # user-placed instances, first one wins
    for node in nodes:
        if (node.provider or provider).lower() != provider:
            continue
        for kind in by_kind.values():
            if kind.service_id and kind.service_id == node.service_id:
                plan.existing.setdefault(kind.kind, node.id)

    closed = _close(wanted, by_kind)
    plan.required = [k.kind for k in by_kind.values() if k.kind in closed]
    return plan


class Scaffolding:
    """Injected records plus lookups into the shared scaffold resources."""

    def __init__(self, provider: str, records: list[ResourceRecord], addresses: dict[str, str]):
        self.provider = provider
        self.records = records
        self._addresses = addresses

    def address(self, kind: str) -> str | None:
        return self._addresses.get(kind)

    def reference(self, kind: str, attr: str = "id") -> Ref | None:
        addr = self._addresses.get(kind)
        if addr is None:
            return None
        return Ref(f"{addr}.{attr}")

    def kinds(self) -> list[str]:
        return list(self._addresses)


def build_scaffolding(
    plan: ScaffoldPlan,
    node_addresses: dict[str, str],
    region: str | None = None,
) -> Scaffolding:
    """Materialise a plan into records.

    ``node_addresses`` maps node ids to their ``type.name`` address so lookups
    for user-placed scaffolds resolve to the user's resource.
    """
    by_kind = _kind_map(plan.provider)
    profile = get_profile(plan.provider)
    addresses: dict[str, str] = {}
    for kind in plan.required:
        if kind in plan.existing and plan.existing[kind] in node_addresses:
            addresses[kind] = node_addresses[plan.existing[kind]]
        else:
            k = by_kind[kind]
            addresses[kind] = f"{k.resource_type}.{k.resource_name}"

    records: list[ResourceRecord] = []
    for kind in plan.missing:
        k = by_kind[kind]
        builder = _BUILDERS[(plan.provider, kind)]
        ctx = _BuildContext(addresses=addresses, region=region or (profile.default_region if profile else ""))
        attrs = builder(ctx)
        tag_attr = profile.tag_attribute if profile else "tags"
        if profile and (plan.provider, kind) not in _UNTAGGED:
            attrs[tag_attr] = profile.tags(f"{k.resource_name}-{k.kind}".replace("_", "-"))
        records.append(
            ResourceRecord(
                resource_type=k.resource_type,
                resource_name=k.resource_name,
                attributes=attrs,
                category="scaffolding",
                comment=k.description,
            )
        )
        log.debug("Injected %s.%s for %s", k.resource_type, k.resource_name, kind)

    return Scaffolding(plan.provider, records, addresses)


def inject_scaffolding(
    provider: str,
    nodes: list[Node],
    entries: dict[str, SchemaEntry | None],
    node_addresses: dict[str, str] | None = None,
    region: str | None = None,
) -> Scaffolding:
    """Plan and build in one step.

    Without ``node_addresses``, user nodes are addressed by their schema
    resource type and sanitized display name.
    """
    plan = plan_scaffolding(provider, nodes, entries)
    if node_addresses is None:
        node_addresses = {}
        for node in nodes:
            entry = entries.get(node.id)
            if entry is not None:
                name = sanitize_name(node.display_name or node.service_id)
                node_addresses[node.id] = f"{entry.resource_type}.{name}"
    return build_scaffolding(plan, node_addresses, region=region)


@dataclass
class _BuildContext:
    addresses: dict[str, str]
    region: str

    def ref(self, kind: str, attr: str = "id") -> Ref:
        return Ref(f"{self.addresses[kind]}.{attr}")


_BUILDERS: dict[tuple[str, str], Callable[[_BuildContext], dict[str, Any]]] = {}

# scaffolds whose terraform type has no tags/labels argument
_UNTAGGED = {("gcp", "network"), ("azure", "subnet")}


def _builder(provider: str, kind: str):
    def decorator(fn):
        _BUILDERS[(provider, kind)] = fn
        return fn

    return decorator


@_builder("aws", "vpc")
def _aws_vpc(ctx: _BuildContext) -> dict[str, Any]:
    return {"cidr_block": "10.0.0.0/16", "enable_dns_hostnames": True, "enable_dns_support": True}


@_builder("aws", "subnet")
def _aws_subnet(ctx: _BuildContext) -> dict[str, Any]:
    return {
        "vpc_id": ctx.ref("vpc"),
        "cidr_block": "10.0.1.0/24",
        "map_public_ip_on_launch": True,
    }


@_builder("aws", "security_group")
def _aws_security_group(ctx: _BuildContext) -> dict[str, Any]:
    return {
        "name": "infracanvas-default",
        "description": "Shared access rules for generated resources",
        "vpc_id": ctx.ref("vpc"),
        "ingress": [
            Block({"from_port": port, "to_port": port, "protocol": "tcp", "cidr_blocks": ["0.0.0.0/0"]})
            for port in (80, 443)
        ],
        "egress": Block({"from_port": 0, "to_port": 0, "protocol": "-1", "cidr_blocks": ["0.0.0.0/0"]}),
    }


@_builder("aws", "db_subnet_group")
def _aws_db_subnet_group(ctx: _BuildContext) -> dict[str, Any]:
    return {"name": "infracanvas-db-subnets", "subnet_ids": [ctx.ref("subnet")]}


@_builder("aws", "lambda_role")
def _aws_lambda_role(ctx: _BuildContext) -> dict[str, Any]:
    policy = (
        'jsonencode({ Version = "2012-10-17", Statement = [{ Action = "sts:AssumeRole", '
        'Effect = "Allow", Principal = { Service = "lambda.amazonaws.com" } }] })'
    )
    return {"name": "infracanvas-lambda-role", "assume_role_policy": Ref(policy)}


@_builder("azure", "resource_group")
def _azure_resource_group(ctx: _BuildContext) -> dict[str, Any]:
    return {"name": "rg-infracanvas", "location": ctx.region}


@_builder("azure", "vnet")
def _azure_vnet(ctx: _BuildContext) -> dict[str, Any]:
    return {
        "name": "vnet-infracanvas",
        "address_space": ["10.0.0.0/16"],
        "location": ctx.ref("resource_group", "location"),
        "resource_group_name": ctx.ref("resource_group", "name"),
    }


@_builder("azure", "subnet")
def _azure_subnet(ctx: _BuildContext) -> dict[str, Any]:
    return {
        "name": "subnet-infracanvas",
        "resource_group_name": ctx.ref("resource_group", "name"),
        "virtual_network_name": ctx.ref("vnet", "name"),
        "address_prefixes": ["10.0.1.0/24"],
    }


@_builder("azure", "network_interface")
def _azure_network_interface(ctx: _BuildContext) -> dict[str, Any]:
    return {
        "name": "nic-infracanvas",
        "location": ctx.ref("resource_group", "location"),
        "resource_group_name": ctx.ref("resource_group", "name"),
        "ip_configuration": Block(
            {
                "name": "internal",
                "subnet_id": ctx.ref("subnet"),
                "private_ip_address_allocation": "Dynamic",
            }
        ),
    }


@_builder("gcp", "network")
def _gcp_network(ctx: _BuildContext) -> dict[str, Any]:
    return {"name": "infracanvas-network", "auto_create_subnetworks": True}
