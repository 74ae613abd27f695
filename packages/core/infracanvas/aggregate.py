"""Variable and output aggregation over a resolved resource set.

A variable is declared only when some resource references it, so a graph
without a database never asks for a database password, and no reference is
left undeclared. Outputs come from a per-category table; each user resource
contributes at most one, and output names are unique across the document.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any

from infracanvas.hcl import is_reference
from infracanvas.naming import NameAllocator
from infracanvas.providers import provider_for_type
from infracanvas.records import OutputRecord, Ref, ResourceRecord, VariableRecord, iter_values

log = logging.getLogger(__name__)

_VAR_REF = re.compile(r"\bvar\.([A-Za-z_][A-Za-z0-9_-]*)")

# name -> declaration fields
_VARIABLES: dict[str, dict[str, Any]] = {
    "db_password": {"description": "Password for the database administrator", "sensitive": True},
    "lambda_package": {
        "description": "Path to the deployment package for Lambda functions",
        "default": "lambda_function.zip",
    },
    "admin_ssh_public_key": {"description": "SSH public key for the VM administrator account"},
    "task_definition_arn": {"description": "ARN of the ECS task definition to run"},
    "ecs_cluster_id": {"description": "ID of the ECS cluster that runs the service"},
    "sfn_role_arn": {"description": "IAM role ARN assumed by Step Functions state machines"},
    "environment": {"description": "Deployment environment name", "default": "dev"},
}

# provider -> name -> overridden fields
_PROVIDER_VARIABLES: dict[str, dict[str, dict[str, Any]]] = {
    "azure": {"db_password": {"description": "Administrator password for Azure SQL servers"}},
    "gcp": {"db_password": {"description": "Root password for Cloud SQL instances"}},
}

# category -> (output name suffix, description, provider -> attribute path)
_OUTPUTS: dict[str, tuple[str, str, dict[str, str]]] = {
    "compute": (
        "public_ip",
        "Public IP address of {label}",
        {
            "aws": "public_ip",
            "gcp": "network_interface[0].access_config[0].nat_ip",
            "azure": "public_ip_address",
        },
    ),
    "storage": (
        "bucket_name",
        "Bucket name of {label}",
        {"aws": "bucket", "gcp": "name", "azure": "name"},
    ),
    "database": (
        "endpoint",
        "Connection endpoint of {label}",
        {"aws": "endpoint", "gcp": "connection_name", "azure": "fully_qualified_domain_name"},
    ),
    "load_balancer": (
        "dns_name",
        "Public DNS name of {label}",
        {"aws": "dns_name", "gcp": "ip_address", "azure": "ip_address"},
    ),
}


def referenced_variables(resources: list[ResourceRecord]) -> list[str]:
    """Variable names referenced anywhere in the resources, first use first.

    Only values the emitter writes bare count: ``Ref`` expressions and plain
    strings that are themselves a reference. Any other string is a quoted
    literal, so ``"logs-${var.stage}"`` references nothing.
    """
    names: list[str] = []
    for record in resources:
        for value in iter_values(record.attributes):
            if isinstance(value, Ref):
                text = value.expr
            elif isinstance(value, str) and is_reference(value):
                text = value
            else:
                continue
            for name in _VAR_REF.findall(text):
                if name not in names:
                    names.append(name)
    return names


def declare_variable(provider: str, name: str) -> VariableRecord:
    fields = dict(_VARIABLES.get(name, {}))
    fields.update(_PROVIDER_VARIABLES.get(provider, {}).get(name, {}))
    if not fields:
        log.debug("No catalog entry for variable %s; declaring a plain string", name)
    return VariableRecord(
        name=name,
        description=fields.get("description", f"Value for {name}"),
        type=fields.get("type", "string"),
        default=fields.get("default"),
        has_default="default" in fields,
        sensitive=fields.get("sensitive", False),
    )


def output_for(provider: str, record: ResourceRecord, label: str | None = None) -> OutputRecord | None:
    """The category-determined output for one record, or None."""
    if record.injected or record.category not in _OUTPUTS:
        return None
    suffix, description, attrs = _OUTPUTS[record.category]
    attr = attrs.get(provider)
    if attr is None:
        return None
    return OutputRecord(
        name=f"{record.resource_name}_{suffix}",
        value=record.ref(attr),
        description=description.format(label=label or record.resource_name),
    )


def aggregate(
    provider: str,
    resources: list[ResourceRecord],
    labels: dict[str, str] | None = None,
) -> tuple[list[VariableRecord], list[OutputRecord]]:
    """Variables and outputs for a resolved resource set.

    ``labels`` optionally maps node ids to display names for output
    descriptions.
    """
    provider = provider.lower()
    labels = labels or {}
    variables = [declare_variable(provider, name) for name in referenced_variables(resources)]
    outputs: list[OutputRecord] = []
    # resource names are only unique per type; outputs share one namespace
    names = NameAllocator()
    for record in resources:
        owner = provider_for_type(record.resource_type) or provider
        output = output_for(owner, record, labels.get(record.node_id or ""))
        if output is None:
            continue
        name = names.allocate("output", output.name)
        if name != output.name:
            log.debug("Output %s already taken; %s uses %s", output.name, record.address, name)
            output = dataclasses.replace(output, name=name)
        outputs.append(output)
    return variables, outputs
