"""AWS resource synthesizers."""

from __future__ import annotations

import json
from typing import Any

from infracanvas.naming import dns_name, sanitize_name
from infracanvas.records import Block, Ref
from infracanvas.synthesizers import SynthesisContext, register

_ENGINE_VERSIONS = {
    "mysql": "8.0",
    "postgres": "15.4",
    "mariadb": "10.11",
    "oracle-ee": "19",
    "sqlserver-ex": "15.00",
}

_DEFAULT_STATE_MACHINE = {
    "Comment": "Generated state machine",
    "StartAt": "Done",
    "States": {"Done": {"Type": "Succeed"}},
}


def _ports(value: Any) -> list[int]:
    if value is None:
        return []
    values = value if isinstance(value, list) else str(value).split(",")
    ports: list[int] = []
    for v in values:
        try:
            port = int(str(v).strip())
        except ValueError:
            continue
        if port not in ports:
            ports.append(port)
    return ports


def _egress_all() -> Block:
    return Block({"from_port": 0, "to_port": 0, "protocol": "-1", "cidr_blocks": ["0.0.0.0/0"]})


@register("aws", "ec2")
def ec2(ctx: SynthesisContext) -> dict[str, Any]:
    sg = ctx.scaffold("security_group")
    return {
        "ami": ctx.get("ami", "ami-0abcdef1234567890"),
        "instance_type": ctx.get("instance_type", "t3.micro"),
        "key_name": ctx.get("key_name"),
        "subnet_id": ctx.scaffold("subnet"),
        "vpc_security_group_ids": [sg] if sg else None,
        "associate_public_ip_address": ctx.get_bool("associate_public_ip_address", True),
        "tags": ctx.tags(ctx.get("name", f"{ctx.label}-instance")),
    }


@register("aws", "s3")
def s3(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "bucket": ctx.get("bucket_name") or ctx.unique_name(f"{ctx.label}-bucket"),
        "force_destroy": ctx.get_bool("force_destroy", False),
        "versioning": Block({"enabled": ctx.get("versioning") == "Enabled"}),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "rds")
def rds(ctx: SynthesisContext) -> dict[str, Any]:
    engine = ctx.get("engine", "mysql")
    sg = ctx.scaffold("security_group")
    db_name = ctx.get("db_name")
    return {
        "identifier": dns_name(db_name or f"{ctx.label}-db"),
        "engine": engine,
        "engine_version": ctx.get("engine_version", _ENGINE_VERSIONS.get(engine, "8.0")),
        "instance_class": ctx.get("instance_class", "db.t3.micro"),
        "allocated_storage": ctx.get_int("allocated_storage", 20),
        "db_name": sanitize_name(db_name or "mydb"),
        "username": ctx.get("username", "admin"),
        "password": Ref("var.db_password"),
        "multi_az": ctx.get_bool("multi_az", False),
        "vpc_security_group_ids": [sg] if sg else None,
        "db_subnet_group_name": ctx.scaffold("db_subnet_group", "name"),
        "skip_final_snapshot": True,
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "dynamodb")
def dynamodb(ctx: SynthesisContext) -> dict[str, Any]:
    hash_key = ctx.get("hash_key", "id")
    range_key = ctx.get("range_key")
    billing_mode = ctx.get("billing_mode", "PAY_PER_REQUEST")
    attributes = [Block({"name": hash_key, "type": "S"})]
    if range_key:
        attributes.append(Block({"name": range_key, "type": "S"}))
    attrs: dict[str, Any] = {
        "name": ctx.get("table_name") or sanitize_name(ctx.label),
        "billing_mode": billing_mode,
        "hash_key": hash_key,
        "range_key": range_key,
    }
    if billing_mode == "PROVISIONED":
        attrs["read_capacity"] = ctx.get_int("read_capacity", 5)
        attrs["write_capacity"] = ctx.get_int("write_capacity", 5)
    attrs["attribute"] = attributes
    attrs["tags"] = ctx.tags(ctx.get("name"))
    return attrs


@register("aws", "lambda")
def lambda_function(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "function_name": ctx.get("function_name") or dns_name(f"{ctx.label}-function"),
        "runtime": ctx.get("runtime", "nodejs18.x"),
        "handler": ctx.get("handler", "index.handler"),
        "filename": Ref("var.lambda_package"),
        "memory_size": ctx.get_int("memory_size", 128),
        "timeout": ctx.get_int("timeout", 30),
        "role": ctx.scaffold("lambda_role", "arn"),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "vpc")
def vpc(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "cidr_block": ctx.get("cidr_block", "10.0.0.0/16"),
        "enable_dns_hostnames": ctx.get_bool("enable_dns_hostnames", True),
        "enable_dns_support": ctx.get_bool("enable_dns_support", True),
        "tags": ctx.tags(ctx.get("name", f"{ctx.label}-vpc")),
    }


@register("aws", "security_group")
def security_group(ctx: SynthesisContext) -> dict[str, Any]:
    cidr = ctx.get("ingress_cidr", "0.0.0.0/0")
    ingress = [
        Block({"from_port": port, "to_port": port, "protocol": "tcp", "cidr_blocks": [cidr]})
        for port in _ports(ctx.get("allowed_ports"))
    ]
    return {
        "name": dns_name(ctx.get("name", ctx.label)),
        "description": ctx.get("description", f"Access rules for {ctx.label}"),
        "vpc_id": ctx.scaffold("vpc"),
        "ingress": ingress or None,
        "egress": _egress_all(),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "alb")
def alb(ctx: SynthesisContext) -> dict[str, Any]:
    subnet = ctx.scaffold("subnet")
    sg = ctx.scaffold("security_group")
    return {
        # load balancer names are capped at 32 characters
        "name": dns_name(ctx.get("name") or f"{ctx.label}-alb", 32),
        "internal": ctx.get("scheme", "internet-facing") == "internal",
        "load_balancer_type": ctx.get("load_balancer_type", "application"),
        "subnets": [subnet] if subnet else None,
        "security_groups": [sg] if sg else None,
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "sqs")
def sqs(ctx: SynthesisContext) -> dict[str, Any]:
    fifo = ctx.get_bool("fifo_queue", False)
    name = ctx.get("name") or dns_name(f"{ctx.label}-queue", 75)
    if fifo and not name.endswith(".fifo"):
        name = f"{name}.fifo"
    return {
        "name": name,
        "fifo_queue": fifo,
        "visibility_timeout_seconds": ctx.get_int("visibility_timeout_seconds", 30),
        "message_retention_seconds": ctx.get_int("message_retention_seconds", 345600),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "cognito")
def cognito(ctx: SynthesisContext) -> dict[str, Any]:
    aliases = ctx.get("alias_attributes")
    if isinstance(aliases, str):
        aliases = [a.strip() for a in aliases.split(",") if a.strip()]
    return {
        "name": ctx.get("name", dns_name(f"{ctx.label}-users")),
        "alias_attributes": aliases or None,
        "tags": ctx.tags(),
    }


@register("aws", "cloudwatch")
def cloudwatch(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "name": ctx.get("name") or f"/infracanvas/{ctx.name}",
        "retention_in_days": ctx.get_int("retention_in_days", 14),
        "tags": ctx.tags(),
    }


@register("aws", "api_gateway")
def api_gateway(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "name": ctx.get("name", ctx.label),
        "description": ctx.get("description", "REST API"),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "fargate")
def fargate(ctx: SynthesisContext) -> dict[str, Any]:
    launch_type = ctx.get("launch_type", "FARGATE")
    attrs: dict[str, Any] = {
        "name": ctx.get("name") or dns_name(f"{ctx.label}-service"),
        "cluster": Ref("var.ecs_cluster_id"),
        "task_definition": Ref("var.task_definition_arn"),
        "desired_count": ctx.get_int("desired_count", 1),
        "launch_type": launch_type,
    }
    if launch_type == "FARGATE":
        subnet = ctx.scaffold("subnet")
        sg = ctx.scaffold("security_group")
        attrs["network_configuration"] = Block(
            {
                "subnets": [subnet] if subnet else None,
                "security_groups": [sg] if sg else None,
                "assign_public_ip": False,
            }
        )
    attrs["tags"] = ctx.tags(ctx.get("name"))
    return attrs


@register("aws", "step_functions")
def step_functions(ctx: SynthesisContext) -> dict[str, Any]:
    definition = ctx.get("definition") or json.dumps(_DEFAULT_STATE_MACHINE, sort_keys=True)
    return {
        "name": ctx.get("name") or dns_name(f"{ctx.label}-workflow", 80),
        "role_arn": Ref("var.sfn_role_arn"),
        "definition": definition,
        "tags": ctx.tags(ctx.get("name")),
    }


@register("aws", "secrets_manager")
def secrets_manager(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "name": ctx.get("name") or dns_name(f"{ctx.label}-secret"),
        "description": ctx.get("description", "Application secret"),
        "tags": ctx.tags(ctx.get("name")),
    }
