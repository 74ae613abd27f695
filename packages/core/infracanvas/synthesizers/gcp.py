"""Google Cloud resource synthesizers."""

from __future__ import annotations

from typing import Any

from infracanvas.naming import dns_name
from infracanvas.records import Block, Ref
from infracanvas.synthesizers import SynthesisContext, register


@register("gcp", "compute")
def compute(ctx: SynthesisContext) -> dict[str, Any]:
    network = ctx.scaffold("network", "self_link")
    return {
        "name": dns_name(ctx.get("name") or f"{ctx.label}-vm"),
        "machine_type": ctx.get("machine_type", "e2-micro"),
        "zone": ctx.get("zone", f"{ctx.region or 'us-central1'}-a"),
        "boot_disk": Block(
            {"initialize_params": Block({"image": ctx.get("image", "debian-cloud/debian-11")})}
        ),
        "network_interface": Block(
            {
                "network": network if network is not None else "default",
                "access_config": Block(),
            }
        ),
        "labels": ctx.tags(),
    }


@register("gcp", "storage")
def storage(ctx: SynthesisContext) -> dict[str, Any]:
    attrs: dict[str, Any] = {
        "name": ctx.get("name") or ctx.unique_name(f"{ctx.label}-bucket"),
        "location": ctx.get("location", "US"),
        "storage_class": ctx.get("storage_class", "STANDARD"),
        "uniform_bucket_level_access": True,
    }
    if ctx.get_bool("versioning", False):
        attrs["versioning"] = Block({"enabled": True})
    attrs["labels"] = ctx.tags()
    return attrs


@register("gcp", "sql")
def sql(ctx: SynthesisContext) -> dict[str, Any]:
    network = ctx.scaffold("network", "id")
    settings: dict[str, Any] = {
        "tier": ctx.get("tier", "db-f1-micro"),
        "disk_size": ctx.get_int("disk_size", 10),
        "user_labels": ctx.tags(),
    }
    if network is not None:
        settings["ip_configuration"] = Block({"ipv4_enabled": True, "private_network": network})
    return {
        "name": dns_name(ctx.get("name") or f"{ctx.label}-db"),
        "database_version": ctx.get("database_version", "MYSQL_8_0"),
        "region": ctx.region or "us-central1",
        "root_password": Ref("var.db_password"),
        "deletion_protection": False,
        "settings": Block(settings),
    }


@register("gcp", "network")
def network(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "name": dns_name(ctx.get("name") or f"{ctx.label}-network"),
        "auto_create_subnetworks": ctx.get_bool("auto_create_subnetworks", True),
    }


@register("gcp", "pubsub")
def pubsub(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "name": dns_name(ctx.get("name") or f"{ctx.label}-topic", 255),
        "message_retention_duration": ctx.get("message_retention_duration", "86600s"),
        "labels": ctx.tags(),
    }
