"""Azure resource synthesizers.

Every Azure resource lives in the shared resource group, so each synthesizer
starts from ``_placement`` (name and location taken from the group).
"""

from __future__ import annotations

from typing import Any

from infracanvas.naming import compact_name, dns_name
from infracanvas.records import Block, Ref
from infracanvas.synthesizers import SynthesisContext, register


def _placement(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "resource_group_name": ctx.scaffold("resource_group", "name"),
        "location": ctx.scaffold("resource_group", "location") or ctx.region,
    }


@register("azure", "vm")
def vm(ctx: SynthesisContext) -> dict[str, Any]:
    admin = ctx.get("admin_username", "adminuser")
    nic = ctx.scaffold("network_interface")
    return {
        "name": dns_name(ctx.get("name") or f"{ctx.label}-vm", 64),
        **_placement(ctx),
        "size": ctx.get("vm_size", "Standard_B1s"),
        "admin_username": admin,
        "network_interface_ids": [nic] if nic else None,
        "admin_ssh_key": Block({"username": admin, "public_key": Ref("var.admin_ssh_public_key")}),
        "os_disk": Block(
            {"caching": "ReadWrite", "storage_account_type": ctx.get("os_disk_type", "Standard_LRS")}
        ),
        "source_image_reference": Block(
            {
                "publisher": "Canonical",
                "offer": "0001-com-ubuntu-server-jammy",
                "sku": "22_04-lts",
                "version": "latest",
            }
        ),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("azure", "blob")
def blob(ctx: SynthesisContext) -> dict[str, Any]:
    name = ctx.get("name")
    if not name:
        # storage account names: 3-24 lowercase alphanumerics, globally unique
        suffix = ctx.suffix()
        name = compact_name(ctx.label, 24 - len(suffix)) + suffix
    return {
        "name": name,
        **_placement(ctx),
        "account_tier": ctx.get("account_tier", "Standard"),
        "account_replication_type": ctx.get("replication_type", "LRS"),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("azure", "sql")
def sql(ctx: SynthesisContext) -> dict[str, Any]:
    return {
        "name": ctx.get("name") or ctx.unique_name(f"{ctx.label}-sql"),
        **_placement(ctx),
        "version": ctx.get("version", "12.0"),
        "administrator_login": ctx.get("administrator_login", "sqladmin"),
        "administrator_login_password": Ref("var.db_password"),
        "tags": ctx.tags(ctx.get("name")),
    }


@register("azure", "vnet")
def vnet(ctx: SynthesisContext) -> dict[str, Any]:
    space = ctx.get("address_space", ["10.0.0.0/16"])
    if isinstance(space, str):
        space = [s.strip() for s in space.split(",") if s.strip()]
    return {
        "name": dns_name(ctx.get("name") or f"{ctx.label}-vnet", 64),
        **_placement(ctx),
        "address_space": space,
        "tags": ctx.tags(ctx.get("name")),
    }
