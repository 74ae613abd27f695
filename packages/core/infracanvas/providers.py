"""Per-provider profiles: terraform provider wiring, defaults and tagging."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from infracanvas.records import Block


@dataclass(frozen=True)
class ProviderProfile:
    key: str
    terraform_name: str
    source: str
    version: str
    default_region: str
    # resource type prefixes, used to recognise references in plain strings
    type_prefixes: tuple[str, ...]
    # attribute names that render as nested blocks when given a plain dict
    block_keys: frozenset[str] = frozenset()
    tag_attribute: str = "tags"
    default_tags: dict[str, str] = field(default_factory=dict)

    def tags(self, name: str | None = None) -> dict[str, str]:
        tags: dict[str, str] = {}
        if name and self.tag_attribute == "tags":
            tags["Name"] = name
        tags.update(self.default_tags)
        return tags


PROFILES: dict[str, ProviderProfile] = {
    "aws": ProviderProfile(
        key="aws",
        terraform_name="aws",
        source="hashicorp/aws",
        version="~> 5.0",
        default_region="us-east-1",
        type_prefixes=("aws_",),
        block_keys=frozenset(
            {
                "versioning",
                "lifecycle_rule",
                "server_side_encryption_configuration",
                "ingress",
                "egress",
                "root_block_device",
                "ebs_block_device",
                "attribute",
                "vpc_config",
                "environment",
                "network_configuration",
                "timeouts",
                "default_action",
                "logging_configuration",
            }
        ),
        default_tags={"Environment": "terraform-generated", "ManagedBy": "infracanvas"},
    ),
    "gcp": ProviderProfile(
        key="gcp",
        terraform_name="google",
        source="hashicorp/google",
        version="~> 5.0",
        default_region="us-central1",
        type_prefixes=("google_",),
        block_keys=frozenset(
            {
                "boot_disk",
                "initialize_params",
                "network_interface",
                "access_config",
                "settings",
                "ip_configuration",
                "backup_configuration",
                "versioning",
                "lifecycle_rule",
                "scheduling",
                "service_account",
            }
        ),
        tag_attribute="labels",
        default_tags={"environment": "terraform-generated", "managed-by": "infracanvas"},
    ),
    "azure": ProviderProfile(
        key="azure",
        terraform_name="azurerm",
        source="hashicorp/azurerm",
        version="~> 3.0",
        default_region="East US",
        type_prefixes=("azurerm_",),
        block_keys=frozenset(
            {
                "os_disk",
                "source_image_reference",
                "ip_configuration",
                "identity",
                "site_config",
                "admin_ssh_key",
                "blob_properties",
                "network_rules",
            }
        ),
        default_tags={"environment": "terraform-generated", "managed_by": "infracanvas"},
    ),
}

# Prefixes that are always references regardless of provider.
COMMON_TYPE_PREFIXES = ("random_", "null_", "local_", "tls_")


def get_profile(provider: str) -> ProviderProfile | None:
    return PROFILES.get(provider.lower())


def supported_providers() -> list[str]:
    return sorted(PROFILES)


def all_type_prefixes() -> tuple[str, ...]:
    prefixes: list[str] = []
    for profile in PROFILES.values():
        prefixes.extend(profile.type_prefixes)
    prefixes.extend(COMMON_TYPE_PREFIXES)
    return tuple(prefixes)


def provider_settings(profile: ProviderProfile, region: str, project: str | None = None) -> dict[str, Any]:
    """Attributes of the ``provider`` block itself."""
    if profile.key == "aws":
        return {"region": region}
    if profile.key == "gcp":
        return {"project": project or "my-gcp-project", "region": region}
    if profile.key == "azure":
        return {"features": Block()}
    return {}


def provider_for_type(resource_type: str) -> str | None:
    """Provider key owning a terraform resource type, by prefix."""
    for profile in PROFILES.values():
        if resource_type.startswith(profile.type_prefixes):
            return profile.key
    return None
