"""Service schema store. Loads per-provider YAML service definitions.

Each file in data/schemas/ describes one provider: for every service type the
terraform resource type, its category, default configuration and the field
schema the canvas uses to build its config dialogs.

Lookups never raise; an unknown (provider, service_id) pair resolves to None
and callers degrade to verbatim pass-through.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

_SCHEMA_DIR = Path(__file__).parent / "data" / "schemas"


class FieldValidation(BaseModel):
    min: float | None = None
    max: float | None = None
    pattern: str | None = None


class ConfigField(BaseModel):
    type: str = "string"
    label: str = ""
    description: str = ""
    options: list[str] = Field(default_factory=list)
    default: Any = None
    required: bool = False
    validation: FieldValidation | None = None


class SchemaEntry(BaseModel):
    """A single service definition. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    provider: str
    name: str
    category: str
    resource_type: str
    description: str = ""
    default_config: dict[str, Any] = Field(default_factory=dict)
    fields: dict[str, ConfigField] = Field(default_factory=dict)
    # attribute names this service renders as nested blocks
    block_keys: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SchemaStore:
    """All service schemas, keyed by (provider, service_id).

    Loaded once at construction and never mutated afterwards, so one store can
    be shared by concurrent compiles without locking.
    """

    def __init__(self, schema_dir: str | Path | None = None, *, load: bool = True):
        self._dir = Path(schema_dir) if schema_dir else _SCHEMA_DIR
        self._entries: dict[tuple[str, str], SchemaEntry] = {}
        self._by_category: dict[str, list[SchemaEntry]] = {}
        if load:
            self._load()

    @classmethod
    def from_mapping(cls, data: dict[str, dict[str, dict[str, Any]]]) -> SchemaStore:
        """Build a store from ``{provider: {service_id: definition}}``."""
        store = cls(load=False)
        for provider, services in data.items():
            store._add_services(provider, services)
        return store

    def _load(self) -> None:
        for yaml_path in sorted(self._dir.glob("*.yaml")):
            data = yaml.safe_load(yaml_path.read_text()) or {}
            provider = data.get("provider", yaml_path.stem)
            self._add_services(provider, data.get("services") or {})
        self._load_plugins()
        log.debug("Loaded %d service schemas from %s", len(self._entries), self._dir)

    def _load_plugins(self) -> None:
        from infracanvas.plugins import discover_schemas

        for provider, services in discover_schemas().items():
            self._add_services(provider, services)

    def _add_services(self, provider: str, services: dict[str, dict[str, Any]]) -> None:
        provider = provider.lower()
        for service_id, svc in services.items():
            if not isinstance(svc, dict):
                continue
            entry = SchemaEntry(
                service_id=service_id,
                provider=provider,
                name=svc.get("name", service_id),
                category=svc.get("category", "other"),
                resource_type=svc.get("resource_type") or svc.get("terraformType") or service_id,
                description=svc.get("description", ""),
                default_config=svc.get("default_config") or svc.get("defaultConfig") or {},
                fields=svc.get("fields") or svc.get("configSchema") or {},
                block_keys=svc.get("block_keys") or [],
            )
            self._entries[(provider, service_id)] = entry
            self._by_category.setdefault(entry.category, []).append(entry)

    def resolve(self, provider: str, service_id: str) -> SchemaEntry | None:
        """Return the schema entry or None if the pair is not registered."""
        return self._entries.get((provider.lower(), service_id))

    def list_providers(self) -> list[str]:
        return sorted({provider for provider, _ in self._entries})

    def list_services(self, provider: str) -> list[SchemaEntry]:
        provider = provider.lower()
        return [e for (p, _), e in sorted(self._entries.items()) if p == provider]

    def get_category(self, category: str) -> list[SchemaEntry]:
        return list(self._by_category.get(category, []))

    def find_by_resource_type(self, provider: str, resource_type: str) -> list[SchemaEntry]:
        return [e for e in self.list_services(provider) if e.resource_type == resource_type]

    def stats(self) -> dict[str, Any]:
        return {
            "total_services": len(self._entries),
            "categories": len(self._by_category),
            "providers": len(self.list_providers()),
        }


def merge_config(entry: SchemaEntry | None, user_config: dict[str, Any]) -> dict[str, Any]:
    """Schema defaults overlaid with the user's values, key by key."""
    merged: dict[str, Any] = dict(entry.default_config) if entry else {}
    merged.update(user_config)
    return merged


def check_config(entry: SchemaEntry, config: dict[str, Any]) -> list[str]:
    """Field-level problems with a config. Informational only; never raises."""
    issues: list[str] = []
    for key, fld in entry.fields.items():
        value = config.get(key)
        if value is None or value == "":
            if fld.required and fld.default is None:
                issues.append(f"{key}: required field is missing")
            continue

        if fld.type == "select" and fld.options and str(value) not in fld.options:
            issues.append(f"{key}: {value!r} is not one of {', '.join(fld.options)}")
        elif fld.type == "multiselect" and fld.options:
            values = value if isinstance(value, list) else [value]
            unknown = [str(v) for v in values if str(v) not in fld.options]
            if unknown:
                issues.append(f"{key}: unknown option(s) {', '.join(unknown)}")
        elif fld.type == "number":
            try:
                number = float(value)
            except (TypeError, ValueError):
                issues.append(f"{key}: {value!r} is not a number")
                continue
            rules = fld.validation
            if rules and rules.min is not None and number < rules.min:
                issues.append(f"{key}: {value} is below the minimum of {rules.min:g}")
            if rules and rules.max is not None and number > rules.max:
                issues.append(f"{key}: {value} is above the maximum of {rules.max:g}")
        elif fld.type == "boolean" and not isinstance(value, bool):
            issues.append(f"{key}: {value!r} is not a boolean")

        rules = fld.validation
        if rules and rules.pattern and isinstance(value, str) and not re.fullmatch(rules.pattern, value):
            issues.append(f"{key}: {value!r} does not match {rules.pattern}")

    return issues


# Module-level singleton, loaded lazily on first access
_store: SchemaStore | None = None


def get_schema_store() -> SchemaStore:
    """Return the shared store, loading from disk if needed."""
    global _store
    if _store is None:
        _store = SchemaStore()
    return _store


def reload_schema_store(schema_dir: str | Path | None = None) -> SchemaStore:
    """Force-reload the store (useful in tests or after YAML changes)."""
    global _store
    _store = SchemaStore(schema_dir)
    return _store
