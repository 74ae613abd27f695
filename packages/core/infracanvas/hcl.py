"""HCL emitter: turns records into Terraform source text.

Value rendering:

- ``Ref`` and strings that look like a Terraform reference (``var.x``,
  ``local.x``, ``module.x``, ``data.type.name``, ``aws_type.name.attr``) are
  emitted bare; every other string is quoted and escaped.
- numbers and booleans are bare literals, ``None`` attributes are omitted.
- ``Block`` renders as ``key { ... }``, a list of Blocks as repeated blocks,
  plain dicts as map literals unless the key is a block-style key.

A value the emitter cannot render is stringified and quoted, with a
``# WARNING:`` comment above the attribute; the document still renders.
Attribute names and resource types that are not identifiers are sanitized
the same way.
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING, Any, Iterable

from infracanvas.naming import NameAllocator, sanitize_name
from infracanvas.providers import all_type_prefixes
from infracanvas.records import Block, Ref

if TYPE_CHECKING:
    from infracanvas.providers import ProviderProfile
    from infracanvas.records import OutputRecord, ResourceRecord, VariableRecord

log = logging.getLogger(__name__)

INDENT = "  "
GENERATED_HEADER = "# Generated by infracanvas. Manual edits will be overwritten."

_IDENT = r"[A-Za-z_][A-Za-z0-9_-]*"
_TRAVERSAL = rf"(?:\.{_IDENT}|\[[^\]\n]+\])*"
_BARE_KEY = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _resource_pattern(prefixes: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(p) for p in prefixes)
    return re.compile(rf"(?:{alternatives})[a-z0-9_]+\.{_IDENT}{_TRAVERSAL}")


_REFERENCE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"var\.{_IDENT}{_TRAVERSAL}"),
    re.compile(rf"local\.{_IDENT}{_TRAVERSAL}"),
    re.compile(rf"module\.{_IDENT}{_TRAVERSAL}"),
    re.compile(rf"data\.{_IDENT}\.{_IDENT}{_TRAVERSAL}"),
    _resource_pattern(all_type_prefixes()),
]


def register_reference_pattern(pattern: str | re.Pattern[str]) -> None:
    """Treat strings fully matching ``pattern`` as references."""
    _REFERENCE_PATTERNS.append(re.compile(pattern) if isinstance(pattern, str) else pattern)


def is_reference(text: str) -> bool:
    return any(p.fullmatch(text) for p in _REFERENCE_PATTERNS)


def quote(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "$${")
        .replace("%{", "%%{")
    )
    escaped = _CONTROL.sub(lambda m: f"\\u{ord(m.group()):04x}", escaped)
    return f'"{escaped}"'


def is_identifier(text: str) -> bool:
    return bool(_BARE_KEY.fullmatch(text))


def _map_key(key: Any) -> str:
    key = str(key)
    return key if is_identifier(key) else quote(key)


def _fallback_text(value: Any) -> str:
    if callable(value):
        return getattr(value, "__qualname__", None) or type(value).__name__
    return str(value)


class _Writer:
    def __init__(self, block_keys: Iterable[str] = (), warnings: list[str] | None = None, context: str = ""):
        self.block_keys = frozenset(block_keys)
        self.warnings = warnings if warnings is not None else []
        self.context = context
        self._pending: list[str] = []

    def body(self, attributes: dict[str, Any], indent: int, path: str = "") -> list[str]:
        lines: list[str] = []
        names = NameAllocator()
        for key in attributes:
            if is_identifier(str(key)):
                names.reserve("attribute", str(key))
        for key, value in attributes.items():
            if value is None:
                continue
            name = str(key)
            if not is_identifier(name):
                name = names.allocate("attribute", name)
                message = self._warn(
                    f"{path}{key}", f"attribute name {str(key)!r} is not an identifier, emitted as {name}"
                )
                lines.append(f"{INDENT * indent}# WARNING: {message}")
            lines.extend(self.attribute(name, value, indent, f"{path}{key}"))
        return lines

    def _warn(self, path: str, problem: str) -> str:
        where = f"{self.context}.{path}" if self.context else path
        message = f"{where}: {problem}"
        log.warning("%s", message)
        self.warnings.append(message)
        return message

    def _is_block_list(self, key: str, value: Any) -> bool:
        if not isinstance(value, list) or not value:
            return False
        if all(isinstance(v, Block) for v in value):
            return True
        return key in self.block_keys and all(isinstance(v, (Block, dict)) for v in value)

    def attribute(self, key: str, value: Any, indent: int, path: str) -> list[str]:
        pad = INDENT * indent
        if isinstance(value, Block) or (isinstance(value, dict) and key in self.block_keys):
            return self.block(key, value, indent, path)
        if self._is_block_list(key, value):
            lines: list[str] = []
            for i, item in enumerate(value):
                lines.extend(self.block(key, item, indent, f"{path}[{i}]"))
            return lines

        self._pending = []
        text = self.expr(value, indent, path)
        lines = [f"{pad}# WARNING: {message}" for message in self._pending]
        self._pending = []
        lines.append(f"{pad}{key} = {text}")
        return lines

    def block(self, key: str, value: Block | dict[str, Any], indent: int, path: str) -> list[str]:
        pad = INDENT * indent
        attributes = value.attributes if isinstance(value, Block) else value
        inner = self.body(attributes, indent + 1, f"{path}.")
        if not inner:
            return [f"{pad}{key} {{}}"]
        return [f"{pad}{key} {{", *inner, f"{pad}}}"]

    def expr(self, value: Any, indent: int, path: str) -> str:
        if isinstance(value, Ref):
            return value.expr
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                return self._unrenderable(value, path)
            return repr(value)
        if isinstance(value, str):
            return value if is_reference(value) else quote(value)
        if value is None:
            return "null"
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self.expr(v, indent, f"{path}[{i}]") for i, v in enumerate(value)) + "]"
        if isinstance(value, Block):
            value = value.attributes
        if isinstance(value, dict):
            if not value:
                return "{}"
            inner_pad = INDENT * (indent + 1)
            lines = ["{"]
            for k, v in value.items():
                if v is None:
                    continue
                lines.append(f"{inner_pad}{_map_key(k)} = {self.expr(v, indent + 1, f'{path}.{k}')}")
            lines.append(f"{INDENT * indent}}}")
            return "\n".join(lines)
        return self._unrenderable(value, path)

    def _unrenderable(self, value: Any, path: str) -> str:
        message = self._warn(path, f"cannot render {type(value).__name__} value, emitted as a string")
        self._pending.append(message)
        return quote(_fallback_text(value))


def render_value(value: Any, *, warnings: list[str] | None = None) -> str:
    """Render a single value as an HCL expression."""
    return _Writer(warnings=warnings).expr(value, 0, "value")


def render_body(
    attributes: dict[str, Any],
    *,
    indent: int = 1,
    block_keys: Iterable[str] = (),
    warnings: list[str] | None = None,
) -> str:
    """Render attribute assignments and nested blocks, one per line."""
    return "\n".join(_Writer(block_keys, warnings).body(attributes, indent))


def render_resource(
    record: ResourceRecord,
    *,
    block_keys: Iterable[str] = (),
    warnings: list[str] | None = None,
) -> str:
    writer = _Writer(block_keys, warnings, context=record.address)
    lines: list[str] = []
    if record.comment:
        lines.append(f"# {record.comment}")
    resource_type = record.resource_type
    if not is_identifier(resource_type):
        resource_type = sanitize_name(resource_type)
        message = writer._warn(
            "type", f"resource type {record.resource_type!r} is not an identifier, emitted as {resource_type}"
        )
        lines.append(f"# WARNING: {message}")
    lines.append(f'resource "{resource_type}" "{record.resource_name}" {{')
    lines.extend(writer.body(record.attributes, 1))
    if record.dependencies:
        lines.append(f"{INDENT}depends_on = [{', '.join(record.dependencies)}]")
    lines.append("}")
    return "\n".join(lines)


def _document(title: str, blocks: list[str]) -> str:
    parts = [f"{GENERATED_HEADER}\n# {title}"]
    parts.extend(blocks)
    return "\n\n".join(parts) + "\n"


def render_resources(
    records: list[ResourceRecord],
    *,
    block_keys: dict[str, frozenset[str]] | None = None,
    warnings: list[str] | None = None,
    title: str = "Resources",
) -> str:
    """The resources document. ``block_keys`` maps addresses to their block-style keys."""
    block_keys = block_keys or {}
    blocks = [
        render_resource(r, block_keys=block_keys.get(r.address, ()), warnings=warnings) for r in records
    ]
    return _document(title, blocks)


def render_variable(variable: VariableRecord) -> str:
    lines = [f'variable "{variable.name}" {{']
    if variable.description:
        lines.append(f"{INDENT}description = {quote(variable.description)}")
    lines.append(f"{INDENT}type = {variable.type}")
    if variable.has_default:
        lines.append(f"{INDENT}default = {render_value(variable.default)}")
    if variable.sensitive:
        lines.append(f"{INDENT}sensitive = true")
    lines.append("}")
    return "\n".join(lines)


def render_variables(variables: list[VariableRecord]) -> str:
    return _document("Input variables", [render_variable(v) for v in variables])


def _placeholder(variable: VariableRecord) -> str:
    if variable.type == "string":
        return quote(f"your-{variable.name}")
    if variable.type.startswith(("list", "set", "tuple")):
        return "[]"
    if variable.type.startswith(("map", "object")):
        return "{}"
    return {"number": "0", "bool": "false"}.get(variable.type, "null")


def render_tfvars_example(variables: list[VariableRecord]) -> str:
    """Example ``terraform.tfvars``.

    Variables without a default get a placeholder value; the rest are listed
    commented out with their default.
    """
    required = [v for v in variables if not v.has_default]
    optional = [v for v in variables if v.has_default]
    lines = [GENERATED_HEADER, "# Example variable values: copy to terraform.tfvars and fill in"]
    if required:
        lines += ["", "# Required"]
        lines.extend(f"{v.name} = {_placeholder(v)}" for v in required)
    if optional:
        lines += ["", "# Optional, uncomment to override the default"]
        lines.extend(f"# {v.name} = {render_value(v.default)}" for v in optional)
    return "\n".join(lines) + "\n"


def render_output(output: OutputRecord) -> str:
    lines = [f'output "{output.name}" {{']
    if output.description:
        lines.append(f"{INDENT}description = {quote(output.description)}")
    lines.append(f"{INDENT}value = {output.value.expr}")
    if output.sensitive:
        lines.append(f"{INDENT}sensitive = true")
    lines.append("}")
    return "\n".join(lines)


def render_outputs(outputs: list[OutputRecord]) -> str:
    return _document("Outputs", [render_output(o) for o in outputs])


def render_providers(
    providers: list[tuple[ProviderProfile, dict[str, Any]]],
    *,
    warnings: list[str] | None = None,
) -> str:
    """The terraform/provider bootstrap for each (profile, provider settings) pair."""
    required = {
        profile.terraform_name: {"source": profile.source, "version": profile.version} for profile, _ in providers
    }
    terraform = Block({"required_providers": Block(required)})
    blocks = ["\n".join(_Writer(warnings=warnings).block("terraform", terraform, 0, "terraform"))]
    for profile, settings in providers:
        writer = _Writer(profile.block_keys, warnings, context=f"provider.{profile.terraform_name}")
        lines = [f'provider "{profile.terraform_name}" {{', *writer.body(settings, 1), "}"]
        blocks.append("\n".join(lines))
    return _document("Providers", blocks)
