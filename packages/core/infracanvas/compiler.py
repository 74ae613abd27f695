"""Compiler: one canvas graph snapshot in, Terraform documents out.

The pipeline runs in a single synchronous pass:

1. resolve every node's schema entry and merge its configuration
2. plan the scaffolding and reserve the scaffold names
3. allocate a unique resource name per node
4. build the scaffold records and the edge dependency map
5. synthesize one record per node
6. aggregate variables and outputs
7. render ``main.tf``, ``variables.tf``, ``outputs.tf``, ``providers.tf`` and
   ``terraform.tfvars.example``

Nothing here reads the clock or keeps state between calls, so compiling the
same snapshot twice gives byte-identical documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from infracanvas.aggregate import aggregate
from infracanvas.dependencies import dangling_edges, dependency_map
from infracanvas.graph import GraphSnapshot
from infracanvas.hcl import (
    is_identifier,
    render_outputs,
    render_providers,
    render_resources,
    render_tfvars_example,
    render_variables,
)
from infracanvas.naming import DEFAULT_SESSION, NameAllocator
from infracanvas.providers import get_profile, provider_settings, supported_providers
from infracanvas.records import OutputRecord, ResourceRecord, VariableRecord
from infracanvas.scaffolding import Scaffolding, build_scaffolding, plan_scaffolding
from infracanvas.schema import SchemaStore, get_schema_store, merge_config
from infracanvas.synthesizers import resource_type_for, synthesize

log = logging.getLogger(__name__)

MAIN_DOCUMENT = "main.tf"
VARIABLES_DOCUMENT = "variables.tf"
OUTPUTS_DOCUMENT = "outputs.tf"
PROVIDERS_DOCUMENT = "providers.tf"
TFVARS_EXAMPLE_DOCUMENT = "terraform.tfvars.example"
DOCUMENT_NAMES = (MAIN_DOCUMENT, VARIABLES_DOCUMENT, OUTPUTS_DOCUMENT, PROVIDERS_DOCUMENT, TFVARS_EXAMPLE_DOCUMENT)


class UnsupportedProviderError(ValueError):
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unsupported provider {provider!r}. Supported: {', '.join(supported_providers())}")


@dataclass
class CompileOptions:
    region: str | None = None
    # GCP project id for the provider block
    project: str | None = None
    session: str = DEFAULT_SESSION


@dataclass
class CompileResult:
    provider: str
    documents: dict[str, str]
    resources: list[ResourceRecord]
    variables: list[VariableRecord]
    outputs: list[OutputRecord]
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "documents": dict(self.documents),
            "resources": [r.to_dict() for r in self.resources],
            "variables": [v.to_dict() for v in self.variables],
            "outputs": [o.to_dict() for o in self.outputs],
            "warnings": list(self.warnings),
        }

    def write(self, directory: str | Path) -> list[Path]:
        """Write every document into ``directory``; returns the written paths."""
        out = Path(directory)
        out.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for name, text in self.documents.items():
            path = out / name
            path.write_text(text)
            written.append(path)
        log.info("Wrote %d documents to %s", len(written), out)
        return written


class Compiler:
    """Compiles graph snapshots against one schema store.

    A Compiler holds no per-compile state; one instance can serve concurrent
    compiles.
    """

    def __init__(self, store: SchemaStore | None = None, options: CompileOptions | None = None):
        self.store = store or get_schema_store()
        self.options = options or CompileOptions()

    def compile(self, snapshot: GraphSnapshot) -> CompileResult:
        provider = snapshot.provider.lower()
        profile = get_profile(provider)
        if profile is None:
            raise UnsupportedProviderError(snapshot.provider)

        options = self.options
        nodes = snapshot.nodes
        warnings: list[str] = []

        node_providers = {n.id: snapshot.node_provider(n) for n in nodes}
        entries = {n.id: self.store.resolve(node_providers[n.id], n.service_id) for n in nodes}

        # snapshot provider first, then any other supported provider in node order
        providers = [provider]
        for node in nodes:
            p = node_providers[node.id]
            if p not in providers and get_profile(p) is not None:
                providers.append(p)
        regions = {p: self._region(p, provider) for p in providers}

        plans = {
            p: plan_scaffolding(p, [n for n in nodes if node_providers[n.id] == p], entries) for p in providers
        }
        allocator = NameAllocator()
        for plan in plans.values():
            for resource_type, name in plan.reserved_names():
                allocator.reserve(resource_type, name)

        addresses: dict[str, str] = {}
        for node in nodes:
            resource_type = resource_type_for(node, entries[node.id])
            if entries[node.id] is None and node.resource_type and not is_identifier(node.resource_type):
                message = (
                    f"{node.id}: resource type {node.resource_type!r} is not an identifier, emitted as {resource_type}"
                )
                log.warning("%s", message)
                warnings.append(message)
            name = allocator.allocate(resource_type, node.display_name or node.service_id)
            addresses[node.id] = f"{resource_type}.{name}"

        scaffolds: dict[str, Scaffolding] = {
            p: build_scaffolding(plans[p], addresses, region=regions[p]) for p in providers
        }

        dangling = dangling_edges(nodes, snapshot.edges)
        if dangling:
            log.debug("Ignoring %d dangling edge(s)", len(dangling))
        deps = dependency_map(nodes, snapshot.edges, addresses)

        records: list[ResourceRecord] = []
        block_keys: dict[str, frozenset[str]] = {}
        for p in providers:
            for record in scaffolds[p].records:
                records.append(record)
                block_keys[record.address] = get_profile(p).block_keys

        for node in nodes:
            p = node_providers[node.id]
            node_profile = get_profile(p)
            entry = entries[node.id]
            record = synthesize(
                node,
                provider=p,
                name=addresses[node.id].split(".", 1)[1],
                config=merge_config(entry, node.user_config),
                dependencies=deps[node.id],
                entry=entry,
                profile=node_profile,
                scaffolding=scaffolds.get(p),
                session=options.session,
                region=regions.get(p, ""),
            )
            records.append(record)
            keys = set(entry.block_keys) if entry else set()
            if node_profile is not None:
                keys |= node_profile.block_keys
            block_keys[record.address] = frozenset(keys)

        labels = {n.id: n.display_name or n.service_id for n in nodes}
        variables, outputs = aggregate(provider, records, labels)

        documents = {
            MAIN_DOCUMENT: render_resources(
                records, block_keys=block_keys, warnings=warnings, title=f"Resources for {provider}"
            ),
            VARIABLES_DOCUMENT: render_variables(variables),
            OUTPUTS_DOCUMENT: render_outputs(outputs),
            PROVIDERS_DOCUMENT: render_providers(
                [(get_profile(p), provider_settings(get_profile(p), regions[p], options.project)) for p in providers],
                warnings=warnings,
            ),
            TFVARS_EXAMPLE_DOCUMENT: render_tfvars_example(variables),
        }
        log.info(
            "Compiled %d node(s) into %d resource(s), %d variable(s), %d output(s)",
            len(nodes),
            len(records),
            len(variables),
            len(outputs),
        )
        return CompileResult(
            provider=provider,
            documents=documents,
            resources=records,
            variables=variables,
            outputs=outputs,
            warnings=warnings,
        )

    def _region(self, provider: str, primary: str) -> str:
        if provider == primary and self.options.region:
            return self.options.region
        return get_profile(provider).default_region


def compile_graph(
    snapshot: GraphSnapshot,
    store: SchemaStore | None = None,
    options: CompileOptions | None = None,
) -> CompileResult:
    """Compile one snapshot with a throwaway Compiler."""
    return Compiler(store, options).compile(snapshot)
