"""infracanvas: compiles canvas architecture graphs into Terraform."""

from infracanvas.graph import Edge, GraphSnapshot, Node, Position
from infracanvas.records import Block, OutputRecord, Ref, ResourceRecord, VariableRecord

__version__ = "0.3.0"

__all__ = [
    "Block",
    "CompileOptions",
    "CompileResult",
    "Compiler",
    "compile_graph",
    "Edge",
    "GraphSnapshot",
    "Node",
    "OutputRecord",
    "Position",
    "Ref",
    "ResourceRecord",
    "SchemaStore",
    "UnsupportedProviderError",
    "VariableRecord",
]


def __getattr__(name: str):
    # Lazy imports so loading the models does not pull in the schema store
    if name in ("Compiler", "CompileOptions", "CompileResult", "compile_graph", "UnsupportedProviderError"):
        from infracanvas import compiler

        return getattr(compiler, name)
    if name == "SchemaStore":
        from infracanvas.schema import SchemaStore

        return SchemaStore
    raise AttributeError(f"module 'infracanvas' has no attribute {name!r}")
