"""Document loading, typed object model and reference resolution."""
from .loader import build_schema, load, load_path
from .model import (
    ComponentRegistry,
    Info,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    Reference,
    RequestBody,
    Response,
    SchemaNode,
    SecurityScheme,
    SpecDocument,
)
from .refs import CYCLE_DETECTED, CycleDetected, resolve_deep, resolve_shallow

__all__ = [
    "load",
    "load_path",
    "build_schema",
    "ComponentRegistry",
    "Info",
    "MediaType",
    "Operation",
    "Parameter",
    "PathItem",
    "Reference",
    "RequestBody",
    "Response",
    "SchemaNode",
    "SecurityScheme",
    "SpecDocument",
    "CYCLE_DETECTED",
    "CycleDetected",
    "resolve_deep",
    "resolve_shallow",
]
