from flowsmith.graph.builder import PlanBuilder
from flowsmith.graph.catalog import compatible_types, get_component, render_catalog
from flowsmith.graph.handles import SourceHandle, TargetHandle, decode_handle, encode_handle
from flowsmith.graph.layout import apply_defaults

__all__ = [
    "PlanBuilder",
    "SourceHandle",
    "TargetHandle",
    "apply_defaults",
    "compatible_types",
    "decode_handle",
    "encode_handle",
    "get_component",
    "render_catalog",
]
