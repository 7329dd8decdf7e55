"""Intermediate representation: the flow definition and its graph view."""

from flowformats.ir.flow import FlowDefinition, NodeDefinition, OutletDefinition, outlet_id
from flowformats.ir.graph import FlowGraph

__all__ = [
    "FlowDefinition",
    "FlowGraph",
    "NodeDefinition",
    "OutletDefinition",
    "outlet_id",
]
