"""Graphviz DOT formatter built on the graphviz package."""

from __future__ import annotations

from typing import Any

import graphviz

from flowformats.config import FormatterConfig
from flowformats.formats.base import branch_labels
from flowformats.ir.flow import FlowDefinition
from flowformats.ir.graph import FlowGraph
from flowformats.types import NodeKind


def _dot_text(text: str) -> str:
    # graphviz escapes quotes itself; backslashes and newlines are ours.
    return graphviz.nohtml(text.replace("\\", "\\\\").replace("\n", "\\n"))


def _rankdir(direction: str) -> str:
    direction = direction.upper()
    return "TB" if direction == "TD" else direction


class DotFormatter:
    """Renders a flow as a ``digraph`` with rounded boxes and diamond decisions."""

    def __init__(self, config: FormatterConfig | None = None) -> None:
        self.config = config or FormatterConfig()

    def to_digraph(self, flow: FlowDefinition, **options: Any) -> graphviz.Digraph:
        direction = options.get("direction", self.config.direction)
        graph_attr = {"rankdir": _rankdir(direction)}
        if flow.title:
            graph_attr["label"] = _dot_text(flow.title)
            graph_attr["labelloc"] = "t"

        dot = graphviz.Digraph(
            name=flow.id or "flowchart",
            graph_attr=graph_attr,
            node_attr={"shape": "box", "style": "rounded"},
        )

        kinds = FlowGraph.from_flow(flow).node_kinds()
        for node in flow.nodes:
            label = _dot_text(node.content or node.title or node.id)
            if kinds.get(node.id) is NodeKind.Decision:
                dot.node(node.id, label=label, shape="diamond", style="")
            else:
                dot.node(node.id, label=label)

        for node in flow.nodes:
            for outlet, label in zip(node.outlets, branch_labels(node)):
                if label:
                    dot.edge(node.id, outlet.to, label=_dot_text(label))
                else:
                    dot.edge(node.id, outlet.to)

        return dot

    def format(self, flow: FlowDefinition, **options: Any) -> str:
        return self.to_digraph(flow, **options).source
