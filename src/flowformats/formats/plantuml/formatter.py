"""PlantUML activity diagram formatter.

Walks the flow depth-first from its start node and emits structured activity
syntax: straight runs become consecutive ``:activity;`` lines, branching nodes
become ``if``/``elseif``/``else``/``endif`` blocks, and any node reached a second
time is jumped to with ``goto`` (its ``label`` is inserted once the walk is done).
"""

from __future__ import annotations

from typing import Any

from flowformats.formats.base import branch_labels, sanitize_id
from flowformats.formats.plantuml.state import END_TITLE, START_TITLE
from flowformats.ir.flow import FlowDefinition, NodeDefinition, OutletDefinition
from flowformats.ir.graph import FlowGraph

INDENT = "  "


def escape_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n").replace(";", "\\;").replace(":", "\\:")


def _paren(label: str | None) -> str:
    return f" ({escape_text(label)})" if label else ""


def label_name(node_id: str) -> str:
    return f"label_{sanitize_id(node_id)}"


class _Walker:
    def __init__(self, flow: FlowDefinition) -> None:
        self.by_id = {n.id: n for n in flow.nodes}
        self.graph = FlowGraph.from_flow(flow)
        self.lines: list[str] = []
        self.visited: set[str] = set()
        self.anchors: dict[str, tuple[int, int]] = {}
        self.targets: dict[str, None] = {}

    def out(self, depth: int, text: str) -> None:
        self.lines.append(INDENT * depth + text)

    def branches(self, node: NodeDefinition) -> list[tuple[OutletDefinition, str | None]]:
        return [(o, label) for o, label in zip(node.outlets, branch_labels(node)) if o.to in self.by_id]

    def is_start_marker(self, node: NodeDefinition) -> bool:
        return node.title == START_TITLE and self.graph.in_degree(node.id) == 0

    def walk(self, node_id: str, depth: int) -> None:
        while True:
            if node_id in self.visited:
                self.targets[node_id] = None
                self.out(depth, f"goto {label_name(node_id)}")
                return
            self.visited.add(node_id)
            self.anchors[node_id] = (len(self.lines), depth)
            node = self.by_id[node_id]
            branches = self.branches(node)

            if not branches:
                if node.title != END_TITLE:
                    self.out(depth, f":{escape_text(node.content or node.title)};")
                self.out(depth, "stop")
                return
            if len(branches) == 1:
                if not self.is_start_marker(node):
                    self.out(depth, f":{escape_text(node.content or node.title)};")
                node_id = branches[0][0].to
                continue
            self.decision(node, branches, depth)
            return

    def decision(self, node: NodeDefinition, branches: list[tuple[OutletDefinition, str | None]], depth: int) -> None:
        condition = escape_text(node.title or node.id)
        first, *middle, last = branches
        self.out(depth, f"if ({condition}) then{_paren(first[1])}")
        self.walk(first[0].to, depth + 1)
        for outlet, label in middle:
            self.out(depth, f"elseif ({condition}) then{_paren(label)}")
            self.walk(outlet.to, depth + 1)
        self.out(depth, f"else{_paren(last[1])}")
        self.walk(last[0].to, depth + 1)
        self.out(depth, "endif")

    def insert_labels(self) -> None:
        anchored = sorted((self.anchors[t] + (t,) for t in self.targets), reverse=True)
        for index, depth, node_id in anchored:
            self.lines.insert(index, INDENT * depth + f"label {label_name(node_id)}")


class PlantUMLFormatter:
    """Renders a flow as a PlantUML activity diagram."""

    def format(self, flow: FlowDefinition, **options: Any) -> str:
        lines = ["@startuml"]
        if flow.title:
            title = flow.title.replace("\n", " ")
            lines.append(f"title {title}")
        lines.append("")

        if flow.nodes:
            walker = _Walker(flow)
            start = flow.start_node_id if flow.start_node_id in walker.by_id else flow.nodes[0].id
            walker.out(0, "start")
            walker.walk(start, 0)
            # Nodes the start node never reaches still get emitted, as detached runs.
            for node in flow.nodes:
                if node.id not in walker.visited:
                    walker.walk(node.id, 0)
            walker.insert_labels()
            lines.extend(walker.lines)
            lines.append("")

        lines.append("@enduml")
        return "\n".join(lines)
