"""Mermaid flowchart formatter with optional execution highlighting."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from flowformats.config import FormatterConfig
from flowformats.formats.base import UniqueIds, branch_labels
from flowformats.ir.flow import FlowDefinition, NodeDefinition, OutletDefinition
from flowformats.ir.graph import FlowGraph
from flowformats.types import Direction, EdgeStyle, NodeKind

EXECUTED_CLASS = "executed"
CURRENT_CLASS = "current"

_CLASS_DEFS = {
    EXECUTED_CLASS: "fill:#334155,stroke:#cbd5e1,stroke-width:2px,color:#cbd5e1",
    CURRENT_CLASS: "fill:#f59e0b,stroke:#451a03,stroke-width:3px,color:#451a03",
}

_ARROWS = {
    EdgeStyle.Arrow: "-->",
    EdgeStyle.Thick: "==>",
    EdgeStyle.Dotted: "-.->",
    EdgeStyle.Line: "---",
}

_UNSAFE_ID_RE = re.compile(r"[^A-Za-z0-9_]")
_SHAPE_CHARS_RE = re.compile(r"[\[\](){}<>]")
_EDGE_LABEL_STRIP_RE = re.compile(r"[|()\[\]{}]")
_SPACES_RE = re.compile(r"\s+")

INDENT = "    "


@dataclass
class ExecutionHighlight:
    """Execution state to overlay on the rendered chart.

    ``edges`` lists traversed ``(from, to)`` pairs; when omitted they are taken
    from consecutive steps of ``execution_path``.
    """

    current_node_id: str | None = None
    execution_path: list[str] = field(default_factory=list)
    edges: list[tuple[str, str]] | None = None

    def executed_edges(self) -> set[tuple[str, str]]:
        if self.edges is not None:
            return set(self.edges)
        return set(zip(self.execution_path, self.execution_path[1:]))

    @property
    def is_empty(self) -> bool:
        return not self.execution_path and not self.current_node_id


def _mermaid_id(raw: str) -> str:
    safe = _UNSAFE_ID_RE.sub("_", raw) or "_"
    # Lowercase `end` closes a subgraph in Mermaid.
    return "end_" if safe == "end" else safe


def _truncate(text: str, limit: int) -> str:
    if limit > 3 and len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def node_text(text: str, max_length: int) -> str:
    needs_quotes = bool(_SHAPE_CHARS_RE.search(text))
    sanitized = text.replace("\n", "<br/>").replace('"', "&quot;").replace("|", "&#124;").strip()
    sanitized = _truncate(sanitized, max_length)
    if not sanitized:
        return "Node"
    return f'"{sanitized}"' if needs_quotes else sanitized


def edge_label(text: str, max_length: int) -> str:
    sanitized = _EDGE_LABEL_STRIP_RE.sub("", text).replace("\n", " ").replace('"', "&quot;")
    sanitized = _SPACES_RE.sub(" ", sanitized).strip()
    return _truncate(sanitized, max_length)


def _front_matter(flow: FlowDefinition) -> list[str]:
    data = {}
    if flow.title:
        data["title"] = flow.title
    if flow.description:
        data["description"] = flow.description
    if not data:
        return []
    dumped = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False, width=1000)
    return ["---", *dumped.strip().splitlines(), "---", ""]


def _edge_style(outlet: OutletDefinition) -> EdgeStyle:
    name = (outlet.metadata or {}).get("edgeStyle")
    for style in EdgeStyle:
        if style.name.lower() == name:
            return style
    return EdgeStyle.Arrow


class MermaidFormatter:
    """Renders a flow as ``flowchart`` source; shapes follow each node's inferred kind."""

    def __init__(self, config: FormatterConfig | None = None) -> None:
        self.config = config or FormatterConfig()

    def format(self, flow: FlowDefinition, **options: Any) -> str:
        highlight: ExecutionHighlight | None = options.get("highlight")
        direction = Direction.parse(options.get("direction", self.config.direction))
        max_length = options.get("max_label_length", self.config.max_label_length)

        ids = UniqueIds(_mermaid_id)
        kinds = FlowGraph.from_flow(flow).node_kinds()
        by_id = {n.id: n for n in flow.nodes}
        executed = highlight.executed_edges() if highlight else set()

        lines = _front_matter(flow)
        lines.append(f"flowchart {direction.name}")

        defined: set[str] = set()

        def define(node: NodeDefinition) -> None:
            if node.id not in defined:
                defined.add(node.id)
                lines.append(INDENT + self._node_line(ids[node.id], node, kinds.get(node.id), max_length))

        # Start node first: the first node read back is the start.
        start = by_id.get(flow.start_node_id)
        ordered = [start, *(n for n in flow.nodes if n is not start)] if start else flow.nodes
        for node in ordered:
            define(node)
            for outlet, label in zip(node.outlets, branch_labels(node)):
                target = by_id.get(outlet.to)
                if target is None:
                    continue
                define(target)
                style = EdgeStyle.Thick if (node.id, outlet.to) in executed else _edge_style(outlet)
                arrow = _ARROWS[style]
                text = edge_label(label, max_length) if label else ""
                if text:
                    lines.append(f"{INDENT}{ids[node.id]} {arrow}|{text}| {ids[outlet.to]}")
                else:
                    lines.append(f"{INDENT}{ids[node.id]} {arrow} {ids[outlet.to]}")

        if highlight and not highlight.is_empty:
            lines.extend(self._highlight_lines(highlight, ids, by_id))

        return "\n".join(lines)

    @staticmethod
    def _node_line(node_id: str, node: NodeDefinition, kind: NodeKind | None, max_length: int) -> str:
        text = node_text(node.content or node.title, max_length)
        if kind in (NodeKind.Start, NodeKind.End):
            return f"{node_id}([{text}])"
        if kind is NodeKind.Decision:
            return f"{node_id}{{{{{text}}}}}" if node.auto_advance else f"{node_id}{{{text}}}"
        if any(o.condition for o in node.outlets):
            return f"{node_id}{{{{{text}}}}}"
        return f"{node_id}[{text}]"

    @staticmethod
    def _highlight_lines(
        highlight: ExecutionHighlight, ids: UniqueIds, by_id: dict[str, NodeDefinition]
    ) -> list[str]:
        current = highlight.current_node_id if highlight.current_node_id in by_id else None
        visited = [n for n in dict.fromkeys(highlight.execution_path) if n in by_id and n != current]

        lines = [""]
        if visited:
            lines.append(f"{INDENT}classDef {EXECUTED_CLASS} {_CLASS_DEFS[EXECUTED_CLASS]}")
            lines.append(f"{INDENT}class {','.join(ids[n] for n in visited)} {EXECUTED_CLASS}")
        if current:
            lines.append(f"{INDENT}classDef {CURRENT_CLASS} {_CLASS_DEFS[CURRENT_CLASS]}")
            lines.append(f"{INDENT}class {ids[current]} {CURRENT_CLASS}")
        return lines if len(lines) > 1 else []
