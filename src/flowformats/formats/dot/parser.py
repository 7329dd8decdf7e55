"""Graphviz DOT parser built on pydot's grammar.

pydot turns the text into graph objects; this module walks their statements in
source order (pydot records a sequence number per statement), recursing into
subgraphs, and collects nodes, labels and edges into a FlowDefinition.
"""

from __future__ import annotations

import contextlib
import io
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pydot

from flowformats.errors import DotParseError
from flowformats.formats.base import UniqueIds, split_title, title_from_id, validate_with
from flowformats.ir.flow import FlowDefinition, NodeDefinition
from flowformats.ir.graph import FlowGraph
from flowformats.types import ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_FLOW_ID = "dot-digraph"
DEFAULT_TITLE = "DOT Digraph"

# pydot stores `node [...]`, `edge [...]` and `graph [...]` as pseudo-nodes.
_DEFAULT_STATEMENTS = frozenset({"node", "edge", "graph"})
_ESCAPED_BREAK_RE = re.compile(r"\\[nlr]")


def _unquote(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1].replace('\\"', '"')
    if len(text) >= 2 and text[0] == "<" and text[-1] == ">":
        return text[1:-1]
    return text


def _unescape(text: str) -> str:
    return _ESCAPED_BREAK_RE.sub("\n", text).replace("\\\\", "\\")


def _node_name(raw: str) -> str:
    """Strip quotes and any ``:port`` suffix from a node reference."""
    raw = raw.strip()
    if raw.startswith('"'):
        end = raw.rfind('"')
        if end > 0:
            return _unquote(raw[: end + 1]) or ""
    return raw.split(":", 1)[0]


def _endpoint_names(endpoint: Any) -> list[str]:
    """Node names an edge endpoint stands for; subgraph endpoints expand to their members."""
    if isinstance(endpoint, str):
        return [_node_name(endpoint)]
    obj_dict = getattr(endpoint, "obj_dict", endpoint)
    if not isinstance(obj_dict, Mapping):
        return []
    names: list[str] = []
    for name in obj_dict.get("nodes", {}):
        if name not in _DEFAULT_STATEMENTS:
            names.append(_node_name(name))
    for source, target in obj_dict.get("edges", {}):
        for name in (source, target):
            if isinstance(name, str) and _node_name(name) not in names:
                names.append(_node_name(name))
    return names


def _label_of(obj: Any) -> str | None:
    label = _unquote(obj.get_attributes().get("label"))
    return _unescape(label) if label else None


def _statements(graph: Any) -> list[Any]:
    items = [*graph.get_node_list(), *graph.get_edge_list(), *graph.get_subgraph_list()]
    return sorted(items, key=lambda item: item.obj_dict.get("sequence", 0))


@dataclass
class _Collected:
    labels: dict[str, str | None] = field(default_factory=dict)
    edges: list[tuple[str, str, str | None]] = field(default_factory=list)
    graph_label: str | None = None

    def add_node(self, name: str, label: str | None = None) -> None:
        """First non-empty label wins; a bare reference never blanks a labeled node."""
        if name not in self.labels or (label and not self.labels[name]):
            self.labels[name] = label


class DotParser:
    """Graphviz ``(di)graph`` parser."""

    def parse(self, text: str) -> FlowDefinition:
        graph = self._load(text)
        collected = _Collected()
        for stmt in graph.get_node_list():
            if stmt.get_name() == "graph":
                collected.graph_label = _label_of(stmt)
        top_label = _label_of(graph)
        if top_label:
            collected.graph_label = top_label
        self._collect(graph, collected)
        return self._build(graph, collected)

    def validate(self, text: str) -> ValidationResult:
        return validate_with(self, text)

    def _load(self, text: str) -> Any:
        captured = io.StringIO()
        try:
            # pydot reports syntax errors on stdout and returns None in some releases.
            with contextlib.redirect_stdout(captured):
                graphs = pydot.graph_from_dot_data(text)
        except Exception as e:
            raise DotParseError(f"Failed to parse DOT: {e}") from e
        if not graphs:
            detail = [line for line in captured.getvalue().splitlines() if line.strip()]
            reason = detail[-1].strip() if detail else "no graph found"
            raise DotParseError(f"Failed to parse DOT: {reason}")
        if len(graphs) > 1:
            logger.debug("DOT input holds %d graphs; using the first", len(graphs))
        return graphs[0]

    def _collect(self, graph: Any, collected: _Collected) -> None:
        for stmt in _statements(graph):
            if isinstance(stmt, pydot.Subgraph):
                self._collect(stmt, collected)
            elif isinstance(stmt, pydot.Edge):
                label = _label_of(stmt)
                sources = _endpoint_names(stmt.get_source())
                targets = _endpoint_names(stmt.get_destination())
                for source in sources:
                    for target in targets:
                        collected.add_node(source)
                        collected.add_node(target)
                        collected.edges.append((source, target, label))
            elif isinstance(stmt, pydot.Node):
                name = stmt.get_name()
                if name in _DEFAULT_STATEMENTS:
                    continue
                collected.add_node(_node_name(name), _label_of(stmt))

    def _build(self, graph: Any, collected: _Collected) -> FlowDefinition:
        ids = UniqueIds()
        nodes: dict[str, NodeDefinition] = {}
        for name, label in collected.labels.items():
            if label:
                title, content = split_title(label)
            else:
                title = content = title_from_id(name)
            node_id = ids[name]
            nodes[node_id] = NodeDefinition(id=node_id, title=title, content=content)

        for source, target, label in collected.edges:
            nodes[ids[source]].add_outlet(ids[target], label=label)

        flow_nodes = list(nodes.values())
        metadata: dict[str, Any] = {"format": "dot", "graphType": graph.get_graph_type()}
        graph_name = _unquote(graph.get_name())
        if graph_name:
            metadata["graphName"] = graph_name
        if collected.graph_label:
            metadata["originalTitle"] = collected.graph_label
        flow = FlowDefinition(
            id=DEFAULT_FLOW_ID,
            title=collected.graph_label or DEFAULT_TITLE,
            nodes=flow_nodes,
            metadata=metadata,
        )
        flow.start_node_id = FlowGraph.from_flow(flow).pick_start_node()
        return flow
