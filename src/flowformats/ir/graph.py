"""Flow graph: a networkx view over a FlowDefinition for topology queries.

Parsers use it to choose a start node, formatters to infer node kinds, and the
validators to find unreachable nodes and dangling outlet targets. The view never
mutates the flow it was built from.
"""

from __future__ import annotations

import networkx as nx

from flowformats.ir.flow import FlowDefinition
from flowformats.types import NodeKind


class FlowGraph:
    """Wraps a networkx MultiDiGraph built from a flow's nodes and outlets.

    Nodes keep the flow's declaration order; parallel outlets between the same
    pair of nodes stay distinct edges keyed by outlet id.
    """

    def __init__(self, digraph: nx.MultiDiGraph, order: list[str], dangling: list[tuple[str, str]]) -> None:
        self.digraph = digraph
        self.order = order
        self.dangling = dangling

    @classmethod
    def from_flow(cls, flow: FlowDefinition) -> FlowGraph:
        digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        order: list[str] = []
        for node in flow.nodes:
            if node.id not in digraph:
                digraph.add_node(node.id, title=node.title)
                order.append(node.id)

        dangling: list[tuple[str, str]] = []
        for node in flow.nodes:
            for outlet in node.outlets:
                if outlet.to not in digraph:
                    dangling.append((node.id, outlet.to))
                    continue
                digraph.add_edge(node.id, outlet.to, key=outlet.id, label=outlet.label)

        return cls(digraph=digraph, order=order, dangling=dangling)

    def in_degree(self, node_id: str) -> int:
        if node_id not in self.digraph:
            return 0
        return self.digraph.in_degree(node_id)

    def out_degree(self, node_id: str) -> int:
        if node_id not in self.digraph:
            return 0
        return self.digraph.out_degree(node_id)

    def entry_candidates(self) -> list[str]:
        """Nodes with outgoing but no incoming edges, in declaration order."""
        return [n for n in self.order if self.in_degree(n) == 0 and self.out_degree(n) > 0]

    def pick_start_node(self) -> str:
        candidates = self.entry_candidates()
        if candidates:
            return candidates[0]
        return self.order[0] if self.order else ""

    def node_kinds(self) -> dict[str, NodeKind]:
        kinds: dict[str, NodeKind] = {}
        for node_id in self.order:
            inc = self.in_degree(node_id)
            out = self.out_degree(node_id)
            if inc == 0 and out == 0:
                kinds[node_id] = NodeKind.Isolated
            elif inc == 0:
                kinds[node_id] = NodeKind.Start
            elif out == 0:
                kinds[node_id] = NodeKind.End
            elif out > 1:
                kinds[node_id] = NodeKind.Decision
            else:
                kinds[node_id] = NodeKind.Action
        return kinds

    def reachable_from(self, node_id: str) -> set[str]:
        if node_id not in self.digraph:
            return set()
        return {node_id} | nx.descendants(self.digraph, node_id)

    def unreachable_from(self, node_id: str) -> list[str]:
        reachable = self.reachable_from(node_id)
        return [n for n in self.order if n not in reachable]

    def structural_warnings(self, start_node_id: str) -> list[str]:
        """Non-fatal structure problems worth reporting from a validate call."""
        warnings: list[str] = []
        if start_node_id:
            unreachable = self.unreachable_from(start_node_id)
            if unreachable:
                warnings.append(f"Unreachable from '{start_node_id}': {', '.join(unreachable)}")
        if self.order and not any(self.out_degree(n) == 0 for n in self.order):
            warnings.append("Flow has no terminal node")
        return warnings
