"""Flow definition: the common graph IR every parser produces and every formatter consumes.

A flow is a list of nodes, each owning its ordered outgoing outlets. The dict form
mirrors the native JSON layout (camelCase keys, empty optionals omitted), so that
``FlowDefinition.from_dict(flow.to_dict()) == flow`` holds for every flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def outlet_id(from_id: str, to_id: str, index: int) -> str:
    """Synthesized outlet id for formats without native edge ids."""
    return f"{from_id}-{to_id}-{index}"


@dataclass
class OutletDefinition:
    id: str
    to: str
    label: str | None = None
    condition: str | None = None
    actions: list[dict[str, Any]] | None = None
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "to": self.to}
        if self.label:
            data["label"] = self.label
        if self.condition:
            data["condition"] = self.condition
        if self.actions:
            data["actions"] = self.actions
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str) -> OutletDefinition:
        return cls(
            id=data.get("id") or default_id,
            to=data["to"],
            label=data.get("label") or None,
            condition=data.get("condition") or None,
            actions=data.get("actions") or None,
            metadata=data.get("metadata") or None,
        )


@dataclass
class NodeDefinition:
    id: str
    title: str
    content: str | None = None
    outlets: list[OutletDefinition] = field(default_factory=list)
    actions: list[dict[str, Any]] | None = None
    auto_advance: bool | None = None
    metadata: dict[str, Any] | None = None

    def add_outlet(self, to: str, label: str | None = None, condition: str | None = None) -> OutletDefinition:
        """Append an outlet with a synthesized id derived from its position."""
        outlet = OutletDefinition(
            id=outlet_id(self.id, to, len(self.outlets)),
            to=to,
            label=label or None,
            condition=condition or None,
        )
        self.outlets.append(outlet)
        return outlet

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.content is not None:
            data["content"] = self.content
        if self.outlets:
            data["outlets"] = [o.to_dict() for o in self.outlets]
        if self.actions:
            data["actions"] = self.actions
        if self.auto_advance is not None:
            data["autoAdvance"] = self.auto_advance
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NodeDefinition:
        node_id = data["id"]
        auto_advance = data.get("autoAdvance", data.get("isAutoAdvance"))
        return cls(
            id=node_id,
            title=data.get("title") or "",
            content=data.get("content"),
            outlets=[
                OutletDefinition.from_dict(o, outlet_id(node_id, o["to"], i))
                for i, o in enumerate(data.get("outlets") or [])
            ],
            actions=data.get("actions") or None,
            auto_advance=auto_advance if isinstance(auto_advance, bool) else None,
            metadata=data.get("metadata") or None,
        )


@dataclass
class FlowDefinition:
    id: str
    title: str
    start_node_id: str = ""
    nodes: list[NodeDefinition] = field(default_factory=list)
    description: str | None = None
    global_state: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    def get_node(self, node_id: str) -> NodeDefinition | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def outlet_count(self) -> int:
        return sum(len(n.outlets) for n in self.nodes)

    @property
    def warnings(self) -> list[str]:
        """Non-fatal diagnostics a parser attached to this flow."""
        if not self.metadata:
            return []
        return list(self.metadata.get("warnings") or [])

    def invariant_violations(self) -> list[str]:
        """Describe every broken structural invariant; empty when the flow is sound."""
        problems: list[str] = []
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                problems.append(f"Duplicate node id '{node.id}'")
            seen.add(node.id)
        if self.nodes and self.start_node_id not in seen:
            problems.append(f"startNodeId '{self.start_node_id}' not found in nodes")
        if not self.nodes and self.start_node_id:
            problems.append(f"startNodeId '{self.start_node_id}' set on an empty flow")
        for node in self.nodes:
            for outlet in node.outlets:
                if outlet.to not in seen:
                    problems.append(f"Outlet '{outlet.id}' of node '{node.id}' targets unknown node '{outlet.to}'")
        return problems

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.description:
            data["description"] = self.description
        data["startNodeId"] = self.start_node_id
        data["nodes"] = [n.to_dict() for n in self.nodes]
        if self.global_state is not None:
            data["globalState"] = self.global_state
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FlowDefinition:
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            start_node_id=data.get("startNodeId") or "",
            nodes=[NodeDefinition.from_dict(n) for n in data.get("nodes") or []],
            description=data.get("description") or None,
            global_state=data.get("globalState"),
            metadata=data.get("metadata") or None,
        )
