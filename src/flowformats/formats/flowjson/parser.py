"""Native JSON flow parser.

The JSON form is the dict layout of ``FlowDefinition`` (camelCase keys). Parsing
checks the structure rule by rule and reports the first broken rule.
"""

from __future__ import annotations

import json
from typing import Any

from flowformats.errors import JsonFlowParseError
from flowformats.formats.base import validate_with
from flowformats.ir.flow import FlowDefinition
from flowformats.types import ValidationResult

DEFAULT_TITLE = "Untitled Flow"


def _check_structure(data: Any) -> None:
    if not isinstance(data, dict):
        raise JsonFlowParseError("Invalid JSON structure - must be an object")
    if not isinstance(data.get("id"), str) or not data["id"]:
        raise JsonFlowParseError('Missing or invalid "id" field - must be a non-empty string')
    nodes = data.get("nodes")
    if not isinstance(nodes, list):
        raise JsonFlowParseError('Missing or invalid "nodes" field - must be an array')
    if not isinstance(data.get("startNodeId"), str) or not data["startNodeId"]:
        raise JsonFlowParseError('Missing or invalid "startNodeId" field - must be a non-empty string')

    seen: set[str] = set()
    for i, node in enumerate(nodes):
        if not isinstance(node, dict):
            raise JsonFlowParseError(f"Node at index {i} is not a valid object")
        if not isinstance(node.get("id"), str) or not node["id"]:
            raise JsonFlowParseError(f'Node at index {i} missing or invalid "id" field')
        if node["id"] in seen:
            raise JsonFlowParseError(f'Duplicate node id "{node["id"]}" at index {i}')
        seen.add(node["id"])
        outlets = node.get("outlets")
        if outlets is None:
            continue
        if not isinstance(outlets, list):
            raise JsonFlowParseError(f'Node "{node["id"]}" has an invalid "outlets" field - must be an array')
        for j, outlet in enumerate(outlets):
            if not isinstance(outlet, dict) or not isinstance(outlet.get("to"), str) or not outlet["to"]:
                raise JsonFlowParseError(f'Outlet {j} of node "{node["id"]}" missing or invalid "to" field')

    if data["startNodeId"] not in seen:
        raise JsonFlowParseError(f'startNodeId "{data["startNodeId"]}" not found in nodes')

    for node in nodes:
        for j, outlet in enumerate(node.get("outlets") or []):
            if outlet["to"] not in seen:
                raise JsonFlowParseError(f'Outlet {j} of node "{node["id"]}" targets unknown node "{outlet["to"]}"')


class JsonFlowParser:
    """Parser for the native JSON flow format."""

    def parse(self, text: str) -> FlowDefinition:
        try:
            data = json.loads(text.strip())
        except json.JSONDecodeError as e:
            raise JsonFlowParseError(f"Invalid JSON syntax: {e}") from e
        _check_structure(data)
        flow = FlowDefinition.from_dict(data)
        if not flow.title:
            flow.title = DEFAULT_TITLE
        return flow

    def validate(self, text: str) -> ValidationResult:
        return validate_with(self, text)
