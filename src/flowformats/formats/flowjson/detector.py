"""Native JSON flow detector."""

from __future__ import annotations

import json

from flowformats.formats.base import ScoredDetector


def _non_empty_str(value: object) -> bool:
    return isinstance(value, str) and bool(value)


def score_json(text: str) -> float:
    trimmed = text.strip()
    if not (trimmed.startswith("{") and trimmed.endswith("}")):
        return 0.0
    try:
        data = json.loads(trimmed)
    except ValueError:
        return 0.0
    if not isinstance(data, dict):
        return 0.0

    has_id = _non_empty_str(data.get("id"))
    nodes = data.get("nodes")
    has_nodes = isinstance(nodes, list)
    has_start = _non_empty_str(data.get("startNodeId"))

    if has_id and has_nodes and has_start:
        confidence = 0.9
    elif has_id and has_nodes:
        confidence = 0.7
    elif has_nodes:
        confidence = 0.5
    elif has_id:
        confidence = 0.3
    else:
        confidence = 0.0

    if _non_empty_str(data.get("title")):
        confidence += 0.05
    if has_nodes and nodes and isinstance(nodes[0], dict):
        first = nodes[0]
        if first.get("id") and first.get("type"):
            confidence += 0.05
        if isinstance(first.get("outlets"), list):
            confidence += 0.05

    return min(1.0, confidence)


json_detector = ScoredDetector(format_id="json", score=score_json)
