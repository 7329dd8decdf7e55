"""Graphviz DOT detector."""

from __future__ import annotations

import re

from flowformats.formats.base import ScoredDetector, count_matching_lines, stripped_lines

# Requires the opening brace so Mermaid's ``graph TD`` header does not count.
_GRAPH_DECLARATION_RE = re.compile(r'^(strict\s+)?(di)?graph\s*("[^"]*"|[\w.]+)?\s*\{', re.IGNORECASE)

_LINE_PATTERNS = [
    re.compile(r"\s*->\s*"),
    re.compile(r"\s*--\s*"),
    re.compile(r"\[\s*\w+\s*="),
    re.compile(r"^\s*\w+\s*\["),
    re.compile(r"^\s*}\s*$"),
    re.compile(r"^\s*{\s*$"),
    re.compile(r"subgraph", re.IGNORECASE),
]

_KEYWORD_RES = [
    re.compile(rf"\b{keyword}\b", re.IGNORECASE) for keyword in ("digraph", "graph", "subgraph", "node", "edge", "strict")
]


def score_dot(text: str) -> float:
    trimmed = text.strip()
    confidence = 0.0

    if _GRAPH_DECLARATION_RE.match(trimmed):
        confidence += 0.4

    matches = count_matching_lines(stripped_lines(trimmed), _LINE_PATTERNS)
    if matches:
        confidence += min(0.4, matches * 0.1)

    keywords = sum(1 for r in _KEYWORD_RES if r.search(trimmed))
    if keywords:
        confidence += min(0.2, keywords * 0.05)

    if "{" in trimmed and "}" in trimmed:
        confidence += 0.1

    return min(1.0, confidence)


dot_detector = ScoredDetector(format_id="dot", score=score_dot)
