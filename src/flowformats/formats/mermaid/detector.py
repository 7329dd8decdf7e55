"""Mermaid flowchart detector."""

from __future__ import annotations

import re

from flowformats.formats.base import ScoredDetector, count_matching_lines, stripped_lines

_HEADER_RE = re.compile(r"^(flowchart|graph)\s+(TD|TB|BT|RL|LR)", re.MULTILINE)

_NODE_PATTERNS = [
    re.compile(r"\w+\[.*?\]"),
    re.compile(r"\w+\(.*?\)"),
    re.compile(r"\w+\{.*?\}"),
    re.compile(r"\w+\(\(.*?\)\)"),
    re.compile(r"\w+\[\[.*?\]\]"),
    re.compile(r"\w+>.*?<"),
    re.compile(r"\w+\[\(.*?\)\]"),
]

_ARROW_PATTERNS = [
    re.compile(r"-->"),
    re.compile(r"---"),
    re.compile(r"-\.->"),
    re.compile(r"-\.-"),
    re.compile(r"==>"),
    re.compile(r"==="),
    re.compile(r"~~>"),
    re.compile(r"~~"),
]


def score_mermaid(text: str) -> float:
    confidence = 0.0
    lines = stripped_lines(text)

    if _HEADER_RE.search(text):
        confidence += 0.8

    if text.startswith("---") and "---\n" in text:
        confidence += 0.3

    nodes = count_matching_lines(lines, _NODE_PATTERNS)
    if nodes:
        confidence += min(0.4, nodes * 0.1)

    arrows = count_matching_lines(lines, _ARROW_PATTERNS)
    if arrows:
        confidence += min(0.3, arrows * 0.05)

    if any(line.startswith("%%") for line in lines):
        confidence += 0.1

    return min(1.0, confidence)


mermaid_detector = ScoredDetector(format_id="mermaid", score=score_mermaid)
