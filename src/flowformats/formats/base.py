"""Format protocols and helpers shared by the detector/parser/formatter triples."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from flowformats.errors import ParseError
from flowformats.ir.flow import FlowDefinition, NodeDefinition
from flowformats.ir.graph import FlowGraph
from flowformats.types import DetectionResult, ValidationResult

logger = logging.getLogger(__name__)


class Detector(Protocol):
    """Scores how likely a text is written in one format."""

    format_id: str

    def detect(self, text: str) -> DetectionResult:
        ...


class Parser(Protocol):
    """Protocol that all diagram parsers must implement."""

    def parse(self, text: str) -> FlowDefinition:
        """Parse source text into a FlowDefinition."""
        ...

    def validate(self, text: str) -> ValidationResult:
        ...


class Formatter(Protocol):
    """Protocol that all formatters must implement."""

    def format(self, flow: FlowDefinition, **options: Any) -> str:
        """Render a flow definition as source text."""
        ...


@dataclass(frozen=True)
class FormatImplementation:
    format_id: str
    format_name: str
    detector: Detector
    parser: Parser
    formatter: Formatter | None = None
    description: str = ""


def normalize_confidence(confidence: float) -> float:
    return max(0.0, min(1.0, confidence))


@dataclass(frozen=True)
class ScoredDetector:
    """Detector built from a pure ``text -> score`` function."""

    format_id: str
    score: Callable[[str], float]

    def detect(self, text: str) -> DetectionResult:
        confidence = normalize_confidence(self.score(text))
        logger.debug("detector %s scored %.2f", self.format_id, confidence)
        return DetectionResult(format=self.format_id, confidence=confidence)


# ─── Text helpers ────────────────────────────────────────────────────────────

_CAMEL_RE = re.compile(r"([A-Z])")
_UNSAFE_ID_RE = re.compile(r"[^A-Za-z0-9_-]")
_BR_RE = re.compile(r"<br\s*/?\s*>", re.IGNORECASE)


def stripped_lines(text: str) -> list[str]:
    return [line.strip() for line in text.strip().splitlines()]


def count_matching_lines(lines: Iterable[str], patterns: Iterable[re.Pattern[str]]) -> int:
    """Number of lines matched by at least one pattern."""
    patterns = list(patterns)
    return sum(1 for line in lines if any(p.search(line) for p in patterns))


def title_from_id(node_id: str) -> str:
    """Readable title for an unlabeled node: ``userName_ok`` -> ``User Name ok``."""
    spaced = _CAMEL_RE.sub(r" \1", node_id).replace("_", " ")
    if spaced:
        spaced = spaced[0].upper() + spaced[1:]
    return spaced.strip()


def sanitize_id(raw: str) -> str:
    """Map an identifier onto the safe ``[A-Za-z0-9_-]`` charset."""
    safe = _UNSAFE_ID_RE.sub("_", raw.strip())
    return safe or "_"


def split_title(text: str) -> tuple[str, str]:
    """Split display text into (first line, full multi-line content)."""
    text = _BR_RE.sub("\n", text)
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if not lines:
        return text.strip(), text.strip()
    return lines[0], "\n".join(lines)


def validate_with(parser: Parser, text: str, extra: Callable[[FlowDefinition], list[str]] | None = None) -> ValidationResult:
    """Parse-and-catch validation plus structural warnings on the parsed flow."""
    try:
        flow = parser.parse(text)
    except ParseError as e:
        return ValidationResult(is_valid=False, errors=[str(e)])

    errors = flow.invariant_violations()
    warnings = flow.warnings
    warnings.extend(FlowGraph.from_flow(flow).structural_warnings(flow.start_node_id))
    if not flow.nodes:
        warnings.append("Flow has no nodes")
    if extra is not None:
        warnings.extend(extra(flow))
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def branch_labels(node: NodeDefinition) -> list[str | None]:
    """Outlet labels in order; a two-way split with missing labels reads ``yes``/``no``."""
    labels: list[str | None] = [o.label for o in node.outlets]
    if len(labels) == 2:
        labels = [labels[0] or "yes", labels[1] or "no"]
    return labels


class UniqueIds:
    """Maps raw identifiers onto unique sanitized ones; collisions get a numeric suffix."""

    def __init__(self, sanitize: Callable[[str], str] = sanitize_id) -> None:
        self._sanitize = sanitize
        self._ids: dict[str, str] = {}
        self._taken: set[str] = set()

    def __getitem__(self, raw: str) -> str:
        if raw not in self._ids:
            base = self._sanitize(raw)
            candidate, n = base, 2
            while candidate in self._taken:
                candidate = f"{base}_{n}"
                n += 1
            self._ids[raw] = candidate
            self._taken.add(candidate)
        return self._ids[raw]
