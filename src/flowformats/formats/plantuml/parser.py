"""PlantUML activity diagram parser.

Preprocessing drops comments, notes and ``@`` directives, joins multi-line
``:activity;`` statements and pulls out the title; each remaining line drives one
transition of the activity compiler in ``state``.
"""

from __future__ import annotations

import logging
import re

from flowformats.errors import PlantUMLParseError
from flowformats.formats.base import validate_with
from flowformats.formats.plantuml.state import TRANSITIONS, ActivityState, unescape_text
from flowformats.ir.flow import FlowDefinition
from flowformats.types import ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_FLOW_ID = "plantuml-activity"
DEFAULT_TITLE = "PlantUML Activity Diagram"

_START_LINE_RE = re.compile(r"^\s*start\s*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/'.*?'/", re.DOTALL)
_TITLE_RE = re.compile(r"^title\s+(.+)$")
_NOTE_RE = re.compile(r"^(?:floating\s+)?note\b")
_END_NOTE_RE = re.compile(r"^end\s?note$")


def _strip_notes(lines: list[str]) -> list[str]:
    kept: list[str] = []
    in_note = False
    for line in lines:
        if in_note:
            in_note = not _END_NOTE_RE.match(line)
        elif _NOTE_RE.match(line):
            # `note left: text` fits on one line; otherwise the note runs to `end note`.
            in_note = ":" not in line
        else:
            kept.append(line)
    return kept


def _join_activities(lines: list[str]) -> list[str]:
    joined: list[str] = []
    buffer: list[str] = []
    for line in lines:
        if buffer:
            buffer.append(line)
            if line.endswith(";"):
                joined.append(" ".join(buffer))
                buffer = []
        elif line.startswith(":") and not line.endswith(";"):
            buffer = [line]
        else:
            joined.append(line)
    if buffer:
        raise PlantUMLParseError(f"Unterminated activity: {buffer[0]!r}")
    return joined


def preprocess(text: str) -> tuple[str | None, list[str]]:
    """Return the diagram title (if any) and the statement lines to compile."""
    text = _BLOCK_COMMENT_RE.sub("", text)
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line and not line.startswith(("'", "@"))]

    # Titles are read after joining; continuation lines of an activity never count.
    title = None
    statements: list[str] = []
    for line in _join_activities(_strip_notes(lines)):
        m = _TITLE_RE.match(line)
        if m is None:
            statements.append(line)
        elif title is None:
            title = " ".join(unescape_text(m.group(1)).split())
    return title, statements



class PlantUMLParser:
    """PlantUML activity diagram (new syntax) parser."""

    def parse(self, text: str) -> FlowDefinition:
        if "@startuml" not in text and not _START_LINE_RE.search(text):
            raise PlantUMLParseError("Invalid PlantUML syntax: missing @startuml or start directive")

        title, lines = preprocess(text)
        state = ActivityState()
        for line in lines:
            for pattern, transition in TRANSITIONS:
                m = pattern.match(line)
                if m:
                    transition(state, m)
                    break
            else:
                logger.debug("plantuml: ignoring line %r", line)

        self._finish(state)
        return self._build(state, title)

    def validate(self, text: str) -> ValidationResult:
        return validate_with(self, text)

    def _finish(self, state: ActivityState) -> None:
        for source, name, label in state.deferred_gotos:
            target = state.labels.get(name)
            if target is None:
                logger.warning("plantuml: goto target label '%s' is never declared", name)
                state.warnings.append(f"Undeclared goto label '{name}' from '{source}'")
                continue
            state.connect(source, target, label)
        state.deferred_gotos = []

        for frame in state.frames:
            title = state.nodes[frame.decision].title
            state.warnings.append(f"Unclosed if block '{title}'")
        for name in state.pending_labels:
            state.warnings.append(f"Label '{name}' is not followed by any node")

    @staticmethod
    def _build(state: ActivityState, title: str | None) -> FlowDefinition:
        nodes = list(state.nodes.values())
        starts = [node_id for node_id, kind in state.kinds.items() if kind == "start"]
        if starts:
            start_node_id = starts[0]
        else:
            start_node_id = nodes[0].id if nodes else ""

        metadata: dict[str, object] = {"format": "plantuml"}
        if title:
            metadata["originalTitle"] = title
        if state.warnings:
            metadata["warnings"] = list(state.warnings)
        return FlowDefinition(
            id=DEFAULT_FLOW_ID,
            title=title or DEFAULT_TITLE,
            start_node_id=start_node_id,
            nodes=nodes,
            metadata=metadata,
        )
