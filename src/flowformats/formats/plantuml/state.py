"""Activity-diagram compiler state and its transitions.

PlantUML activity diagrams describe structured control flow (``if``/``elseif``/
``else``/``endif``, ``goto``/``label``); the transitions below turn that into plain
graph edges. Each transition has the signature ``(state, match) -> None`` and is
selected by the first pattern of ``TRANSITIONS`` matching a preprocessed line.

Branch bookkeeping works with *merge points*: ``(node id, edge label)`` pairs that
must all be wired into the next node created after a branch structure closes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from flowformats.formats.base import split_title
from flowformats.ir.flow import NodeDefinition

logger = logging.getLogger(__name__)

MergePoint = tuple[str, str | None]

START_TITLE = "Start"
END_TITLE = "End"

_ESCAPE_RE = re.compile(r"\\([nN;:\\])")


def unescape_text(text: str) -> str:
    """Decode PlantUML ``\\n``, ``\\;``, ``\\:`` and ``\\\\`` escapes."""

    def repl(m: re.Match[str]) -> str:
        ch = m.group(1)
        return "\n" if ch in "nN" else ch

    return _ESCAPE_RE.sub(repl, text)


@dataclass
class IfFrame:
    """One open ``if``; ``chained`` frames were opened by ``elseif`` and close with their parent."""

    decision: str
    then_label: str | None
    else_label: str | None = None
    in_else: bool = False
    branch_taken: bool = False
    chained: bool = False
    terminals: list[MergePoint] = field(default_factory=list)

    @property
    def branch_label(self) -> str | None:
        return self.else_label if self.in_else else self.then_label


@dataclass
class ActivityState:
    nodes: dict[str, NodeDefinition] = field(default_factory=dict)
    kinds: dict[str, str] = field(default_factory=dict)
    current: str | None = None
    frames: list[IfFrame] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    pending_labels: list[str] = field(default_factory=list)
    pending_arrow_label: str | None = None
    deferred_gotos: list[tuple[str, str, str | None]] = field(default_factory=list)
    merge_points: list[MergePoint] = field(default_factory=list)
    counter: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def top(self) -> IfFrame | None:
        return self.frames[-1] if self.frames else None

    def add_node(self, kind: str, text: str) -> str:
        """Register a node and bind any pending labels to it."""
        self.counter += 1
        node_id = f"{kind}_{self.counter}"
        title, content = split_title(text)
        self.nodes[node_id] = NodeDefinition(id=node_id, title=title, content=content)
        self.kinds[node_id] = kind
        for name in self.pending_labels:
            if name in self.labels:
                self.warnings.append(f"Label '{name}' declared more than once; keeping the first")
                continue
            self.labels[name] = node_id
        self.pending_labels = []
        return node_id

    def connect(self, source: str, target: str, label: str | None = None) -> None:
        self.nodes[source].add_outlet(target, label=label)

    def enter(self, node_id: str) -> None:
        """Wire the current node and pending merge points into ``node_id`` and move there."""
        frame = self.top
        if self.current is not None:
            label = self.pending_arrow_label
            if frame is not None and self.current == frame.decision and not frame.branch_taken:
                label = label or frame.branch_label
                frame.branch_taken = True
            self.connect(self.current, node_id, label)
        for source, label in dict.fromkeys(self.merge_points):
            self.connect(source, node_id, label)
        self.merge_points = []
        self.pending_arrow_label = None
        self.current = node_id

    def close_branch(self, frame: IfFrame) -> None:
        """Move the open branch's loose ends into the frame's terminals."""
        if not frame.branch_taken:
            frame.terminals.append((frame.decision, frame.branch_label))
        else:
            if self.current is not None:
                frame.terminals.append((self.current, None))
            frame.terminals.extend(self.merge_points)
        self.merge_points = []
        self.current = None

    def link_label(self, source: str, name: str, label: str | None) -> None:
        target = self.labels.get(name)
        if target is None:
            self.deferred_gotos.append((source, name, label))
        else:
            self.connect(source, target, label)


# ─── Transitions ─────────────────────────────────────────────────────────────


def on_start(state: ActivityState, match: re.Match[str]) -> None:
    state.enter(state.add_node("start", START_TITLE))


def on_stop(state: ActivityState, match: re.Match[str]) -> None:
    state.enter(state.add_node("end", END_TITLE))
    state.current = None


def on_activity(state: ActivityState, match: re.Match[str]) -> None:
    text = unescape_text(match.group("text")).strip()
    if not text:
        logger.debug("plantuml: skipping empty activity")
        return
    state.enter(state.add_node("activity", text))


def on_if(state: ActivityState, match: re.Match[str]) -> None:
    decision = state.add_node("decision", unescape_text(match.group("condition")).strip())
    state.enter(decision)
    state.frames.append(IfFrame(decision=decision, then_label=_label(match.group("label"))))


def on_elseif(state: ActivityState, match: re.Match[str]) -> None:
    frame = state.top
    if frame is None:
        state.warnings.append("'elseif' without a matching 'if' ignored")
        return
    state.close_branch(frame)
    no_label = _label(match.group("no")) or "no"
    frame.in_else = True
    frame.else_label = no_label
    frame.branch_taken = True

    decision = state.add_node("decision", unescape_text(match.group("condition")).strip())
    state.connect(frame.decision, decision, no_label)
    state.current = decision
    state.frames.append(IfFrame(decision=decision, then_label=_label(match.group("label")), chained=True))


def on_else(state: ActivityState, match: re.Match[str]) -> None:
    frame = state.top
    if frame is None:
        state.warnings.append("'else' without a matching 'if' ignored")
        return
    state.close_branch(frame)
    frame.in_else = True
    frame.else_label = _label(match.group("label"))
    frame.branch_taken = False
    state.current = frame.decision


def on_endif(state: ActivityState, match: re.Match[str]) -> None:
    frame = state.top
    if frame is None:
        state.warnings.append("'endif' without a matching 'if' ignored")
        return
    state.close_branch(frame)
    if not frame.in_else:
        # Implicit empty else branch.
        frame.terminals.append((frame.decision, None))

    closed = [state.frames.pop()]
    while closed[-1].chained and state.frames:
        closed.append(state.frames.pop())
    state.merge_points = [point for f in reversed(closed) for point in f.terminals]
    state.current = None


def on_label(state: ActivityState, match: re.Match[str]) -> None:
    state.pending_labels.append(match.group("name"))


def on_goto(state: ActivityState, match: re.Match[str]) -> None:
    name = match.group("name")
    frame = state.top
    if frame is not None and state.current == frame.decision and not frame.branch_taken:
        sources: list[MergePoint] = [(frame.decision, frame.branch_label)]
        frame.branch_taken = True
    elif state.current is not None:
        sources = [(state.current, state.pending_arrow_label)]
    else:
        sources = list(dict.fromkeys(state.merge_points))

    if not sources:
        logger.debug("plantuml: 'goto %s' has no source node", name)
    for source, label in sources:
        state.link_label(source, name, label)
    state.merge_points = []
    state.pending_arrow_label = None
    state.current = None


def on_arrow(state: ActivityState, match: re.Match[str]) -> None:
    state.pending_arrow_label = _label(match.group("label"))


def _label(text: str | None) -> str | None:
    if text is None:
        return None
    return unescape_text(text).strip() or None


Transition = Callable[[ActivityState, re.Match[str]], None]

TRANSITIONS: list[tuple[re.Pattern[str], Transition]] = [
    (re.compile(r"^start$"), on_start),
    (re.compile(r"^(?:stop|end|kill|detach)$"), on_stop),
    (re.compile(r"^:(?P<text>.*);$", re.DOTALL), on_activity),
    (re.compile(r"^if\s*\((?P<condition>.+?)\)\s*(?:then\s*(?:\((?P<label>.*?)\))?)?$"), on_if),
    (
        re.compile(
            r"^(?:\((?P<no>[^)]*)\)\s*)?else\s?if\s*\((?P<condition>.+?)\)\s*(?:then\s*(?:\((?P<label>.*?)\))?)?$"
        ),
        on_elseif,
    ),
    (re.compile(r"^else(?:\s*\((?P<label>.*?)\))?$"), on_else),
    (re.compile(r"^end\s?if$"), on_endif),
    (re.compile(r"^label\s+(?P<name>\S+)$"), on_label),
    (re.compile(r"^goto\s+(?P<name>\S+)$"), on_goto),
    (re.compile(r"^-+>\s*(?P<label>[^;]*);?$"), on_arrow),
]
