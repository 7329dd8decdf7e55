"""Mermaid flowchart parser — hand-rolled recursive descent.

Parses Mermaid flowchart/graph source into a FlowDefinition. Optional YAML front
matter supplies the title and description; styling and subgraph framing lines are
skipped, so subgraph contents end up in one flat graph.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field

import yaml

from flowformats.errors import MermaidParseError
from flowformats.formats.base import split_title, title_from_id, validate_with
from flowformats.ir.flow import FlowDefinition, NodeDefinition
from flowformats.types import Direction, EdgeStyle, NodeShape, ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_FLOW_ID = "mermaid-flowchart"
DEFAULT_TITLE = "Mermaid Flowchart"

# ─── Tokenizer ───────────────────────────────────────────────────────────────

_FRONT_MATTER_RE = re.compile(r"\A\s*---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_COMMENT_RE = re.compile(r"%%[^\n]*")
_WHITESPACE_RE = re.compile(r"[ \t]+")
_NEWLINE_RE = re.compile(r"\r\n|\n|\r")
_REST_OF_LINE_RE = re.compile(r"[^\n]*")

_HEADER_RE = re.compile(r"(?:flowchart|graph)\b[ \t]*(?P<direction>TD|TB|LR|RL|BT)?", re.IGNORECASE)
_SKIPPED_STMT_RE = re.compile(
    r"(?:classDef|class|style|linkStyle|click|direction|accTitle|accDescr|subgraph)\b[^\n]*"
)
_END_RE = re.compile(r"end\b(?![-\w])")

_NODE_ID_RE = re.compile(r"\w+(?:-\w+)*")
_CLASS_SUFFIX_RE = re.compile(r":::[\w-]+")
_MERMAID_ENTITY_RE = re.compile(r"#(\w+);")

# Labeled connectors: `A -- text --> B`, `A == text ==> B`, `A -. text .-> B`.
_TEXT_CONNECTORS: list[tuple[re.Pattern[str], EdgeStyle]] = [
    (re.compile(r"--[ \t]+(?P<label>[^\n]+?)[ \t]+-{2,}>"), EdgeStyle.Arrow),
    (re.compile(r"==[ \t]+(?P<label>[^\n]+?)[ \t]+={2,}>"), EdgeStyle.Thick),
    (re.compile(r"-\.[ \t]+(?P<label>[^\n]+?)[ \t]+\.-+>"), EdgeStyle.Dotted),
]

_CONNECTORS: list[tuple[re.Pattern[str], EdgeStyle]] = [
    (re.compile(r"-\.+->"), EdgeStyle.Dotted),
    (re.compile(r"={2,}>"), EdgeStyle.Thick),
    (re.compile(r"-{2,}>"), EdgeStyle.Arrow),
    (re.compile(r"-\.+-"), EdgeStyle.Dotted),
    (re.compile(r"={3,}"), EdgeStyle.Thick),
    (re.compile(r"-{3,}"), EdgeStyle.Line),
]

# Longest openers first so `([` is not read as `(`.
_SHAPES: list[tuple[str, str, NodeShape]] = [
    ("([", "])", NodeShape.Stadium),
    ("((", "))", NodeShape.Circle),
    ("[[", "]]", NodeShape.Subroutine),
    ("[(", ")]", NodeShape.Cylindrical),
    ("{{", "}}", NodeShape.Rhombus),
    ("[", "]", NodeShape.Rectangle),
    ("(", ")", NodeShape.Rounded),
    ("{", "}", NodeShape.Diamond),
    (")", "(", NodeShape.Cloud),
    (">", "<", NodeShape.Hexagon),
]

_NESTING_OPENERS = {")": "(", "]": "[", "}": "{"}


def decode_text(text: str) -> str:
    """Strip wrapping quotes and decode HTML and Mermaid ``#name;`` entities."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1]

    def entity(m: re.Match[str]) -> str:
        name = m.group(1)
        if name.isdigit():
            return chr(int(name))
        decoded = html.unescape(f"&{name};")
        return m.group(0) if decoded == f"&{name};" else decoded

    return html.unescape(_MERMAID_ENTITY_RE.sub(entity, text)).strip()


# ─── Statement pieces ────────────────────────────────────────────────────────


@dataclass
class _NodeRef:
    id: str
    text: str | None = None
    shape: NodeShape = NodeShape.default()


@dataclass
class _Edge:
    source: str
    target: str
    label: str | None
    style: EdgeStyle


@dataclass
class _Document:
    direction: Direction = Direction.default()
    nodes: dict[str, _NodeRef] = field(default_factory=dict)
    edges: list[_Edge] = field(default_factory=list)

    def upsert(self, ref: _NodeRef) -> None:
        """Real text is never replaced; a bare entry picks up later real text."""
        existing = self.nodes.get(ref.id)
        if existing is None or (existing.text is None and ref.text is not None):
            self.nodes[ref.id] = ref


@dataclass
class _Cursor:
    """Stateful parser cursor over the input string."""

    src: str
    pos: int = 0

    def eof(self) -> bool:
        return self.pos >= len(self.src)

    def peek(self, s: str) -> bool:
        return self.src.startswith(s, self.pos)

    def consume(self, s: str) -> bool:
        if self.peek(s):
            self.pos += len(s)
            return True
        return False

    def match_re(self, pattern: re.Pattern[str]) -> re.Match[str] | None:
        m = pattern.match(self.src, self.pos)
        if m:
            self.pos = m.end()
        return m

    def line_no(self) -> int:
        return self.src.count("\n", 0, self.pos) + 1

    def at_stmt_end(self) -> bool:
        return self.eof() or self.src[self.pos] in "\r\n;"

    def skip_ws(self) -> None:
        while self.match_re(_WHITESPACE_RE) or self.match_re(_COMMENT_RE):
            pass

    def skip_ws_and_newlines(self) -> None:
        while self.match_re(_WHITESPACE_RE) or self.match_re(_COMMENT_RE) or self.match_re(_NEWLINE_RE):
            pass

    def skip_line(self) -> None:
        self.match_re(_REST_OF_LINE_RE)

    def try_parse_header(self) -> Direction | None:
        saved = self.pos
        self.skip_ws_and_newlines()
        m = self.match_re(_HEADER_RE)
        if m is None:
            self.pos = saved
            return None
        self.skip_line()
        direction = m.group("direction")
        return Direction.parse(direction) if direction else Direction.default()

    def parse_quoted_string(self) -> str:
        quote = self.src[self.pos]
        self.pos += 1
        buf: list[str] = []
        while self.pos < len(self.src):
            ch = self.src[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(buf)
            if ch == "\n":
                break
            buf.append(ch)
            self.pos += 1
        raise MermaidParseError(f"Unterminated string on line {self.line_no()}")

    def read_shape_text(self, node_id: str, closer: str) -> str:
        self.skip_ws()
        if not self.eof() and self.src[self.pos] in "\"'":
            text = self.parse_quoted_string()
            self.skip_ws()
            if not self.consume(closer):
                raise MermaidParseError(f"Expected '{closer}' after text of node '{node_id}' on line {self.line_no()}")
            return text

        opener = _NESTING_OPENERS.get(closer[0])
        start, depth = self.pos, 0
        while not self.eof() and self.src[self.pos] != "\n":
            if depth == 0 and self.peek(closer):
                text = self.src[start : self.pos]
                self.pos += len(closer)
                return text
            ch = self.src[self.pos]
            if ch == opener:
                depth += 1
            elif depth and ch == closer[0]:
                depth -= 1
            self.pos += 1
        raise MermaidParseError(f"Unclosed shape for node '{node_id}' on line {self.line_no()}")

    def parse_node_ref(self) -> _NodeRef | None:
        self.skip_ws()
        m = self.match_re(_NODE_ID_RE)
        if m is None:
            return None
        ref = _NodeRef(id=m.group(0))
        for opener, closer, shape in _SHAPES:
            if self.consume(opener):
                text = decode_text(self.read_shape_text(ref.id, closer))
                ref.shape = shape
                ref.text = text or None
                break
        self.match_re(_CLASS_SUFFIX_RE)
        return ref

    def parse_node_group(self) -> list[_NodeRef] | None:
        """``A`` or ``A & B & C``."""
        first = self.parse_node_ref()
        if first is None:
            return None
        group = [first]
        while True:
            saved = self.pos
            self.skip_ws()
            if not self.consume("&"):
                self.pos = saved
                return group
            ref = self.parse_node_ref()
            if ref is None:
                self.pos = saved
                return group
            group.append(ref)

    def parse_edge_connector(self) -> tuple[EdgeStyle, str | None] | None:
        self.skip_ws()
        for pattern, style in _TEXT_CONNECTORS:
            m = self.match_re(pattern)
            if m:
                return style, m.group("label")
        for pattern, style in _CONNECTORS:
            if self.match_re(pattern):
                return style, self.try_parse_edge_label()
        return None

    def try_parse_edge_label(self) -> str | None:
        saved = self.pos
        self.skip_ws()
        if not self.consume("|"):
            self.pos = saved
            return None
        end = self.src.find("|", self.pos)
        newline = self.src.find("\n", self.pos)
        if end < 0 or (0 <= newline < end):
            raise MermaidParseError(f"Unclosed edge label on line {self.line_no()}")
        text = self.src[self.pos : end]
        self.pos = end + 1
        return text

    def parse_edge_chain(self) -> list[tuple[EdgeStyle, str | None, list[_NodeRef]]]:
        segments: list[tuple[EdgeStyle, str | None, list[_NodeRef]]] = []
        while True:
            saved = self.pos
            connector = self.parse_edge_connector()
            if connector is None:
                self.pos = saved
                break
            group = self.parse_node_group()
            if group is None:
                self.pos = saved
                break
            style, label = connector
            segments.append((style, label, group))
        return segments

    def parse_statement_into(self, doc: _Document) -> bool:
        if self.match_re(_SKIPPED_STMT_RE) or self.match_re(_END_RE):
            return True

        sources = self.parse_node_group()
        if sources is None:
            return False
        for ref in sources:
            doc.upsert(ref)

        for style, label, targets in self.parse_edge_chain():
            label = decode_text(label) if label else None
            for ref in targets:
                doc.upsert(ref)
            for source in sources:
                for target in targets:
                    doc.edges.append(_Edge(source.id, target.id, label or None, style))
            sources = targets
        return True

    def parse_document(self) -> _Document:
        doc = _Document()
        direction = self.try_parse_header()
        if direction is not None:
            doc.direction = direction

        while not self.eof():
            self.skip_ws()
            if self.eof():
                break
            if self.match_re(_NEWLINE_RE) or self.consume(";"):
                continue
            line = self.line_no()
            if not self.parse_statement_into(doc):
                logger.debug("mermaid: skipping unrecognized line %d", line)
                self.skip_line()
                continue
            self.skip_ws()
            if not self.at_stmt_end():
                logger.debug("mermaid: ignoring trailing text on line %d", line)
                self.skip_line()
        return doc


# ─── Front matter ────────────────────────────────────────────────────────────


def split_front_matter(text: str) -> tuple[dict[str, object], str]:
    """Return the YAML front matter mapping (possibly empty) and the diagram body."""
    m = _FRONT_MATTER_RE.match(text)
    if m is None:
        return {}, text
    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as e:
        raise MermaidParseError(f"Invalid front matter: {e}") from e
    # Keep line numbers of the body aligned with the source.
    body = "\n" * m.group(0).count("\n") + text[m.end() :]
    return (data if isinstance(data, dict) else {}), body


def _front_matter_text(data: dict[str, object], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    return str(value).strip() or None


class MermaidParser:
    """Mermaid flowchart/graph diagram parser."""

    def parse(self, text: str) -> FlowDefinition:
        front_matter, body = split_front_matter(text)
        doc = _Cursor(src=body).parse_document()

        nodes: list[NodeDefinition] = []
        for ref in doc.nodes.values():
            if ref.text:
                title, content = split_title(ref.text)
            else:
                title = content = title_from_id(ref.id)
            node = NodeDefinition(id=ref.id, title=title, content=content)
            if ref.shape is not NodeShape.default():
                node.metadata = {"shape": ref.shape.name.lower()}
            nodes.append(node)

        by_id = {n.id: n for n in nodes}
        for edge in doc.edges:
            outlet = by_id[edge.source].add_outlet(edge.target, label=edge.label)
            if edge.style is not EdgeStyle.Arrow:
                outlet.metadata = {"edgeStyle": edge.style.name.lower()}

        title = _front_matter_text(front_matter, "title")
        description = _front_matter_text(front_matter, "description")
        metadata: dict[str, object] = {"format": "mermaid", "direction": doc.direction.name}
        if title:
            metadata["originalTitle"] = title
        return FlowDefinition(
            id=DEFAULT_FLOW_ID,
            title=title or DEFAULT_TITLE,
            description=description,
            start_node_id=nodes[0].id if nodes else "",
            nodes=nodes,
            metadata=metadata,
        )

    def validate(self, text: str) -> ValidationResult:
        return validate_with(self, text)
