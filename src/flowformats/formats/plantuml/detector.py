"""PlantUML activity diagram detector."""

from __future__ import annotations

import re

from flowformats.formats.base import ScoredDetector, count_matching_lines, stripped_lines

_TERMINAL_KEYWORD_RE = re.compile(r"^(start|stop|end)$", re.MULTILINE)
_TITLE_RE = re.compile(r"^title\s+.+", re.MULTILINE)

_LINE_PATTERNS = [
    re.compile(r"^(start|stop|end|kill|detach)$"),
    re.compile(r"^:\s*.+\s*;$"),
    re.compile(r"^if\s*\(.+\)\s*then\s*\(.+\)$"),
    re.compile(r"^else(?:\s*\(.+\))?$"),
    re.compile(r"^endif$"),
    re.compile(r"^elseif\s*\(.+\)\s*then\s*\(.+\)$"),
    re.compile(r"^label\s+\w+$"),
    re.compile(r"^goto\s+\w+$"),
    re.compile(r"^note\s+(left|right|top|bottom)"),
]


def score_plantuml(text: str) -> float:
    trimmed = text.strip()
    confidence = 0.0

    if "@startuml" in trimmed or "@enduml" in trimmed:
        confidence += 0.4

    if _TERMINAL_KEYWORD_RE.search(trimmed):
        confidence += 0.2

    matches = count_matching_lines(stripped_lines(trimmed), _LINE_PATTERNS)
    if matches:
        confidence += min(0.3, matches * 0.1)

    if _TITLE_RE.search(trimmed):
        confidence += 0.1

    return min(1.0, confidence)


plantuml_detector = ScoredDetector(format_id="plantuml", score=score_plantuml)
