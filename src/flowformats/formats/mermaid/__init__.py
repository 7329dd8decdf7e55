"""Mermaid flowchart format."""

from flowformats.formats.base import FormatImplementation
from flowformats.formats.mermaid.detector import mermaid_detector, score_mermaid
from flowformats.formats.mermaid.formatter import ExecutionHighlight, MermaidFormatter
from flowformats.formats.mermaid.parser import MermaidParser

FORMAT_ID = "mermaid"


def describe_format() -> FormatImplementation:
    return FormatImplementation(
        format_id=FORMAT_ID,
        format_name="Mermaid Flowchart",
        detector=mermaid_detector,
        parser=MermaidParser(),
        formatter=MermaidFormatter(),
        description="Mermaid flowchart/graph syntax with optional YAML front matter",
    )


__all__ = [
    "ExecutionHighlight",
    "MermaidFormatter",
    "MermaidParser",
    "describe_format",
    "mermaid_detector",
    "score_mermaid",
]
