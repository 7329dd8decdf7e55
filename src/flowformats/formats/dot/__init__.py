"""Graphviz DOT format: detector, pydot-based parser and graphviz formatter."""

from flowformats.formats.base import FormatImplementation
from flowformats.formats.dot.detector import dot_detector, score_dot
from flowformats.formats.dot.formatter import DotFormatter
from flowformats.formats.dot.parser import DotParser

FORMAT_ID = "dot"


def describe_format() -> FormatImplementation:
    return FormatImplementation(
        format_id=FORMAT_ID,
        format_name="Graphviz DOT",
        detector=dot_detector,
        parser=DotParser(),
        formatter=DotFormatter(),
        description="Graphviz digraph source",
    )


__all__ = ["DotFormatter", "DotParser", "describe_format", "dot_detector", "score_dot"]
