"""Built-in formats, each described by its package's ``describe_format()``."""

from __future__ import annotations

from flowformats.formats import dot, flowjson, mermaid, plantuml
from flowformats.formats.base import FormatImplementation

BUILTIN_SOURCE = "flowformats"


def builtin_formats() -> list[FormatImplementation]:
    """The built-in format implementations, in registration order."""
    return [
        dot.describe_format(),
        mermaid.describe_format(),
        plantuml.describe_format(),
        flowjson.describe_format(),
    ]


__all__ = ["BUILTIN_SOURCE", "builtin_formats"]
