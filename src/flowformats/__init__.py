"""flowformats: detect, parse and format flowchart diagrams (DOT, Mermaid, PlantUML, JSON)."""

from typing import Any

from flowformats.config import FormatterConfig, RegistryConfig
from flowformats.errors import (
    DotParseError,
    DuplicateFormatError,
    FlowFormatsError,
    FormatNotFoundError,
    FormatRegistryError,
    JsonFlowParseError,
    MermaidParseError,
    ParseError,
    PlantUMLParseError,
)
from flowformats.formats.dot import DotFormatter, DotParser
from flowformats.formats.flowjson import JsonFlowFormatter, JsonFlowParser
from flowformats.formats.mermaid import ExecutionHighlight, MermaidFormatter, MermaidParser
from flowformats.formats.plantuml import PlantUMLFormatter, PlantUMLParser
from flowformats.ir import FlowDefinition, FlowGraph, NodeDefinition, OutletDefinition
from flowformats.registry import FormatRegistry, create_registry
from flowformats.types import DetectionResult, FormatResult, ParseResult, ValidationResult


def parse_flow(text: str, format_id: str | None = None) -> FlowDefinition:
    """Parse diagram text into a FlowDefinition.

    Args:
        text: DOT, Mermaid, PlantUML or JSON flow source.
        format_id: Force a format ('dot', 'mermaid', 'plantuml', 'json'); None detects it.

    Returns:
        The parsed flow definition.

    Raises:
        ParseError: If the format cannot be detected or the text does not parse.
    """
    registry = create_registry()
    result = registry.parse(text) if format_id is None else registry.parse_with_format(text, format_id)
    if not result.success or result.flowchart is None:
        raise ParseError(result.error or "Parsing failed", format_id=result.format)
    return result.flowchart


def convert(text: str, to_format: str, from_format: str | None = None, **options: Any) -> str:
    """Parse diagram text and render it in another format.

    Args:
        text: Source diagram text.
        to_format: Target format id.
        from_format: Source format id; None detects it.
        **options: Passed through to the target formatter.

    Returns:
        The rendered diagram text.

    Raises:
        ParseError: If the input cannot be parsed.
        FlowFormatsError: If the target format is unknown or cannot format the flow.
    """
    flow = parse_flow(text, from_format)
    result = create_registry().format(flow, to_format, **options)
    if not result.success or result.output is None:
        raise FlowFormatsError(result.error or f"Failed to format to {to_format}")
    return result.output


__all__ = [
    "DetectionResult",
    "DotFormatter",
    "DotParseError",
    "DotParser",
    "DuplicateFormatError",
    "ExecutionHighlight",
    "FlowDefinition",
    "FlowFormatsError",
    "FlowGraph",
    "FormatNotFoundError",
    "FormatRegistry",
    "FormatRegistryError",
    "FormatResult",
    "FormatterConfig",
    "JsonFlowFormatter",
    "JsonFlowParseError",
    "JsonFlowParser",
    "MermaidFormatter",
    "MermaidParseError",
    "MermaidParser",
    "NodeDefinition",
    "OutletDefinition",
    "ParseError",
    "ParseResult",
    "PlantUMLFormatter",
    "PlantUMLParseError",
    "PlantUMLParser",
    "RegistryConfig",
    "ValidationResult",
    "convert",
    "create_registry",
    "parse_flow",
]
