"""Exception hierarchy for flowformats."""

from __future__ import annotations


class FlowFormatsError(Exception):
    """Base class for every error raised by flowformats."""


class ParseError(FlowFormatsError, ValueError):
    """Source text could not be turned into a flow definition."""

    format_id: str | None = None

    def __init__(self, message: str, format_id: str | None = None) -> None:
        super().__init__(message)
        if format_id is not None:
            self.format_id = format_id


class DotParseError(ParseError):
    format_id = "dot"


class MermaidParseError(ParseError):
    format_id = "mermaid"


class PlantUMLParseError(ParseError):
    format_id = "plantuml"


class JsonFlowParseError(ParseError):
    format_id = "json"


class FormatRegistryError(FlowFormatsError):
    """Misuse of the format registry."""


class DuplicateFormatError(FormatRegistryError):
    def __init__(self, format_id: str, registered_by: str | None = None) -> None:
        owner = f" (already registered by {registered_by})" if registered_by else ""
        super().__init__(f"Format '{format_id}' is already registered{owner}")
        self.format_id = format_id
        self.registered_by = registered_by


class FormatNotFoundError(FormatRegistryError):
    def __init__(self, format_id: str) -> None:
        super().__init__(f"Format '{format_id}' is not registered")
        self.format_id = format_id
