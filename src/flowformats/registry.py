"""Format registry: detection, dispatch and registration of format implementations.

The registry is an explicit object; ``create_registry`` builds
one holding the built-in formats. Writers take a lock and swap in a new catalog,
so readers always iterate a stable snapshot without locking.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from flowformats.config import RegistryConfig
from flowformats.errors import DuplicateFormatError, FormatNotFoundError, FormatRegistryError
from flowformats.formats import BUILTIN_SOURCE, builtin_formats
from flowformats.formats.base import FormatImplementation
from flowformats.ir.flow import FlowDefinition
from flowformats.types import DetectionResult, FormatResult, ParseResult, ValidationResult

logger = logging.getLogger(__name__)

UNDETECTED_MESSAGE = "Unable to detect format. Please ensure your syntax is valid for a supported format."


@dataclass(frozen=True)
class RegistryEntry:
    implementation: FormatImplementation
    registered_by: str | None = None

    @property
    def format_id(self) -> str:
        return self.implementation.format_id


class FormatRegistry:
    """Maps format ids to their detector/parser/formatter triples."""

    def __init__(self, config: RegistryConfig | None = None) -> None:
        self.config = config or RegistryConfig()
        self._lock = threading.Lock()
        self._entries: dict[str, RegistryEntry] = {}

    # ─── Registration ────────────────────────────────────────────────────────

    def register(self, implementation: FormatImplementation, registered_by: str | None = None) -> None:
        """Add a format implementation.

        Raises:
            FormatRegistryError: If the format id is empty or the detector reports a different id.
            DuplicateFormatError: If the id is already registered by a different source.
        """
        format_id = implementation.format_id
        if not isinstance(format_id, str) or not format_id.strip():
            raise FormatRegistryError("Format ID must be a non-empty string")
        detector_id = getattr(implementation.detector, "format_id", format_id)
        if detector_id != format_id:
            raise FormatRegistryError(
                f"Detector format ID '{detector_id}' does not match implementation format ID '{format_id}'"
            )

        with self._lock:
            existing = self._entries.get(format_id)
            if existing is not None:
                if existing.registered_by == registered_by:
                    logger.debug("format '%s' already registered by %s; ignoring", format_id, registered_by)
                    return
                raise DuplicateFormatError(format_id, existing.registered_by)
            entries = dict(self._entries)
            entries[format_id] = RegistryEntry(implementation, registered_by)
            self._entries = entries
        logger.debug("registered format '%s'", format_id)

    def unregister(self, format_id: str) -> bool:
        with self._lock:
            if format_id not in self._entries:
                return False
            entries = dict(self._entries)
            del entries[format_id]
            self._entries = entries
        logger.debug("unregistered format '%s'", format_id)
        return True

    # ─── Lookup ──────────────────────────────────────────────────────────────

    def get_format(self, format_id: str) -> FormatImplementation:
        entry = self._entries.get(format_id)
        if entry is None:
            raise FormatNotFoundError(format_id)
        return entry.implementation

    def has_format(self, format_id: str) -> bool:
        return format_id in self._entries

    def get_registered_formats(self) -> list[str]:
        """Registered format ids in registration order."""
        return list(self._entries)

    def get_all_formats(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    # ─── Detection ───────────────────────────────────────────────────────────

    def detect_format(self, text: str) -> DetectionResult:
        """Score the text with every detector and keep the most confident.

        Ties go to the format registered first. A best score not above
        ``config.min_confidence`` means the format is unknown.
        """
        if not text or not text.strip():
            return DetectionResult.unknown("Empty input provided")

        results: list[DetectionResult] = []
        for entry in self._entries.values():
            try:
                results.append(entry.implementation.detector.detect(text))
            except Exception:
                logger.warning("detector for format '%s' failed; skipping", entry.format_id, exc_info=True)

        if not results:
            return DetectionResult.unknown("No detectors available")

        best = results[0]
        for result in results[1:]:
            if result.confidence > best.confidence:
                best = result

        if best.confidence > self.config.min_confidence:
            logger.debug("detected format '%s' (%.2f)", best.format, best.confidence)
            return best
        return DetectionResult.unknown("No clear format indicators found")

    # ─── Parsing ─────────────────────────────────────────────────────────────

    def parse(self, text: str) -> ParseResult:
        """Detect the format of ``text`` and parse it.

        Failures are reported in the result, never raised. When the detected
        format's parser fails and fallback parsing is on, the remaining formats
        are tried in registration order.
        """
        detection = self.detect_format(text)
        if detection.is_unknown:
            return ParseResult(success=False, error=UNDETECTED_MESSAGE)

        try:
            flow = self.get_format(detection.format).parser.parse(text)
        except Exception as e:
            logger.debug("parser for '%s' failed: %s", detection.format, e)
            if self.config.fallback_parsing:
                fallback = self._try_fallback(text, detection.format)
                if fallback is not None:
                    return fallback
            return ParseResult(
                success=False,
                format=detection.format,
                error=f"Failed to parse {detection.format} format: {e}",
            )
        logger.debug("parsed %s flow: %d nodes, %d outlets", detection.format, len(flow.nodes), flow.outlet_count())
        return ParseResult(success=True, flowchart=flow, format=detection.format, warnings=flow.warnings)

    def _try_fallback(self, text: str, detected: str) -> ParseResult | None:
        for entry in self._entries.values():
            if entry.format_id == detected:
                continue
            try:
                flow = entry.implementation.parser.parse(text)
            except Exception as e:
                logger.debug("fallback parser '%s' failed: %s", entry.format_id, e)
                continue
            if flow.nodes:
                logger.info("parsed as '%s' after '%s' failed", entry.format_id, detected)
                warnings = [*flow.warnings, f"Parsed as {entry.format_id} instead of detected {detected}"]
                return ParseResult(success=True, flowchart=flow, format=entry.format_id, warnings=warnings)
        return None

    def parse_with_format(self, text: str, format_id: str) -> ParseResult:
        """Parse ``text`` with an explicit format, skipping detection."""
        try:
            flow = self.get_format(format_id).parser.parse(text)
        except Exception as e:
            return ParseResult(success=False, format=format_id, error=f"Failed to parse {format_id} format: {e}")
        return ParseResult(success=True, flowchart=flow, format=format_id, warnings=flow.warnings)

    # ─── Formatting & validation ─────────────────────────────────────────────

    def format(self, flow: FlowDefinition, format_id: str, **options: Any) -> FormatResult:
        try:
            formatter = self.get_format(format_id).formatter
        except FormatNotFoundError as e:
            return FormatResult(success=False, error=str(e))
        if formatter is None:
            return FormatResult(success=False, error=f"Format '{format_id}' does not support formatting/export")

        try:
            output = formatter.format(flow, **options)
        except Exception as e:
            logger.debug("formatter for '%s' failed", format_id, exc_info=True)
            return FormatResult(success=False, error=f"Failed to format to {format_id}: {e}")
        return FormatResult(success=True, output=output)

    def validate(self, text: str, format_id: str | None = None) -> ValidationResult:
        """Validate ``text`` with the given format's parser, detecting the format when omitted."""
        if format_id is None:
            detection = self.detect_format(text)
            if detection.is_unknown:
                return ValidationResult(is_valid=False, errors=["Unable to detect format for validation"])
            format_id = detection.format

        try:
            parser = self.get_format(format_id).parser
        except FormatNotFoundError as e:
            return ValidationResult(is_valid=False, errors=[str(e)])
        return parser.validate(text)


def create_registry(config: RegistryConfig | None = None) -> FormatRegistry:
    """A registry holding the built-in formats: dot, mermaid, plantuml, json."""
    registry = FormatRegistry(config)
    for implementation in builtin_formats():
        registry.register(implementation, registered_by=BUILTIN_SOURCE)
    return registry
