"""Centralized configuration for flowformats."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RegistryConfig:
    """Configuration for format detection and dispatch."""

    min_confidence: float = 0.3
    fallback_parsing: bool = True


@dataclass
class FormatterConfig:
    """Configuration shared by the text formatters."""

    direction: str = "TD"
    max_label_length: int = 50
    indent: int = 2
    sort_keys: bool = False
