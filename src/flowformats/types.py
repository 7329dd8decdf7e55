"""Shared type definitions for flowformats.

Enums and small result records used across parsers, the registry and formatters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flowformats.ir.flow import FlowDefinition

UNKNOWN_FORMAT = "unknown"


class Direction(Enum):
    LR = auto()
    RL = auto()
    TD = auto()
    BT = auto()

    @classmethod
    def default(cls) -> Direction:
        return cls.TD

    @classmethod
    def parse(cls, value: str) -> Direction:
        key = value.upper()
        if key == "TB":
            return cls.TD
        if key not in cls.__members__:
            raise ValueError(f"Unknown direction '{value}'; use LR, RL, TD, or BT")
        return cls[key]


class NodeShape(Enum):
    Rectangle = auto()  # id[Label]
    Rounded = auto()  # id(Label)
    Diamond = auto()  # id{Label}
    Circle = auto()  # id((Label))
    Rhombus = auto()  # id{{Label}}
    Stadium = auto()  # id([Label])
    Subroutine = auto()  # id[[Label]]
    Cylindrical = auto()  # id[(Label)]
    Cloud = auto()  # id)Label(
    Hexagon = auto()  # id>Label<

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle


class EdgeStyle(Enum):
    Arrow = auto()  # -->
    Line = auto()  # ---
    Dotted = auto()  # -.->
    Thick = auto()  # ==>


class NodeKind(Enum):
    Start = "start"
    Action = "action"
    Decision = "decision"
    End = "end"
    Isolated = "isolated"


@dataclass
class DetectionResult:
    format: str
    confidence: float
    indicators: list[str] = field(default_factory=list)

    @classmethod
    def unknown(cls, reason: str) -> DetectionResult:
        return cls(format=UNKNOWN_FORMAT, confidence=0.0, indicators=[reason])

    @property
    def is_unknown(self) -> bool:
        return self.format == UNKNOWN_FORMAT


@dataclass
class ParseResult:
    success: bool
    flowchart: FlowDefinition | None = None
    format: str | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class FormatResult:
    success: bool
    output: str | None = None
    error: str | None = None


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
