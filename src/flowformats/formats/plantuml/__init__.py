"""PlantUML activity diagram format."""

from flowformats.formats.base import FormatImplementation
from flowformats.formats.plantuml.detector import plantuml_detector, score_plantuml
from flowformats.formats.plantuml.formatter import PlantUMLFormatter
from flowformats.formats.plantuml.parser import PlantUMLParser

FORMAT_ID = "plantuml"


def describe_format() -> FormatImplementation:
    return FormatImplementation(
        format_id=FORMAT_ID,
        format_name="PlantUML Activity Diagram",
        detector=plantuml_detector,
        parser=PlantUMLParser(),
        formatter=PlantUMLFormatter(),
        description="PlantUML activity diagrams (new syntax) with if/elseif/else and goto/label",
    )


__all__ = ["PlantUMLFormatter", "PlantUMLParser", "describe_format", "plantuml_detector", "score_plantuml"]
