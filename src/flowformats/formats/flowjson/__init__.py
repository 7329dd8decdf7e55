"""Native JSON flow format: the lossless dict form of a flow definition."""

from flowformats.formats.base import FormatImplementation
from flowformats.formats.flowjson.detector import json_detector, score_json
from flowformats.formats.flowjson.formatter import JsonFlowFormatter
from flowformats.formats.flowjson.parser import JsonFlowParser

FORMAT_ID = "json"


def describe_format() -> FormatImplementation:
    return FormatImplementation(
        format_id=FORMAT_ID,
        format_name="Flow JSON",
        detector=json_detector,
        parser=JsonFlowParser(),
        formatter=JsonFlowFormatter(),
        description="Native JSON form of a flow definition",
    )


__all__ = ["JsonFlowFormatter", "JsonFlowParser", "describe_format", "json_detector", "score_json"]
