"""Tests for the native JSON flow parser and formatter."""

import json
import re

import pytest

from flowformats.config import FormatterConfig
from flowformats.errors import JsonFlowParseError
from flowformats.formats.flowjson import JsonFlowFormatter, JsonFlowParser
from flowformats.registry import create_registry

FLOW = {
    "id": "onboarding",
    "title": "Onboarding",
    "startNodeId": "welcome",
    "nodes": [
        {"id": "welcome", "title": "Welcome", "outlets": [{"id": "o1", "to": "ask", "label": "Begin"}]},
        {
            "id": "ask",
            "title": "Ready?",
            "content": "Ready?\nPick one",
            "outlets": [{"to": "done", "label": "yes"}, {"to": "welcome", "label": "no", "condition": "retry"}],
        },
        {"id": "done", "title": "Done", "isAutoAdvance": True},
    ],
}


@pytest.fixture
def parser() -> JsonFlowParser:
    return JsonFlowParser()


def test_parse(parser):
    flow = parser.parse(json.dumps(FLOW))
    assert flow.id == "onboarding"
    assert flow.start_node_id == "welcome"
    assert flow.node_ids() == ["welcome", "ask", "done"]
    ask = flow.get_node("ask")
    assert [o.id for o in ask.outlets] == ["ask-done-0", "ask-welcome-1"]
    assert ask.outlets[1].condition == "retry"
    assert flow.get_node("done").auto_advance is True


def test_missing_title_defaults(parser):
    flow = parser.parse('{"id": "f", "startNodeId": "a", "nodes": [{"id": "a"}]}')
    assert flow.title == "Untitled Flow"
    assert flow.nodes[0].title == ""


def test_format_then_parse_is_lossless(parser):
    flow = parser.parse(json.dumps(FLOW))
    again = parser.parse(JsonFlowFormatter().format(flow))
    assert again == flow


def test_formatter_options():
    flow = JsonFlowParser().parse(json.dumps(FLOW))
    compact = JsonFlowFormatter(FormatterConfig(indent=None)).format(flow)
    assert "\n" not in compact
    ordered = JsonFlowFormatter().format(flow, sort_keys=True)
    assert list(json.loads(ordered)) == sorted(json.loads(ordered))


def test_formatter_keeps_non_ascii():
    flow = JsonFlowParser().parse('{"id": "f", "title": "Café", "startNodeId": "a", "nodes": [{"id": "a"}]}')
    assert "Café" in JsonFlowFormatter().format(flow)


@pytest.mark.parametrize(
    "text,message",
    [
        ("{nope", "Invalid JSON syntax"),
        ("[1, 2]", "Invalid JSON structure - must be an object"),
        ('{"nodes": [], "startNodeId": "a"}', 'Missing or invalid "id" field'),
        ('{"id": "f", "startNodeId": "a"}', 'Missing or invalid "nodes" field'),
        ('{"id": "f", "nodes": [{"id": "a"}]}', 'Missing or invalid "startNodeId" field'),
        ('{"id": "f", "startNodeId": "a", "nodes": ["a"]}', "Node at index 0 is not a valid object"),
        ('{"id": "f", "startNodeId": "a", "nodes": [{"title": "x"}]}', 'Node at index 0 missing or invalid "id"'),
        ('{"id": "f", "startNodeId": "a", "nodes": [{"id": "a"}, {"id": "a"}]}', 'Duplicate node id "a"'),
        ('{"id": "f", "startNodeId": "a", "nodes": [{"id": "a", "outlets": [{}]}]}', 'missing or invalid "to"'),
        ('{"id": "f", "startNodeId": "z", "nodes": [{"id": "a"}]}', 'startNodeId "z" not found in nodes'),
        (
            '{"id": "f", "startNodeId": "a", "nodes": [{"id": "a", "outlets": [{"to": "ghost"}]}]}',
            'Outlet 0 of node "a" targets unknown node "ghost"',
        ),
    ],
    ids=[
        "syntax",
        "not-object",
        "no-id",
        "no-nodes",
        "no-start",
        "node-not-object",
        "node-no-id",
        "duplicate-id",
        "outlet-no-to",
        "start-not-found",
        "outlet-dangling",
    ],
)
def test_structure_errors(parser, text, message):
    with pytest.raises(JsonFlowParseError, match=re.escape(message)):
        parser.parse(text)


def test_dangling_outlet_fails_parse_and_validation():
    text = json.dumps(
        {"id": "f", "startNodeId": "a", "nodes": [{"id": "a", "outlets": [{"to": "b"}, {"to": "ghost"}]}, {"id": "b"}]}
    )
    result = create_registry().parse_with_format(text, "json")
    assert not result.success
    assert result.error == 'Failed to parse json format: Outlet 1 of node "a" targets unknown node "ghost"'

    validation = JsonFlowParser().validate(text)
    assert not validation.is_valid
    assert "targets unknown node" in validation.errors[0]
