"""Tests for the DOT, Mermaid and PlantUML formatters."""

import pytest

from flowformats.config import FormatterConfig
from flowformats.formats.dot import DotFormatter, DotParser
from flowformats.formats.mermaid import ExecutionHighlight, MermaidFormatter, MermaidParser
from flowformats.formats.plantuml import PlantUMLFormatter, PlantUMLParser
from flowformats.formats.plantuml.formatter import escape_text
from flowformats.ir.flow import FlowDefinition, NodeDefinition


def _flow(title: str = "Demo") -> FlowDefinition:
    """S -> ask -> (go | halt) -> done, with unlabeled branch outlets."""
    s = NodeDefinition(id="S", title="Begin")
    ask = NodeDefinition(id="ask", title="Ready?")
    go = NodeDefinition(id="go", title="Go")
    halt = NodeDefinition(id="halt", title="Halt")
    done = NodeDefinition(id="done", title="Done")
    s.add_outlet("ask")
    ask.add_outlet("go")
    ask.add_outlet("halt")
    go.add_outlet("done")
    halt.add_outlet("done")
    return FlowDefinition(id="demo", title=title, start_node_id="S", nodes=[s, ask, go, halt, done])


def _structure(flow: FlowDefinition) -> set[tuple[str, str, str | None]]:
    titles = {n.id: n.title for n in flow.nodes}
    return {(n.title, titles[o.to], o.label) for n in flow.nodes for o in n.outlets}


class TestMermaidFormatter:
    def test_full_output(self):
        out = MermaidFormatter().format(_flow())
        assert out == "\n".join(
            [
                "---",
                "title: Demo",
                "---",
                "",
                "flowchart TD",
                "    S([Begin])",
                "    ask{Ready?}",
                "    S --> ask",
                "    go[Go]",
                "    ask -->|yes| go",
                "    halt[Halt]",
                "    ask -->|no| halt",
                "    done([Done])",
                "    go --> done",
                "    halt --> done",
            ]
        )

    def test_direction_option(self):
        out = MermaidFormatter(FormatterConfig(direction="LR")).format(_flow(title=""))
        assert out.splitlines()[0] == "flowchart LR"
        assert MermaidFormatter().format(_flow(), direction="BT").splitlines()[4] == "flowchart BT"

    def test_execution_highlight(self):
        highlight = ExecutionHighlight(current_node_id="go", execution_path=["S", "ask", "go"])
        lines = MermaidFormatter().format(_flow(), highlight=highlight).splitlines()
        assert "    S ==> ask" in lines
        assert "    ask ==>|yes| go" in lines
        assert "    ask -->|no| halt" in lines
        assert "    class S,ask executed" in lines
        assert "    class go current" in lines
        assert any(line.startswith("    classDef executed ") for line in lines)

    def test_explicit_highlight_edges(self):
        highlight = ExecutionHighlight(execution_path=["S", "ask"], edges=[("ask", "halt")])
        lines = MermaidFormatter().format(_flow(), highlight=highlight).splitlines()
        assert "    S --> ask" in lines
        assert "    ask ==>|no| halt" in lines

    def test_reserved_end_id_and_edge_styles(self):
        flow = MermaidParser().parse("flowchart TD\n    A -.-> end\n")
        out = MermaidFormatter().format(flow)
        assert "    A -.-> end_" in out.splitlines()

    def test_label_truncation_and_quoting(self):
        flow = FlowDefinition(
            id="f",
            title="",
            start_node_id="a",
            nodes=[NodeDefinition(id="a", title="A very long title indeed"), NodeDefinition(id="b", title="Call (x)")],
        )
        lines = MermaidFormatter().format(flow, max_label_length=10).splitlines()
        assert "    a[A very ...]" in lines
        assert '    b["Call (x)"]' in lines

    def test_start_node_is_defined_first(self):
        z = NodeDefinition(id="z", title="Cleanup")
        a = NodeDefinition(id="a", title="Open")
        a.add_outlet("z")
        flow = FlowDefinition(id="f", title="", start_node_id="a", nodes=[z, a])
        out = MermaidFormatter().format(flow)
        assert out.splitlines()[1] == "    a([Open])"
        assert MermaidParser().parse(out).start_node_id == "a"

    def test_round_trip_keeps_structure(self):
        flow = _flow()
        again = MermaidParser().parse(MermaidFormatter().format(flow))
        assert again.title == "Demo"
        assert _structure(again) == {
            ("Begin", "Ready?", None),
            ("Ready?", "Go", "yes"),
            ("Ready?", "Halt", "no"),
            ("Go", "Done", None),
            ("Halt", "Done", None),
        }


class TestDotFormatter:
    def test_source(self):
        out = DotFormatter().format(_flow())
        assert out.startswith("digraph demo {")
        assert "rankdir=TB" in out
        assert "ask -> go [label=yes]" in out
        assert "ask -> halt [label=no]" in out
        ask_line = next(line for line in out.splitlines() if line.strip().startswith("ask ["))
        assert "shape=diamond" in ask_line

    def test_direction(self):
        assert "rankdir=LR" in DotFormatter(FormatterConfig(direction="LR")).format(_flow())

    def test_round_trip_keeps_structure(self):
        flow = _flow()
        flow.nodes[1].content = "Ready?\nReally?"
        again = DotParser().parse(DotFormatter().format(flow))
        assert again.title == "Demo"
        assert again.node_ids() == flow.node_ids()
        assert again.get_node("ask").content == "Ready?\nReally?"
        assert _structure(again) == {
            ("Begin", "Ready?", None),
            ("Ready?", "Go", "yes"),
            ("Ready?", "Halt", "no"),
            ("Go", "Done", None),
            ("Halt", "Done", None),
        }


class TestPlantUMLFormatter:
    def test_linear(self):
        flow = PlantUMLParser().parse("@startuml\nstart\n:A;\n:B;\nstop\n@enduml\n")
        assert PlantUMLFormatter().format(flow) == "\n".join(
            ["@startuml", "title PlantUML Activity Diagram", "", "start", ":A;", ":B;", "stop", "", "@enduml"]
        )

    def test_branches_merge_with_goto(self):
        flow = _flow()
        lines = PlantUMLFormatter().format(flow).splitlines()
        assert lines[:6] == [
            "@startuml",
            "title Demo",
            "",
            "start",
            ":Begin;",
            "if (Ready?) then (yes)",
        ]
        assert "  label label_done" in lines
        assert "  goto label_done" in lines
        assert "else (no)" in lines
        assert "endif" in lines

    def test_round_trip_keeps_structure(self):
        source = """@startuml
start
:Receive order;
if (In stock?) then (yes)
  :Ship;
else (no)
  :Backorder;
endif
:Close;
stop
@enduml
"""
        parser = PlantUMLParser()
        flow = parser.parse(source)
        again = parser.parse(PlantUMLFormatter().format(flow))
        assert _structure(again) == _structure(flow)

    def test_three_way_branch_uses_elseif(self):
        d = NodeDefinition(id="d", title="Pick")
        for target, label in (("a", "one"), ("b", "two"), ("c", "three")):
            d.add_outlet(target, label=label)
        nodes = [d] + [NodeDefinition(id=i, title=i.upper()) for i in "abc"]
        lines = PlantUMLFormatter().format(FlowDefinition(id="f", title="", start_node_id="d", nodes=nodes)).splitlines()
        assert "if (Pick) then (one)" in lines
        assert "elseif (Pick) then (two)" in lines
        assert "else (three)" in lines

    def test_empty_flow(self):
        assert PlantUMLFormatter().format(FlowDefinition(id="e", title="")) == "@startuml\n\n@enduml"

    @pytest.mark.parametrize("text,expected", [("a;b", "a\\;b"), ("x: y", "x\\: y"), ("l1\nl2", "l1\\nl2")])
    def test_escape_text(self, text, expected):
        assert escape_text(text) == expected
