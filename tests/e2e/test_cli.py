"""CLI tests: every subcommand through click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from flowformats.__main__ import main

MERMAID = "flowchart TD\n    A[Order] --> B{Paid?}\n    B -->|yes| C[Ship]\n    B -->|no| D[Cancel]\n"
DOT = "digraph G {\n  A -> B;\n  B -> C;\n}\n"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_cli_help(runner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Detect, parse and convert flowchart diagrams" in result.output
    for command in ("detect", "parse", "convert", "validate", "formats"):
        assert command in result.output


def test_formats_lists_builtins_in_order(runner):
    result = runner.invoke(main, ["formats"])
    assert result.exit_code == 0
    ids = [line.split()[0] for line in result.output.splitlines()]
    assert ids == ["dot", "mermaid", "plantuml", "json"]


class TestDetect:
    def test_from_file(self, runner, tmp_path):
        path = tmp_path / "flow.puml"
        path.write_text("@startuml\nstart\n:A;\nstop\n@enduml\n")
        result = runner.invoke(main, ["detect", str(path)])
        assert result.exit_code == 0
        assert result.output.startswith("plantuml ")

    def test_from_stdin(self, runner):
        result = runner.invoke(main, ["detect"], input=MERMAID)
        assert result.exit_code == 0
        fmt, confidence = result.output.split()
        assert fmt == "mermaid"
        assert 0.3 < float(confidence) <= 1.0

    def test_unknown_exits_1(self, runner):
        result = runner.invoke(main, ["detect"], input="just some prose\n")
        assert result.exit_code == 1
        assert "No clear format indicators found" in result.output

    def test_missing_file(self, runner):
        result = runner.invoke(main, ["detect", "does-not-exist.dot"])
        assert result.exit_code == 2


class TestParse:
    def test_writes_json_file(self, runner, tmp_path):
        out = tmp_path / "flow.json"
        result = runner.invoke(main, ["parse", "-o", str(out)], input=MERMAID)
        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["startNodeId"] == "A"
        assert [n["id"] for n in data["nodes"]] == ["A", "B", "C", "D"]

    def test_stdout_with_sorted_keys(self, runner):
        result = runner.invoke(main, ["parse", "--sort-keys"], input=DOT)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert list(data) == sorted(data)
        assert data["metadata"]["format"] == "dot"

    def test_forced_format_error(self, runner):
        result = runner.invoke(main, ["parse", "-f", "dot"], input="digraph { A -> }")
        assert result.exit_code == 1
        assert "Failed to parse dot format" in result.output

    def test_unknown_format_option(self, runner):
        result = runner.invoke(main, ["parse", "-f", "svg"], input=DOT)
        assert result.exit_code == 2
        assert "unknown format 'svg'" in result.output


class TestConvert:
    def test_mermaid_to_plantuml(self, runner):
        result = runner.invoke(main, ["convert", "-t", "plantuml"], input=MERMAID)
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "@startuml"
        assert "if (Paid?) then (yes)" in lines
        assert lines[-1] == "@enduml"

    def test_dot_to_mermaid_with_direction(self, runner):
        result = runner.invoke(main, ["convert", "-t", "mermaid", "-d", "LR"], input=DOT)
        assert result.exit_code == 0
        assert "flowchart LR" in result.output
        assert "    A --> B" in result.output

    def test_to_file(self, runner, tmp_path):
        out = tmp_path / "flow.dot"
        result = runner.invoke(main, ["convert", "-t", "dot", "-o", str(out)], input=MERMAID)
        assert result.exit_code == 0
        assert "B -> C [label=yes]" in out.read_text()

    def test_bad_direction(self, runner):
        result = runner.invoke(main, ["convert", "-t", "mermaid", "-d", "sideways"], input=DOT)
        assert result.exit_code == 1
        assert "Failed to format to mermaid" in result.output

    def test_requires_target(self, runner):
        result = runner.invoke(main, ["convert"], input=DOT)
        assert result.exit_code == 2


class TestValidate:
    def test_valid(self, runner):
        result = runner.invoke(main, ["validate"], input=MERMAID)
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_invalid(self, runner):
        result = runner.invoke(main, ["validate", "-f", "json"], input='{"id": "f"}')
        assert result.exit_code == 1
        assert 'Missing or invalid "nodes" field' in result.output

    def test_warnings_do_not_fail(self, runner):
        result = runner.invoke(main, ["validate"], input="@startuml\nstart\n:A;\ngoto nowhere\n@enduml\n")
        assert result.exit_code == 0
        assert "Undeclared goto label 'nowhere'" in result.output


def test_log_level_option(runner):
    result = runner.invoke(main, ["--log-level", "debug", "detect"], input=DOT)
    assert result.exit_code == 0
    assert "dot " in result.output
