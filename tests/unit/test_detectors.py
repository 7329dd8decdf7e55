"""Tests for the per-format confidence detectors."""

import pytest

from flowformats.formats.dot import dot_detector, score_dot
from flowformats.formats.flowjson import score_json
from flowformats.formats.mermaid import score_mermaid
from flowformats.formats.plantuml import score_plantuml

DOT = "digraph G {\n  A -> B;\n  B -> C;\n}"
MERMAID = "flowchart TD\n    A[Start] --> B{Ok?}\n    B -->|yes| C[Done]\n"
PLANTUML = "@startuml\nstart\n:A;\nstop\n@enduml"
JSON = '{"id": "f", "title": "T", "startNodeId": "a", "nodes": [{"id": "a", "outlets": []}]}'

SCORERS = {
    "dot": score_dot,
    "mermaid": score_mermaid,
    "plantuml": score_plantuml,
    "json": score_json,
}
SAMPLES = {"dot": DOT, "mermaid": MERMAID, "plantuml": PLANTUML, "json": JSON}


@pytest.mark.parametrize("format_id", list(SAMPLES))
def test_own_format_scores_highest(format_id):
    text = SAMPLES[format_id]
    scores = {fid: score(text) for fid, score in SCORERS.items()}
    assert max(scores, key=scores.get) == format_id
    assert scores[format_id] > 0.5


@pytest.mark.parametrize("format_id", list(SCORERS))
def test_scores_stay_in_unit_interval(format_id):
    for text in [*SAMPLES.values(), "", "hello world", "{}" * 50, "-->\n" * 40]:
        assert 0.0 <= SCORERS[format_id](text) <= 1.0


def test_plantuml_minimal_diagram():
    assert score_plantuml(PLANTUML) >= 0.5
    assert score_dot(PLANTUML) < score_plantuml(PLANTUML)
    assert score_mermaid(PLANTUML) < score_plantuml(PLANTUML)


def test_mermaid_graph_header_is_not_dot():
    text = "graph TD\n    A --> B\n"
    assert score_mermaid(text) > score_dot(text)


def test_json_tiers():
    assert score_json('{"id": "f", "nodes": [], "startNodeId": "a"}') == pytest.approx(0.9)
    assert score_json('{"id": "f", "nodes": []}') == pytest.approx(0.7)
    assert score_json('{"nodes": []}') == pytest.approx(0.5)
    assert score_json('{"id": "f"}') == pytest.approx(0.3)
    assert score_json('{"other": 1}') == 0.0
    assert score_json("{not json}") == 0.0


def test_mermaid_front_matter_bonus():
    body = "flowchart TD\n    A --> B\n"
    assert score_mermaid("---\ntitle: T\n---\n" + body) > score_mermaid(body)


def test_scored_detector_wraps_score():
    result = dot_detector.detect(DOT)
    assert result.format == "dot"
    assert result.confidence == pytest.approx(score_dot(DOT))


def test_plantuml_without_markers_clears_threshold():
    text = "start\n:A;\nstop"
    assert score_plantuml(text) == pytest.approx(0.5)
    assert score_plantuml("start\n:A;\n:B;\n:C;\nstop") == pytest.approx(0.5)
