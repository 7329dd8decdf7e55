"""Sample diagrams in examples/: detection, parsing, validation and conversion to every format."""

from pathlib import Path

import pytest

from flowformats import create_registry

EXAMPLES_DIR = Path(__file__).parent.parent.parent / "examples"

EXPECTED_FORMATS = {
    ".dot": "dot",
    ".mmd": "mermaid",
    ".puml": "plantuml",
    ".json": "json",
}


def find_samples() -> list[tuple[str, Path, str]]:
    samples = []
    for path in sorted(EXAMPLES_DIR.iterdir()):
        format_id = EXPECTED_FORMATS.get(path.suffix)
        if format_id:
            samples.append((path.name, path, format_id))
    return samples


SAMPLES = find_samples()
IDS = [s[0] for s in SAMPLES]


@pytest.fixture(scope="module")
def registry():
    return create_registry()


def test_every_format_has_a_sample():
    assert {s[2] for s in SAMPLES} == set(EXPECTED_FORMATS.values())


@pytest.mark.parametrize("name,path,format_id", SAMPLES, ids=IDS)
def test_sample_is_detected(registry, name: str, path: Path, format_id: str) -> None:
    result = registry.detect_format(path.read_text())
    assert result.format == format_id, f"{name} detected as {result.format} ({result.confidence:.2f})"


@pytest.mark.parametrize("name,path,format_id", SAMPLES, ids=IDS)
def test_sample_parses_cleanly(registry, name: str, path: Path, format_id: str) -> None:
    result = registry.parse(path.read_text())
    assert result.success, result.error
    assert result.format == format_id
    assert result.warnings == []
    flow = result.flowchart
    assert flow.nodes
    assert flow.invariant_violations() == []


@pytest.mark.parametrize("name,path,format_id", SAMPLES, ids=IDS)
def test_sample_validates(registry, name: str, path: Path, format_id: str) -> None:
    result = registry.validate(path.read_text())
    assert result.is_valid, result.errors
    assert result.warnings == []


@pytest.mark.parametrize("target", ["dot", "mermaid", "plantuml", "json"])
@pytest.mark.parametrize("name,path,format_id", SAMPLES, ids=IDS)
def test_sample_converts(registry, name: str, path: Path, format_id: str, target: str) -> None:
    flow = registry.parse(path.read_text()).flowchart
    formatted = registry.format(flow, target)
    assert formatted.success, formatted.error

    reparsed = registry.parse_with_format(formatted.output, target)
    assert reparsed.success, reparsed.error
    assert reparsed.flowchart.nodes
    assert reparsed.flowchart.invariant_violations() == []


@pytest.mark.parametrize("name,path,format_id", SAMPLES, ids=IDS)
def test_json_conversion_is_lossless(registry, name: str, path: Path, format_id: str) -> None:
    flow = registry.parse(path.read_text()).flowchart
    again = registry.parse_with_format(registry.format(flow, "json").output, "json").flowchart
    assert again == flow
