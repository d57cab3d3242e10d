"""Tests for pre-execution readiness checks."""

from __future__ import annotations

import pytest

from mediaflow.visual.models import MissingRequired, NodeType, VisualEdge, VisualNode
from mediaflow.visual.validation import (
    MissingRequiredInputError,
    format_missing_required,
    validate_flow,
    validate_required,
)


def _edge_into(target: str, handle: str) -> VisualEdge:
    return VisualEdge(id=f"up-{target}", source="up", sourceHandle=handle, target=target, targetHandle=handle)


@pytest.mark.parametrize("kind", ["textGen", "imageGen", "videoGen", "3dGen"])
def test_generators_need_a_prompt(kind: str) -> None:
    empty = VisualNode(id="g", type=kind, data={"prompt": ""})
    assert validate_required(empty, []) == [MissingRequired(key="prompt", label="Prompt")]

    blank = VisualNode(id="g", type=kind, data={"prompt": "   "})
    assert [m.key for m in validate_required(blank, [])] == ["prompt"]

    local = VisualNode(id="g", type=kind, data={"prompt": "a cat"})
    assert validate_required(local, []) == []


def test_connected_text_handle_satisfies_the_prompt() -> None:
    node = VisualNode(id="g", type="textGen", data={"prompt": ""})
    assert validate_required(node, [_edge_into("g", "text")]) == []
    # An image connection does not stand in for the prompt.
    assert len(validate_required(node, [_edge_into("g", "image")])) == 1
    # Edges into other nodes do not count.
    assert len(validate_required(node, [_edge_into("other", "text")])) == 1


def test_input_kinds_need_local_values_even_when_connected() -> None:
    text = VisualNode(id="t", type=NodeType.TEXT_INPUT, data={})
    assert [m.label for m in validate_required(text, [_edge_into("t", "text")])] == ["Text"]
    assert validate_required(VisualNode(id="t", type="textInput", data={"output": "edited"}), []) == []

    image = VisualNode(id="i", type="imageInput", data={})
    assert [m.label for m in validate_required(image, [])] == ["Image"]
    # Any present value counts for media inputs.
    assert validate_required(VisualNode(id="i", type="imageInput", data={"image": ["a", "b"]}), []) == []

    video = VisualNode(id="v", type="videoInput", data={"video": None})
    assert [m.label for m in validate_required(video, [])] == ["Video"]

    model = VisualNode(id="m", type="3dInput", data={"model": "https://m.glb"})
    assert validate_required(model, []) == []
    assert [m.label for m in validate_required(VisualNode(id="m", type="3dInput"), [])] == ["3D model URL"]


def test_previews_accept_an_edge_or_a_local_value() -> None:
    preview = VisualNode(id="p", type="imagePreview", data={})
    assert [m.label for m in validate_required(preview, [])] == ["Upstream image input"]
    assert validate_required(preview, [_edge_into("p", "image")]) == []
    assert validate_required(VisualNode(id="p", type="imagePreview", data={"src": "https://x.png"}), []) == []

    model_preview = VisualNode(id="p3", type="3dPreview", data={})
    assert validate_required(model_preview, [_edge_into("p3", "model")]) == []


def test_script_runner_lists_every_missing_item() -> None:
    node = VisualNode(id="s", type="scriptRunner", data={"code": " "})
    missing = validate_required(node, [])
    assert [m.key for m in missing] == ["code", "language"]
    assert format_missing_required(missing) == "Code, Language"

    ready = VisualNode(id="s", type="scriptRunner", data={"code": "print(1)", "language": "python"})
    assert validate_required(ready, []) == []


def test_unknown_kinds_have_no_requirements() -> None:
    assert validate_required(VisualNode(id="x", type="somethingElse"), []) == []


def test_validate_flow_reports_only_unready_nodes_and_skips_skipped() -> None:
    nodes = [
        VisualNode(id="ok", type="textInput", data={"text": "hello"}),
        VisualNode(id="gen", type="textGen", data={"prompt": ""}),
        VisualNode(id="off", type="imageGen", data={"prompt": "", "skip": True}),
    ]
    report = validate_flow(nodes, [])
    assert list(report) == ["gen"]
    assert report["gen"][0].label == "Prompt"


def test_validation_does_not_mutate_nodes() -> None:
    node = VisualNode(id="gen", type="textGen", data={"prompt": ""})
    before = node.model_dump()
    validate_flow([node], [])
    assert node.model_dump() == before


def test_missing_required_input_error_message() -> None:
    error = MissingRequiredInputError({"gen": [MissingRequired(key="prompt", label="Prompt")]})
    assert isinstance(error, ValueError)
    assert "gen: Prompt" in str(error)
    assert error.missing["gen"][0].key == "prompt"
