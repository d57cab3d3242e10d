"""Tests for the handle type registry and connection compatibility."""

from __future__ import annotations

from mediaflow.visual.handles import (
    check_edge,
    get_handle_schema,
    get_handle_type,
    incompatible_edges,
    is_compatible_handle_type,
    normalize_handle_type,
)
from mediaflow.visual.models import NodeType, VisualEdge, VisualFlow, VisualNode


def test_get_handle_type_resolves_declared_inputs_and_outputs() -> None:
    assert get_handle_type("imageGen", "text", "input") == "text"
    assert get_handle_type("imageGen", "image", "input") == "image"
    assert get_handle_type("imageGen", "image", "output") == "image"
    assert get_handle_type("3dGen", "model", "output") == "3d"
    assert get_handle_type("scriptRunner", "input2", "input") == "any"
    assert get_handle_type(NodeType.VIDEO_PREVIEW, "video", "input") == "video"


def test_get_handle_type_returns_none_when_unresolvable() -> None:
    assert get_handle_type("unknownKind", "text", "input") is None
    assert get_handle_type("textGen", "missing", "input") is None
    # Preview kinds declare no outputs.
    assert get_handle_type("textPreview", "text", "output") is None
    assert get_handle_type(None, "text", "input") is None
    assert get_handle_type("textGen", None, "input") is None


def test_legacy_string_type_is_text_and_unknown_names_are_dropped() -> None:
    assert normalize_handle_type("string") == "text"
    assert normalize_handle_type("3d") == "3d"
    assert normalize_handle_type("number") is None
    assert normalize_handle_type("") is None


def test_compatibility_predicate() -> None:
    assert is_compatible_handle_type("text", "text") is True
    assert is_compatible_handle_type("any", "video") is True
    assert is_compatible_handle_type("video", "any") is True
    assert is_compatible_handle_type("text", "image") is False
    assert is_compatible_handle_type("image", "video") is False
    assert is_compatible_handle_type(None, "text") is False
    assert is_compatible_handle_type("any", None) is False


def test_generator_kinds_share_text_and_image_inputs() -> None:
    for kind in ("textGen", "imageGen", "videoGen", "3dGen"):
        schema = get_handle_schema(kind)
        assert schema is not None
        assert [h.id for h in schema.inputs] == ["text", "image"]
        assert len(schema.outputs) == 1


def test_incompatible_edges_reports_only_bad_connections() -> None:
    flow = VisualFlow(
        name="edges",
        nodes=[
            VisualNode(id="prompt", type=NodeType.TEXT_INPUT, data={"text": "a cat"}),
            VisualNode(id="img", type=NodeType.IMAGE_GEN),
            VisualNode(id="view", type=NodeType.VIDEO_PREVIEW),
            VisualNode(id="script", type=NodeType.SCRIPT_RUNNER),
        ],
        edges=[
            VisualEdge(id="ok", source="prompt", sourceHandle="text", target="img", targetHandle="text"),
            VisualEdge(id="bad", source="img", sourceHandle="image", target="view", targetHandle="video"),
            VisualEdge(id="wild", source="img", sourceHandle="image", target="script", targetHandle="input1"),
            VisualEdge(id="dangling", source="img", sourceHandle="image", target="ghost", targetHandle="image"),
        ],
    )

    assert check_edge(flow, flow.edges[0]) is None
    assert check_edge(flow, flow.edges[2]) is None

    errors = incompatible_edges(flow)
    assert len(errors) == 2
    assert "Edge 'bad'" in errors[0] and "(image)" in errors[0] and "(video)" in errors[0]
    assert "unknown node 'ghost'" in errors[1]
