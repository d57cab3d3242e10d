"""Node handlers and the handler registry.

A handler turns a node plus its resolved inputs into the node's raw output:

    handler(node: VisualNode, inputs: Dict[str, Any]) -> Any

Input and preview kinds are handled here with pure, JSON-friendly functions.
Generator kinds (text/image/video/3D) and the script runner call external
back-ends; hosts register those with `register_handler`.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from .models import NodeType, VisualNode, node_type_str
from .payloads import to_3d, to_image, to_text, to_video

NodeHandler = Callable[[VisualNode, Dict[str, Any]], Any]


def _first_truthy(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def _first_not_none(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _first_filled(*values: Any) -> Any:
    """First non-blank string, else the first non-None value.

    Matches the readiness check for text-like keys, so a node that passed
    validation never publishes an empty value over a filled-in one.
    """
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return _first_not_none(*(v for v in values if not isinstance(v, str)))


# Inputs
def text_input(node: VisualNode, inputs: Dict[str, Any]) -> str:
    """Publish the node's own text (the preview area stores edits in `output`)."""
    return to_text(_first_filled(node.data.get("text"), node.data.get("output"), inputs.get("text")))


def image_input(node: VisualNode, inputs: Dict[str, Any]) -> Any:
    return to_image(_first_not_none(node.data.get("image"), inputs.get("image")))


def video_input(node: VisualNode, inputs: Dict[str, Any]) -> Optional[str]:
    return to_video(_first_not_none(node.data.get("video"), inputs.get("video")))


def model_3d_input(node: VisualNode, inputs: Dict[str, Any]) -> Optional[str]:
    """Publish a downloadable model link (`url`), falling back to `model`/`output`."""
    data = node.data
    return to_3d(_first_filled(data.get("url"), data.get("model"), data.get("output")))


# Previews
def text_preview(node: VisualNode, inputs: Dict[str, Any]) -> Optional[str]:
    data = node.data
    text = to_text(
        _first_truthy(
            inputs.get("text"),
            inputs.get("prompt"),
            inputs.get("content"),
            inputs.get("message"),
            data.get("output"),
            data.get("text"),
            data.get("prompt"),
        )
    )
    return text or None


def image_preview(node: VisualNode, inputs: Dict[str, Any]) -> Any:
    data = node.data
    return to_image(
        _first_truthy(inputs.get("image"), inputs.get("url"), inputs.get("src"), data.get("output"), data.get("image"))
    )


def video_preview(node: VisualNode, inputs: Dict[str, Any]) -> Optional[str]:
    data = node.data
    return to_video(
        _first_truthy(inputs.get("video"), inputs.get("url"), inputs.get("src"), data.get("output"), data.get("video"))
    )


def model_3d_preview(node: VisualNode, inputs: Dict[str, Any]) -> Optional[str]:
    data = node.data
    return to_3d(
        _first_truthy(
            inputs.get("model"),
            inputs.get("3d"),
            inputs.get("url"),
            inputs.get("src"),
            data.get("output"),
            data.get("model"),
        )
    )


BUILTIN_HANDLERS: Dict[str, NodeHandler] = {
    NodeType.TEXT_INPUT.value: text_input,
    NodeType.IMAGE_INPUT.value: image_input,
    NodeType.VIDEO_INPUT.value: video_input,
    NodeType.INPUT_3D.value: model_3d_input,
    NodeType.TEXT_PREVIEW.value: text_preview,
    NodeType.IMAGE_PREVIEW.value: image_preview,
    NodeType.VIDEO_PREVIEW.value: video_preview,
    NodeType.PREVIEW_3D.value: model_3d_preview,
}

# Host-registered handlers (generation back-ends, script runner, overrides).
_registry: Dict[str, NodeHandler] = {}


def register_handler(node_type: str) -> Callable[[NodeHandler], NodeHandler]:
    """Decorator that registers a handler for a node kind.

    Usage:
        @register_handler("imageGen")
        def generate_image(node, inputs):
            return my_client.generate(inputs.get("text") or node.data.get("prompt"))
    """

    def decorator(fn: NodeHandler) -> NodeHandler:
        _registry[node_type_str(node_type)] = fn
        return fn

    return decorator


def unregister_handler(node_type: str) -> None:
    _registry.pop(node_type_str(node_type), None)


def get_handler(node_type: str, overrides: Optional[Mapping[str, NodeHandler]] = None) -> Optional[NodeHandler]:
    """Resolve the handler for a node kind: overrides, then registered, then built-in."""
    key = node_type_str(node_type)
    for override_type, fn in (overrides or {}).items():
        if node_type_str(override_type) == key:
            return fn
    return _registry.get(key) or BUILTIN_HANDLERS.get(key)
