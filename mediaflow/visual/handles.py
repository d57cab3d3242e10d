"""Handle (port) type registry for visual node kinds.

Each node kind declares named input and output handles with a semantic type.
Connection-time compatibility is decided here and only here; payload coercion
between types happens at execution time (see `payloads`).
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import HandleDef, HandleType, NodeHandleSchema, NodeType, VisualEdge, VisualFlow, node_type_str


def _h(handle_id: str, label: str, handle_type: HandleType) -> HandleDef:
    return HandleDef(id=handle_id, label=label, type=handle_type.value)


def _generator(output: HandleDef) -> NodeHandleSchema:
    return NodeHandleSchema(
        inputs=[_h("text", "Text", HandleType.TEXT), _h("image", "Image", HandleType.IMAGE)],
        outputs=[output],
    )


NODE_HANDLE_SCHEMAS: Dict[str, NodeHandleSchema] = {
    NodeType.TEXT_GEN.value: _generator(_h("text", "Text", HandleType.TEXT)),
    NodeType.IMAGE_GEN.value: _generator(_h("image", "Image", HandleType.IMAGE)),
    NodeType.VIDEO_GEN.value: _generator(_h("video", "Video", HandleType.VIDEO)),
    NodeType.GEN_3D.value: _generator(_h("model", "3D", HandleType.MODEL_3D)),
    NodeType.SCRIPT_RUNNER.value: NodeHandleSchema(
        inputs=[_h("input1", "Input 1", HandleType.ANY), _h("input2", "Input 2", HandleType.ANY)],
        outputs=[_h("output", "Output", HandleType.ANY)],
    ),
    NodeType.IMAGE_INPUT.value: NodeHandleSchema(outputs=[_h("image", "Image", HandleType.IMAGE)]),
    NodeType.TEXT_INPUT.value: NodeHandleSchema(outputs=[_h("text", "Text", HandleType.TEXT)]),
    NodeType.VIDEO_INPUT.value: NodeHandleSchema(outputs=[_h("video", "Video", HandleType.VIDEO)]),
    NodeType.INPUT_3D.value: NodeHandleSchema(outputs=[_h("model", "3D", HandleType.MODEL_3D)]),
    NodeType.TEXT_PREVIEW.value: NodeHandleSchema(inputs=[_h("text", "Text", HandleType.TEXT)]),
    NodeType.IMAGE_PREVIEW.value: NodeHandleSchema(inputs=[_h("image", "Image", HandleType.IMAGE)]),
    NodeType.VIDEO_PREVIEW.value: NodeHandleSchema(inputs=[_h("video", "Video", HandleType.VIDEO)]),
    NodeType.PREVIEW_3D.value: NodeHandleSchema(inputs=[_h("model", "3D", HandleType.MODEL_3D)]),
}

_KNOWN_TYPES = frozenset(t.value for t in HandleType)


def normalize_handle_type(type_name: Optional[str]) -> Optional[str]:
    """Map a declared type name to a semantic type (`"string"` is legacy text)."""
    if not type_name:
        return None
    t = type_name.value if isinstance(type_name, HandleType) else str(type_name)
    if t == "string":
        return HandleType.TEXT.value
    return t if t in _KNOWN_TYPES else None


def get_handle_schema(node_type: Optional[str]) -> Optional[NodeHandleSchema]:
    """Return the declared handles of a node kind (None for unknown kinds)."""
    if not node_type:
        return None
    return NODE_HANDLE_SCHEMAS.get(node_type_str(node_type))


def get_handle_def(node_type: Optional[str], handle_id: Optional[str], direction: str) -> Optional[HandleDef]:
    schema = get_handle_schema(node_type)
    if schema is None or not handle_id:
        return None
    handles: List[HandleDef] = schema.inputs if direction == "input" else schema.outputs
    for handle in handles:
        if handle.id == handle_id:
            return handle
    return None


def get_handle_type(node_type: Optional[str], handle_id: Optional[str], direction: str) -> Optional[str]:
    """Semantic type of a node kind's handle, or None when it cannot be resolved.

    Args:
        node_type: Node kind tag (e.g. ``"imageGen"``).
        handle_id: Handle id on that kind.
        direction: ``"input"`` or ``"output"``.
    """
    handle = get_handle_def(node_type, handle_id, direction)
    if handle is None:
        return None
    return normalize_handle_type(handle.type)


def is_compatible_handle_type(source: Optional[str], target: Optional[str]) -> bool:
    """Return True if an output of type `source` may feed an input of type `target`."""
    if not source or not target:
        return False
    if source == HandleType.ANY.value or target == HandleType.ANY.value:
        return True
    return source == target


def check_edge(flow: VisualFlow, edge: VisualEdge) -> Optional[str]:
    """Describe why `edge` is not a valid typed connection (None when it is)."""
    source = flow.get_node(edge.source)
    target = flow.get_node(edge.target)
    if source is None or target is None:
        missing = edge.source if source is None else edge.target
        return f"Edge '{edge.id}' references unknown node '{missing}'"
    source_type = get_handle_type(source.type, edge.sourceHandle, "output")
    target_type = get_handle_type(target.type, edge.targetHandle, "input")
    if is_compatible_handle_type(source_type, target_type):
        return None
    return (
        f"Edge '{edge.id}' connects {source.id}.{edge.sourceHandle} ({source_type or 'unknown'}) "
        f"to {target.id}.{edge.targetHandle} ({target_type or 'unknown'})"
    )


def incompatible_edges(flow: VisualFlow) -> List[str]:
    """Return a human-friendly message per edge that fails the type check."""
    errors: List[str] = []
    for edge in flow.edges:
        problem = check_edge(flow, edge)
        if problem:
            errors.append(problem)
    return errors
