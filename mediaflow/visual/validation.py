"""Pre-execution readiness checks for visual nodes.

Requirements are declared per node kind as data (`REQUIREMENTS`) and
evaluated uniformly: adding a node kind means adding a table entry.

A requirement is satisfied either by an incoming edge on its handle
(`connected_or_local` mode only) or by an adequate local value in the node's
data record. Validation only reports; it never mutates nodes or raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import MissingRequired, NodeType, VisualEdge, VisualNode, node_type_str

CONNECTED_OR_LOCAL = "connected_or_local"
LOCAL_ONLY = "local_only"

NON_EMPTY = "non_empty"  # a string with non-whitespace content
PRESENT = "present"  # any non-None value


@dataclass(frozen=True)
class Requirement:
    local_keys: Tuple[str, ...]
    label: str
    mode: str = CONNECTED_OR_LOCAL
    handle: Optional[str] = None
    check: str = NON_EMPTY

    @property
    def key(self) -> str:
        if self.local_keys:
            return self.local_keys[0]
        return self.handle or ""


_PROMPT = Requirement(handle="text", local_keys=("prompt",), label="Prompt")

REQUIREMENTS: Dict[str, Tuple[Requirement, ...]] = {
    NodeType.TEXT_GEN.value: (_PROMPT,),
    NodeType.IMAGE_GEN.value: (_PROMPT,),
    NodeType.VIDEO_GEN.value: (_PROMPT,),
    NodeType.GEN_3D.value: (_PROMPT,),
    NodeType.TEXT_INPUT.value: (Requirement(local_keys=("text", "output"), label="Text", mode=LOCAL_ONLY),),
    NodeType.IMAGE_INPUT.value: (
        Requirement(local_keys=("image",), label="Image", mode=LOCAL_ONLY, check=PRESENT),
    ),
    NodeType.VIDEO_INPUT.value: (
        Requirement(local_keys=("video",), label="Video", mode=LOCAL_ONLY, check=PRESENT),
    ),
    NodeType.INPUT_3D.value: (
        Requirement(local_keys=("url", "model", "output"), label="3D model URL", mode=LOCAL_ONLY),
    ),
    NodeType.TEXT_PREVIEW.value: (
        Requirement(handle="text", local_keys=("text", "output"), label="Upstream text input"),
    ),
    NodeType.IMAGE_PREVIEW.value: (
        Requirement(handle="image", local_keys=("image", "output", "url", "src"), label="Upstream image input"),
    ),
    NodeType.VIDEO_PREVIEW.value: (
        Requirement(handle="video", local_keys=("video", "output", "url", "src"), label="Upstream video input"),
    ),
    NodeType.PREVIEW_3D.value: (
        Requirement(handle="model", local_keys=("model", "3d", "output", "url", "src"), label="Upstream 3D input"),
    ),
    NodeType.SCRIPT_RUNNER.value: (
        Requirement(local_keys=("code",), label="Code", mode=LOCAL_ONLY),
        Requirement(local_keys=("language",), label="Language", mode=LOCAL_ONLY),
    ),
}


def _has_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _connected_handles(node_id: str, edges: Iterable[VisualEdge]) -> set[str]:
    return {e.targetHandle for e in edges if e.target == node_id and isinstance(e.targetHandle, str)}


def _is_satisfied(req: Requirement, data: Mapping[str, Any], connected: set[str]) -> bool:
    if req.mode == CONNECTED_OR_LOCAL and req.handle and req.handle in connected:
        return True
    if req.check == PRESENT:
        return any(data.get(k) is not None for k in req.local_keys)
    return any(_has_non_empty_string(data.get(k)) for k in req.local_keys)


def validate_required(node: VisualNode, edges: Sequence[VisualEdge]) -> List[MissingRequired]:
    """Return the required inputs `node` is missing (empty when ready)."""
    requirements = REQUIREMENTS.get(node_type_str(node), ())
    if not requirements:
        return []
    data = node.data if isinstance(node.data, Mapping) else {}
    connected = _connected_handles(node.id, edges)
    return [
        MissingRequired(key=req.key, label=req.label)
        for req in requirements
        if not _is_satisfied(req, data, connected)
    ]


def validate_flow(nodes: Sequence[VisualNode], edges: Sequence[VisualEdge]) -> Dict[str, List[MissingRequired]]:
    """Validate every node; returns {node_id: missing} for nodes with gaps.

    Nodes marked `data.skip` do not run and are not validated.
    """
    report: Dict[str, List[MissingRequired]] = {}
    for node in nodes:
        if node.data.get("skip"):
            continue
        missing = validate_required(node, edges)
        if missing:
            report[node.id] = missing
    return report


def format_missing_required(missing: Sequence[MissingRequired]) -> str:
    return ", ".join(m.label for m in missing)


class MissingRequiredInputError(ValueError):
    """Raised by drivers that refuse to start a run with unready nodes."""

    def __init__(self, missing: Dict[str, List[MissingRequired]]) -> None:
        self.missing = missing
        details = "; ".join(f"{node_id}: {format_missing_required(items)}" for node_id, items in missing.items())
        super().__init__(f"Missing required inputs ({details})")
