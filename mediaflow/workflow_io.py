"""Workflow file import/export.

Two JSON shapes are accepted:
- the editor's export format:
  `{"nodes": [{id, type, label, inputs, outputs, params, position, data}],
    "edges": [...], "metadata": {version, created, modified}}`
- a plain `VisualFlow` dump (as stored by the web backend).

Exports always use the editor format so files round-trip with the desktop app.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from .visual.models import Position, VisualEdge, VisualFlow, VisualNode, node_type_str

WORKFLOW_FORMAT_VERSION = "1.0.0"


class WorkflowFormatError(ValueError):
    """Raised when a workflow file cannot be parsed."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def export_workflow(flow: VisualFlow) -> Dict[str, Any]:
    """Convert a VisualFlow to the editor's workflow export format."""
    nodes: List[Dict[str, Any]] = []
    for node in flow.nodes:
        nodes.append(
            {
                "id": node.id,
                "type": node_type_str(node) or "default",
                "label": str(node.data.get("label") or ""),
                "inputs": [],
                "outputs": [],
                "params": [],
                "position": node.position.model_dump(),
                "data": dict(node.data),
            }
        )
    edges = [
        {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "sourceHandle": edge.sourceHandle or "",
            "targetHandle": edge.targetHandle or "",
        }
        for edge in flow.edges
    ]
    now = _now_iso()
    return {
        "nodes": nodes,
        "edges": edges,
        "metadata": {
            "version": WORKFLOW_FORMAT_VERSION,
            "created": flow.created_at or now,
            "modified": now,
        },
    }


def _import_node(raw: Dict[str, Any]) -> VisualNode:
    data = dict(raw.get("data") or {})
    label = raw.get("label")
    if label and "label" not in data:
        data["label"] = label
    return VisualNode(
        id=str(raw["id"]),
        type=str(raw.get("type") or ""),
        position=Position(**(raw.get("position") or {})),
        data=data,
    )


def _import_edge(raw: Dict[str, Any]) -> VisualEdge:
    payload = dict(raw)
    # Exports write "" for a missing handle.
    for key in ("sourceHandle", "targetHandle"):
        if payload.get(key) == "":
            payload[key] = None
    return VisualEdge.model_validate(payload)


def import_workflow(payload: Dict[str, Any]) -> VisualFlow:
    """Build a VisualFlow from either supported JSON shape.

    Raises:
        WorkflowFormatError: if the payload is not a workflow.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("nodes"), list):
        raise WorkflowFormatError("Workflow must be a JSON object with a 'nodes' list")
    try:
        if "metadata" not in payload and "name" in payload:
            return VisualFlow.model_validate(payload)
        metadata = payload.get("metadata") if isinstance(payload.get("metadata"), dict) else {}
        flow = VisualFlow(
            name=str(payload.get("name") or ""),
            nodes=[_import_node(n) for n in payload["nodes"]],
            edges=[_import_edge(e) for e in payload.get("edges") or []],
            created_at=metadata.get("created"),
            updated_at=metadata.get("modified"),
        )
        if payload.get("id"):
            flow.id = str(payload["id"])
        return flow
    except (AttributeError, KeyError, TypeError, ValidationError) as e:
        raise WorkflowFormatError(f"Invalid workflow: {e}") from e


def load_workflow(path: Union[str, Path]) -> VisualFlow:
    p = Path(path).expanduser()
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise WorkflowFormatError(f"{p}: not UTF-8 text ({e})") from e
    except json.JSONDecodeError as e:
        raise WorkflowFormatError(f"{p}: not valid JSON ({e})") from e
    flow = import_workflow(payload)
    if not flow.name:
        flow.name = p.stem
    return flow


def save_workflow(flow: VisualFlow, path: Union[str, Path]) -> Path:
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(export_workflow(flow), indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    return p
