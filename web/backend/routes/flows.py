"""Flow CRUD, planning and execution routes."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
import uuid

from fastapi import APIRouter, HTTPException

from mediaflow.workflow_io import export_workflow, import_workflow

from ..models import (
    FlowCreateRequest,
    FlowPlan,
    FlowRunRequest,
    FlowRunResult,
    FlowUpdateRequest,
    VisualFlow,
)
from ..services.executor import execute_flow, plan_visual_flow
from ..services.paths import resolve_flows_dir

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/flows", tags=["flows"])

# File-based persistence
FLOWS_DIR = resolve_flows_dir()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_flows_from_disk() -> Dict[str, VisualFlow]:
    """Load all flows from disk on startup."""
    flows: Dict[str, VisualFlow] = {}
    for path in FLOWS_DIR.glob("*.json"):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            flow = import_workflow(data)
            if not data.get("id"):
                flow.id = path.stem
            flows[flow.id] = flow
            logger.info(f"Loaded flow '{flow.name}' ({flow.id}) from {path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load flow from {path}: {e}")
    return flows


def _save_flow_to_disk(flow: VisualFlow) -> None:
    """Persist a single flow to disk."""
    path = FLOWS_DIR / f"{flow.id}.json"
    path.write_text(flow.model_dump_json(indent=2))
    logger.info(f"Saved flow '{flow.name}' ({flow.id}) to {path}")


def _delete_flow_from_disk(flow_id: str) -> None:
    """Remove a flow file from disk."""
    path = FLOWS_DIR / f"{flow_id}.json"
    if path.exists():
        path.unlink()
        logger.info(f"Deleted flow file {path}")


# Load existing flows from disk on module import
_flows: Dict[str, VisualFlow] = _load_flows_from_disk()


def _get_flow_or_404(flow_id: str) -> VisualFlow:
    if flow_id not in _flows:
        raise HTTPException(status_code=404, detail=f"Flow '{flow_id}' not found")
    return _flows[flow_id]


@router.get("", response_model=List[VisualFlow])
async def list_flows():
    """List all saved flows."""
    return list(_flows.values())


@router.post("", response_model=VisualFlow)
async def create_flow(request: FlowCreateRequest):
    """Create a new flow with nodes and edges."""
    now = _utc_now_iso()
    flow = VisualFlow(
        id=str(uuid.uuid4())[:8],
        name=request.name,
        description=request.description,
        nodes=request.nodes,
        edges=request.edges,
        created_at=now,
        updated_at=now,
    )
    _flows[flow.id] = flow
    _save_flow_to_disk(flow)
    return flow


@router.post("/import", response_model=VisualFlow)
async def import_flow(payload: Dict[str, Any]):
    """Store a workflow file (editor export format or a flow dump) as a new flow."""
    flow = import_workflow(payload)
    if flow.id in _flows:
        flow.id = str(uuid.uuid4())[:8]
    now = _utc_now_iso()
    flow.name = flow.name or f"Imported {flow.id}"
    flow.created_at = flow.created_at or now
    flow.updated_at = now
    _flows[flow.id] = flow
    _save_flow_to_disk(flow)
    return flow


@router.get("/{flow_id}/export")
async def export_flow(flow_id: str):
    """Flow in the editor's workflow export format."""
    return export_workflow(_get_flow_or_404(flow_id))


@router.get("/{flow_id}", response_model=VisualFlow)
async def get_flow(flow_id: str):
    """Get a specific flow by ID."""
    return _get_flow_or_404(flow_id)


@router.put("/{flow_id}", response_model=VisualFlow)
async def update_flow(flow_id: str, request: FlowUpdateRequest):
    """Update an existing flow."""
    flow = _get_flow_or_404(flow_id)

    if request.name is not None:
        flow.name = request.name
    if request.description is not None:
        flow.description = request.description
    if request.nodes is not None:
        flow.nodes = request.nodes
    if request.edges is not None:
        flow.edges = request.edges

    flow.updated_at = _utc_now_iso()
    _flows[flow_id] = flow
    _save_flow_to_disk(flow)
    return flow


@router.delete("/{flow_id}")
async def delete_flow(flow_id: str):
    """Delete a flow."""
    _get_flow_or_404(flow_id)
    del _flows[flow_id]
    _delete_flow_from_disk(flow_id)
    return {"status": "deleted", "id": flow_id}


@router.post("/{flow_id}/plan", response_model=FlowPlan)
async def plan_flow(flow_id: str):
    """Execution order, missing required inputs and incompatible edges."""
    return plan_visual_flow(_get_flow_or_404(flow_id))


@router.post("/{flow_id}/validate")
async def validate_flow(flow_id: str):
    """Validate a flow without executing it."""
    plan = plan_visual_flow(_get_flow_or_404(flow_id))
    errors: List[str] = []
    if plan.error:
        errors.append(plan.error)
    for node_id, missing in plan.missing.items():
        labels = ", ".join(m.label for m in missing)
        errors.append(f"Node '{node_id}' is missing required inputs: {labels}")
    errors.extend(plan.incompatible_edges)
    return {"valid": len(errors) == 0, "errors": errors}


@router.post("/{flow_id}/run", response_model=FlowRunResult)
async def run_flow(flow_id: str, request: FlowRunRequest):
    """Execute a flow and return per-node results."""
    visual_flow = _get_flow_or_404(flow_id)
    return execute_flow(visual_flow, block_on_missing=request.block_on_missing)
