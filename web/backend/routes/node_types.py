"""Node kind catalogue (handle schemas) for the editor palette."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter

from mediaflow.visual.handles import NODE_HANDLE_SCHEMAS, is_compatible_handle_type

from ..models import HandleType

router = APIRouter(tags=["node-types"])


@router.get("/node-types")
async def list_node_types() -> Dict[str, Dict]:
    """Declared inputs/outputs per node kind."""
    return {kind: schema.model_dump() for kind, schema in NODE_HANDLE_SCHEMAS.items()}


@router.get("/node-types/compatibility")
async def compatibility_matrix() -> Dict[str, Dict[str, bool]]:
    """Which output type may feed which input type."""
    types = [t.value for t in HandleType]
    return {s: {t: is_compatible_handle_type(s, t) for t in types} for s in types}
