"""Backend API routes."""

from .flows import router as flows_router
from .node_types import router as node_types_router
from .ws import router as ws_router

__all__ = ["flows_router", "node_types_router", "ws_router"]
