"""Web backend models.

The web backend re-exports the portable visual-flow models from
`mediaflow.visual.models` so other hosts (CLI, notebooks) can reuse the
same JSON schema without importing the backend package.
"""

from __future__ import annotations

from mediaflow.visual.models import (  # noqa: F401
    ExecutionEvent,
    FlowCreateRequest,
    FlowPlan,
    FlowRunRequest,
    FlowRunResult,
    FlowUpdateRequest,
    HandleType,
    MissingRequired,
    NodeExecutionResult,
    NodeType,
    Position,
    VisualEdge,
    VisualFlow,
    VisualNode,
)

__all__ = [
    "ExecutionEvent",
    "FlowCreateRequest",
    "FlowPlan",
    "FlowRunRequest",
    "FlowRunResult",
    "FlowUpdateRequest",
    "HandleType",
    "MissingRequired",
    "NodeExecutionResult",
    "NodeType",
    "Position",
    "VisualEdge",
    "VisualFlow",
    "VisualNode",
]
