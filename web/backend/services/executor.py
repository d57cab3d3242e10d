"""Flow execution service (web backend).

This module is intentionally thin: the portable implementation lives in
`mediaflow.visual.executor` so visual workflows can run from non-web hosts.
Generation back-ends are plugged in with `mediaflow.register_handler`.
"""

from __future__ import annotations

from mediaflow import FlowRunner
from mediaflow.visual.executor import plan_visual_flow  # noqa: F401
from mediaflow.visual.models import FlowRunResult, VisualFlow


def create_runner(visual_flow: VisualFlow, *, block_on_missing: bool = True) -> FlowRunner:
    """Create a FlowRunner over a private copy of a stored flow.

    Runs publish outputs into node data records; working on a copy keeps the
    saved flow unchanged between runs.
    """
    return FlowRunner(visual_flow.model_copy(deep=True), block_on_missing=block_on_missing)


def execute_flow(visual_flow: VisualFlow, *, block_on_missing: bool = True) -> FlowRunResult:
    """Execute a stored flow and return a normalized result payload."""
    return create_runner(visual_flow, block_on_missing=block_on_missing).run()
