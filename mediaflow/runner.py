"""FlowRunner - plans and executes visual flows."""

from __future__ import annotations

import threading
from typing import Iterator, List, Mapping, Optional

from .visual.builtins import NodeHandler
from .visual.executor import execute_visual_flow, iter_execute_visual_flow, plan_visual_flow
from .visual.models import ExecutionEvent, FlowPlan, FlowRunResult, NodeExecutionResult, VisualFlow, VisualNode
from .visual.scheduler import execution_order
from .visual.validation import validate_flow


class FlowRunner:
    """Executes a VisualFlow with the reference sequential driver.

    FlowRunner provides a high-level interface for hosts. It handles:
    - Computing the execution order and pre-flight checks
    - Running nodes in order with the host's generation handlers
    - Cooperative stopping between nodes

    Example:
        >>> runner = FlowRunner(flow, handlers={"imageGen": generate_image})
        >>> result = runner.run()
        >>> result.success
        True
    """

    def __init__(
        self,
        flow: VisualFlow,
        handlers: Optional[Mapping[str, NodeHandler]] = None,
        *,
        block_on_missing: bool = True,
    ):
        """Initialize a FlowRunner.

        Args:
            flow: The VisualFlow to run. Node data records are updated in place
                  with published outputs.
            handlers: Per node-kind handlers overriding the registered ones.
            block_on_missing: Refuse to start when any node lacks required inputs.
        """
        self.flow = flow
        self.handlers = dict(handlers or {})
        self.block_on_missing = block_on_missing
        self._stop = threading.Event()
        self._last_result: Optional[FlowRunResult] = None

    def order(self) -> List[VisualNode]:
        """Nodes in execution order (raises CycleDetectedError)."""
        return execution_order(self.flow)

    def plan(self) -> FlowPlan:
        return plan_visual_flow(self.flow)

    def validate(self):
        """Return {node_id: missing} for nodes that are not ready."""
        return validate_flow(self.flow.nodes, self.flow.edges)

    def stop(self) -> None:
        """Ask a running flow to stop before its next node."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def iter_run(self) -> Iterator[ExecutionEvent]:
        """Run the flow, yielding execution events."""
        self._stop.clear()
        return iter_execute_visual_flow(
            self.flow,
            handlers=self.handlers,
            should_stop=self._stop.is_set,
            block_on_missing=self.block_on_missing,
        )

    def run(self) -> FlowRunResult:
        """Run the flow to completion (or until stopped).

        Returns:
            The FlowRunResult. Cycles and blocked validation are reported with
            `success=False` and an error instead of raising.
        """
        self._stop.clear()
        self._last_result = execute_visual_flow(
            self.flow,
            handlers=self.handlers,
            should_stop=self._stop.is_set,
            block_on_missing=self.block_on_missing,
        )
        return self._last_result

    @property
    def results(self) -> List[NodeExecutionResult]:
        """Per-node results of the last `run()`."""
        return list(self._last_result.results) if self._last_result else []
