"""Reference execution driver for visual flows.

The driver ties the core together: it orders the flow, pre-flights every node
for required inputs, then runs nodes strictly one at a time in that order.
For each node it resolves upstream values, coerces them to the node's input
handle types, calls the node's handler (see `builtins`) and publishes the
result into the node's data record so downstream nodes can read it.

Generation itself is not done here; hosts plug in handlers for generator
kinds. A handler that raises fails only its own node: the run continues and
the failure is reported as a `node_error` event.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from .builtins import NodeHandler, get_handler
from .handles import get_handle_schema, get_handle_type, incompatible_edges
from .inputs import ResolvedInputs, resolve_inputs
from .models import (
    ExecutionEvent,
    FlowPlan,
    FlowRunResult,
    HandleType,
    MissingRequired,
    NodeExecutionResult,
    NodeType,
    VisualEdge,
    VisualFlow,
    VisualNode,
    node_type_str,
)
from .payloads import envelope_value, extract_typed, normalize, to_3d, to_envelope, to_text
from .scheduler import CycleDetectedError, execution_order
from .validation import MissingRequiredInputError, format_missing_required, validate_flow, validate_required

logger = logging.getLogger(__name__)

# Semantic alias written next to each output handle id so consumers can read
# `data["image"]` regardless of the handle's own id.
_OUTPUT_ALIASES: Dict[str, str] = {
    HandleType.TEXT.value: "text",
    HandleType.IMAGE.value: "image",
    HandleType.VIDEO.value: "video",
    HandleType.MODEL_3D.value: "model",
}


def build_output_map(node_type: Optional[str], output: Any) -> Dict[str, Any]:
    """Normalize a node's raw output once per declared output handle.

    Returns the data-record entries to publish: one per output handle id plus
    its semantic alias. 3D previews have no outputs but still publish the
    resolved model under `model` and `3d` for display.
    """
    kind = node_type_str(node_type)
    if kind == NodeType.PREVIEW_3D.value:
        model = to_3d(output)
        return {"model": model, "3d": model} if model is not None else {}

    schema = get_handle_schema(kind)
    if schema is None or not schema.outputs:
        return {}

    published: Dict[str, Any] = {}
    for handle in schema.outputs:
        normalized = normalize(output, handle.type)
        published[handle.id] = normalized
        alias = _OUTPUT_ALIASES.get(handle.type)
        if alias:
            published[alias] = normalized
    return published


def publish_output(node: VisualNode, output: Any, output_map: Mapping[str, Any]) -> None:
    node.data = {**node.data, "output": output, **output_map}


def _coerce_port(values: List[Any], handle_type: str) -> Any:
    if handle_type == HandleType.TEXT.value:
        joined = values[0] if len(values) == 1 else [to_text(v) for v in values]
        return envelope_value(to_envelope(joined, handle_type))
    if handle_type == HandleType.IMAGE.value:
        return envelope_value(to_envelope(values[0] if len(values) == 1 else values, handle_type))
    if handle_type in (HandleType.VIDEO.value, HandleType.MODEL_3D.value):
        # Single-reference types still keep one reference per edge.
        envelopes = [env for env in (to_envelope(v, handle_type) for v in values) if env is not None]
        if not envelopes:
            return None
        refs = [envelope_value(env) for env in envelopes]
        return refs[0] if len(refs) == 1 else refs
    return values[0] if len(values) == 1 else list(values)


def coerce_inputs(node: VisualNode, resolved: ResolvedInputs) -> Dict[str, Any]:
    """Coerce each resolved port to its declared handle type.

    Ports without type information pass through unchanged; ports that
    normalize to nothing are dropped.
    """
    inputs: Dict[str, Any] = {}
    for key in resolved:
        handle_type = get_handle_type(node.type, key, "input") or HandleType.ANY.value
        value = _coerce_port(resolved.get_all(key), handle_type)
        if value is not None:
            inputs[key] = value
    return inputs


def gather_inputs(node: VisualNode, nodes: List[VisualNode], edges: List[VisualEdge]) -> Dict[str, Any]:
    """Resolve and coerce the inputs a node's handler receives.

    When an upstream node has not published under the edge's source handle
    (legacy edges, skipped or pre-filled nodes), the best value of the target
    handle's type is extracted from the upstream data record instead.
    """

    def _fallback(source: VisualNode, edge: VisualEdge) -> Any:
        target_type = get_handle_type(node.type, edge.targetHandle, "input")
        if target_type is None or target_type == HandleType.ANY.value:
            return source.data.get("output")
        value = extract_typed(source.data, target_type)
        return value if value not in (None, "") else None

    resolved = resolve_inputs(node.id, nodes, edges, fallback=_fallback)
    return coerce_inputs(node, resolved)


def _node_label(node: VisualNode) -> str:
    label = node.data.get("label")
    return str(label) if label else (node_type_str(node) or node.id)


def _skipped_output(node: VisualNode, inputs: Mapping[str, Any]) -> Any:
    if node.data.get("output") is not None:
        return node.data["output"]
    for key in ("text", "image", "video", "model"):
        if inputs.get(key) is not None:
            return inputs[key]
    return None


def _run_node(
    node: VisualNode,
    flow: VisualFlow,
    *,
    handlers: Optional[Mapping[str, NodeHandler]],
    missing: Optional[List[MissingRequired]],
) -> NodeExecutionResult:
    kind = node_type_str(node)
    inputs = gather_inputs(node, flow.nodes, flow.edges)

    if node.data.get("skip"):
        output = _skipped_output(node, inputs)
        output_map = build_output_map(kind, output)
        publish_output(node, output, output_map)
        return NodeExecutionResult(nodeId=node.id, success=True, output=output, outputs=output_map, skipped=True)

    if missing:
        return NodeExecutionResult(
            nodeId=node.id,
            success=False,
            error=f"Node '{_node_label(node)}' is missing required inputs: {format_missing_required(missing)}",
        )

    handler = get_handler(kind, handlers)
    if handler is None:
        return NodeExecutionResult(nodeId=node.id, success=False, error=f"No handler registered for node type '{kind}'")

    try:
        output = handler(node, inputs)
    except Exception as e:
        logger.exception(f"Node {node.id} ({kind}) failed")
        return NodeExecutionResult(nodeId=node.id, success=False, error=str(e) or type(e).__name__)

    output_map = build_output_map(kind, output)
    publish_output(node, output, output_map)
    return NodeExecutionResult(nodeId=node.id, success=True, output=output, outputs=output_map)


def plan_visual_flow(flow: VisualFlow) -> FlowPlan:
    """Compute everything a host shows before running: order, gaps, bad edges."""
    try:
        order = [n.id for n in execution_order(flow)]
    except CycleDetectedError as e:
        return FlowPlan(error=str(e), incompatible_edges=incompatible_edges(flow))
    return FlowPlan(
        order=order,
        missing=validate_flow(flow.nodes, flow.edges),
        incompatible_edges=incompatible_edges(flow),
    )


def iter_execute_visual_flow(
    flow: VisualFlow,
    *,
    handlers: Optional[Mapping[str, NodeHandler]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    block_on_missing: bool = False,
) -> Iterator[ExecutionEvent]:
    """Run a flow node by node, yielding execution events as it goes.

    Raises (before any node runs):
        CycleDetectedError: the flow has no valid execution order.
        MissingRequiredInputError: `block_on_missing` is set and nodes are unready.
    """
    order = execution_order(flow)
    missing = validate_flow(order, flow.edges)
    if block_on_missing and missing:
        raise MissingRequiredInputError(missing)

    total = len(order)
    yield ExecutionEvent(type="flow_start", progress=(0, total))

    for index, node in enumerate(order, start=1):
        if should_stop is not None and should_stop():
            logger.info(f"Flow '{flow.id}' stopped before node {node.id}")
            yield ExecutionEvent(type="flow_stopped", progress=(index - 1, total))
            return

        yield ExecutionEvent(type="node_start", nodeId=node.id, progress=(index, total))
        result = _run_node(node, flow, handlers=handlers, missing=missing.get(node.id))
        if result.success:
            yield ExecutionEvent(
                type="node_complete", nodeId=node.id, result=result.model_dump(), progress=(index, total)
            )
        else:
            logger.warning(f"Node {node.id} failed: {result.error}")
            yield ExecutionEvent(
                type="node_error",
                nodeId=node.id,
                result=result.model_dump(),
                error=result.error,
                progress=(index, total),
            )

    logger.info(f"Flow '{flow.id}' completed ({total} nodes)")
    yield ExecutionEvent(type="flow_complete", progress=(total, total))


def execute_visual_flow(
    flow: VisualFlow,
    *,
    handlers: Optional[Mapping[str, NodeHandler]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    block_on_missing: bool = False,
    on_event: Optional[Callable[[ExecutionEvent], None]] = None,
) -> FlowRunResult:
    """Run a flow to completion and return a normalized result payload."""
    results: List[NodeExecutionResult] = []
    stopped = False
    try:
        for event in iter_execute_visual_flow(
            flow, handlers=handlers, should_stop=should_stop, block_on_missing=block_on_missing
        ):
            if on_event is not None:
                on_event(event)
            if event.type in ("node_complete", "node_error"):
                results.append(NodeExecutionResult.model_validate(event.result))
            elif event.type == "flow_stopped":
                stopped = True
    except CycleDetectedError as e:
        return FlowRunResult(success=False, error=str(e))
    except MissingRequiredInputError as e:
        return FlowRunResult(success=False, error=str(e), missing=e.missing)

    return FlowRunResult(
        success=not stopped and all(r.success for r in results),
        results=results,
        stopped=stopped,
    )


def execute_node(
    node: VisualNode,
    flow: VisualFlow,
    *,
    handlers: Optional[Mapping[str, NodeHandler]] = None,
) -> NodeExecutionResult:
    """Run a single node against the flow's current data records."""
    missing = None if node.data.get("skip") else validate_required(node, flow.edges)
    return _run_node(node, flow, handlers=handlers, missing=missing)
