"""Execution ordering for visual flows (Kahn's algorithm).

Ordering is deterministic: initial sources keep the order of the node list,
and nodes that become ready later are queued in edge order.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Sequence

from .models import VisualEdge, VisualFlow, VisualNode


class CycleDetectedError(ValueError):
    """Raised when a flow's edges form at least one cycle."""

    def __init__(self, message: str = "Circular dependency detected in workflow graph") -> None:
        super().__init__(message)


def topological_order(nodes: Sequence[VisualNode], edges: Sequence[VisualEdge]) -> List[VisualNode]:
    """Return `nodes` in an order where every edge's source precedes its target.

    Edges that reference unknown nodes are ignored.

    Raises:
        CycleDetectedError: if no such order exists.
    """
    in_degree: Dict[str, int] = {}
    successors: Dict[str, List[str]] = {}
    by_id: Dict[str, VisualNode] = {}
    for node in nodes:
        in_degree[node.id] = 0
        successors[node.id] = []
        by_id[node.id] = node

    for edge in edges:
        if edge.source not in by_id or edge.target not in by_id:
            continue
        in_degree[edge.target] += 1
        successors[edge.source].append(edge.target)

    queue: Deque[str] = deque(node.id for node in nodes if in_degree[node.id] == 0)
    ordered: List[VisualNode] = []
    while queue:
        node_id = queue.popleft()
        ordered.append(by_id[node_id])
        for nxt in successors[node_id]:
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                queue.append(nxt)

    if len(ordered) < len(nodes):
        raise CycleDetectedError()
    return ordered


def execution_order(flow: VisualFlow) -> List[VisualNode]:
    """Convenience wrapper over `topological_order` for a whole flow."""
    return topological_order(flow.nodes, flow.edges)
