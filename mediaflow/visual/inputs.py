"""Per-node input aggregation over incoming edges."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from .models import VisualEdge, VisualNode

DEFAULT_INPUT_KEY = "default"


class ResolvedInputs(Mapping[str, Any]):
    """Values gathered for a node's input handles.

    Every handle is stored as a non-empty list in edge order. Item access
    unwraps a single value so callers expecting a scalar get one; ports fed
    by several edges read as a list. Use `get_all()` to always get the list.
    """

    def __init__(self, values: Optional[Dict[str, List[Any]]] = None) -> None:
        self._values: Dict[str, List[Any]] = {}
        for key, items in (values or {}).items():
            if items:
                self._values[key] = list(items)

    def add(self, key: str, value: Any) -> None:
        self._values.setdefault(key, []).append(value)

    def get_all(self, key: str) -> List[Any]:
        return list(self._values.get(key, []))

    def first(self, key: str, default: Any = None) -> Any:
        items = self._values.get(key)
        return items[0] if items else default

    def __getitem__(self, key: str) -> Any:
        items = self._values[key]
        return items[0] if len(items) == 1 else list(items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResolvedInputs({dict(self)!r})"


def incoming_edges(node_id: str, edges: Sequence[VisualEdge]) -> List[VisualEdge]:
    """Edges targeting `node_id`, in collection order."""
    return [e for e in edges if e.target == node_id]


def resolve_inputs(
    node_id: str,
    nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    *,
    fallback: Optional[Callable[[VisualNode, VisualEdge], Any]] = None,
) -> ResolvedInputs:
    """Collect upstream values for `node_id`.

    Each incoming edge reads the source node's data record at the edge's
    `sourceHandle` (output handles publish under their own id). Edges whose
    source node, handle or value is missing contribute nothing, unless a
    `fallback(source_node, edge)` is given and returns a non-None value.
    """
    by_id: Dict[str, VisualNode] = {n.id: n for n in nodes}
    inputs = ResolvedInputs()
    for edge in incoming_edges(node_id, edges):
        source = by_id.get(edge.source)
        if source is None:
            continue
        value = source.data.get(edge.sourceHandle) if edge.sourceHandle is not None else None
        if value is None and fallback is not None:
            value = fallback(source, edge)
        if value is None:
            continue
        inputs.add(edge.targetHandle or DEFAULT_INPUT_KEY, value)
    return inputs
