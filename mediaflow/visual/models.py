"""Pydantic models for the MediaFlow visual workflow JSON format.

These models are intentionally kept in the `mediaflow` package so workflows
authored in the visual editor can be loaded, planned and executed from any
host (CLI, servers, notebooks), not only the web backend.
"""

from __future__ import annotations

from enum import Enum
import uuid
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class HandleType(str, Enum):
    """Semantic types carried by node handles."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    MODEL_3D = "3d"
    ANY = "any"  # Wildcard, compatible with every other type


class NodeType(str, Enum):
    """Node kinds available in the visual editor.

    Values are the tags stored in workflow JSON files.
    """

    # Generators
    TEXT_GEN = "textGen"
    IMAGE_GEN = "imageGen"
    VIDEO_GEN = "videoGen"
    GEN_3D = "3dGen"
    # Inputs
    TEXT_INPUT = "textInput"
    IMAGE_INPUT = "imageInput"
    VIDEO_INPUT = "videoInput"
    INPUT_3D = "3dInput"
    # Previews
    TEXT_PREVIEW = "textPreview"
    IMAGE_PREVIEW = "imagePreview"
    VIDEO_PREVIEW = "videoPreview"
    PREVIEW_3D = "3dPreview"
    # Generic
    SCRIPT_RUNNER = "scriptRunner"


GENERATOR_TYPES = frozenset(
    t.value for t in (NodeType.TEXT_GEN, NodeType.IMAGE_GEN, NodeType.VIDEO_GEN, NodeType.GEN_3D)
)
INPUT_TYPES = frozenset(
    t.value for t in (NodeType.TEXT_INPUT, NodeType.IMAGE_INPUT, NodeType.VIDEO_INPUT, NodeType.INPUT_3D)
)
PREVIEW_TYPES = frozenset(
    t.value
    for t in (NodeType.TEXT_PREVIEW, NodeType.IMAGE_PREVIEW, NodeType.VIDEO_PREVIEW, NodeType.PREVIEW_3D)
)


def node_type_str(node: Any) -> str:
    """Return a node's kind tag as a plain string (enum members included)."""
    t = getattr(node, "type", node)
    return t.value if hasattr(t, "value") else str(t or "")


class HandleDef(BaseModel):
    """A typed input or output slot on a node kind."""

    id: str
    label: str
    type: str


class NodeHandleSchema(BaseModel):
    """Declared inputs and outputs of one node kind."""

    inputs: List[HandleDef] = Field(default_factory=list)
    outputs: List[HandleDef] = Field(default_factory=list)


class Position(BaseModel):
    """2D position on canvas."""

    x: float = 0.0
    y: float = 0.0


class VisualNode(BaseModel):
    """A node in the visual flow editor.

    `data` is the node's mutable record: user configuration (e.g. `prompt`)
    and, after execution, its published output (`output` plus one key per
    output handle).
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    type: str
    position: Position = Field(default_factory=Position)
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value


class VisualEdge(BaseModel):
    """A directed, port-to-port connection between two nodes."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    source: str
    sourceHandle: Optional[str] = None  # Output handle id on source node
    target: str
    targetHandle: Optional[str] = None  # Input handle id on target node


class VisualFlow(BaseModel):
    """A complete visual flow definition."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    name: str = ""
    description: str = ""
    nodes: List[VisualNode] = Field(default_factory=list)
    edges: List[VisualEdge] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def get_node(self, node_id: str) -> Optional[VisualNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


class MissingRequired(BaseModel):
    """A required input a node has neither wired nor filled in locally."""

    key: str
    label: str


class FlowCreateRequest(BaseModel):
    """Request to create a new flow."""

    name: str
    description: str = ""
    nodes: List[VisualNode] = Field(default_factory=list)
    edges: List[VisualEdge] = Field(default_factory=list)


class FlowUpdateRequest(BaseModel):
    """Request to update an existing flow."""

    name: Optional[str] = None
    description: Optional[str] = None
    nodes: Optional[List[VisualNode]] = None
    edges: Optional[List[VisualEdge]] = None


class FlowRunRequest(BaseModel):
    """Request to execute a flow."""

    block_on_missing: bool = True


class NodeExecutionResult(BaseModel):
    """Outcome of running (or skipping) a single node."""

    nodeId: str
    success: bool
    output: Optional[Any] = None
    outputs: Dict[str, Any] = Field(default_factory=dict)
    skipped: bool = False
    error: Optional[str] = None


class FlowRunResult(BaseModel):
    """Result of a flow execution."""

    success: bool
    results: List[NodeExecutionResult] = Field(default_factory=list)
    stopped: bool = False
    error: Optional[str] = None
    missing: Dict[str, List[MissingRequired]] = Field(default_factory=dict)


class FlowPlan(BaseModel):
    """Pre-execution view of a flow: order, readiness and type problems."""

    order: List[str] = Field(default_factory=list)
    missing: Dict[str, List[MissingRequired]] = Field(default_factory=dict)
    incompatible_edges: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.error is None and not self.missing and not self.incompatible_edges


class ExecutionEvent(BaseModel):
    """Real-time execution event (WebSocket / progress callbacks)."""

    type: str  # "flow_start", "node_start", "node_complete", "node_error", "flow_complete", ...
    nodeId: Optional[str] = None
    result: Optional[Any] = None
    error: Optional[str] = None
    progress: Optional[Tuple[int, int]] = None
