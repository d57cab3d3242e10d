"""Visual flow core: graph models, handle types, scheduling, input
resolution, payload normalization, readiness checks and the reference driver.
"""

from .executor import execute_node, execute_visual_flow, iter_execute_visual_flow, plan_visual_flow
from .handles import get_handle_type, is_compatible_handle_type
from .inputs import ResolvedInputs, resolve_inputs
from .models import HandleType, NodeType, VisualEdge, VisualFlow, VisualNode
from .payloads import extract_typed, normalize, to_3d, to_image, to_text, to_video
from .scheduler import CycleDetectedError, topological_order
from .validation import MissingRequiredInputError, validate_required

__all__ = [
    "CycleDetectedError",
    "HandleType",
    "MissingRequiredInputError",
    "NodeType",
    "ResolvedInputs",
    "VisualEdge",
    "VisualFlow",
    "VisualNode",
    "execute_node",
    "execute_visual_flow",
    "extract_typed",
    "get_handle_type",
    "is_compatible_handle_type",
    "iter_execute_visual_flow",
    "normalize",
    "plan_visual_flow",
    "resolve_inputs",
    "to_3d",
    "to_image",
    "to_text",
    "to_video",
    "topological_order",
    "validate_required",
]
