"""MediaFlow - dataflow execution core for media-generation node graphs."""

__version__ = "0.1.0"

from .runner import FlowRunner
from .visual.builtins import register_handler
from .visual.models import VisualEdge, VisualFlow, VisualNode

__all__ = ["FlowRunner", "VisualEdge", "VisualFlow", "VisualNode", "register_handler", "__version__"]
