"""Backend services."""

from .executor import create_runner, execute_flow, plan_visual_flow

__all__ = ["create_runner", "execute_flow", "plan_visual_flow"]
