"""Intelligence Layer - Planners that turn instructions into action lists."""

from shadowpilot.layers.intelligence.planner_engine import PlannerEngine

__all__ = ["PlannerEngine"]
