"""
PlannerEngine - Intelligence Layer Router.

Selects the planner implementation for a run and delegates to it.
"""

from typing import Any, List, Optional
import logging

from .planners.base import PlannerInterface
from .planners.static_planner import StaticPlanner
from .planners.cloud_planner import CloudPlanner

logger = logging.getLogger(__name__)


class PlannerEngine:
    """
    Planner router.

    "static" replays a JSON plan (``plan_source`` is a path or payload);
    "cloud" asks OpenAI or Anthropic (``model_name`` optional).
    """

    def __init__(
        self,
        planner_type: str = "static",
        plan_source: Optional[Any] = None,
        model_name: Optional[str] = None,
    ):
        self.planner_type = planner_type.lower()
        self.planner: PlannerInterface = self._init_planner(plan_source, model_name)

    def _init_planner(self, plan_source: Optional[Any], model_name: Optional[str]) -> PlannerInterface:
        logger.info(f"[PlannerEngine] Initializing {self.planner_type} planner...")

        if self.planner_type == "static":
            if plan_source is None:
                raise ValueError("The static planner needs a plan file or payload")
            return StaticPlanner(plan_source)

        if self.planner_type == "cloud":
            return CloudPlanner(model=model_name)

        raise ValueError(f"Unknown planner type '{self.planner_type}'")

    def plan(self, instruction: str, snapshot: List[Any]):
        """Delegate planning to the active planner."""
        return self.planner.plan(instruction, snapshot)
