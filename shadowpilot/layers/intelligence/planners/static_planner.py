import json
import logging
import os
from typing import Any, Dict, List, Union

from shadowpilot.core.plan import ActionStep, parse_plan
from .base import PlannerInterface

logger = logging.getLogger(__name__)


class StaticPlanner(PlannerInterface):
    """
    Replays a fixed action list, from a JSON file or an in-memory payload.

    Ignores the instruction and snapshot; useful for scripted runs and
    for exercising the executor without a model.
    """

    def __init__(self, source: Union[str, Dict[str, Any], List[Any]]):
        self.source = source

    def plan(self, instruction: str, snapshot: List[Any]) -> List[ActionStep]:
        payload = self.source
        if isinstance(payload, str) and os.path.isfile(payload):
            with open(payload, "r", encoding="utf-8") as f:
                payload = json.load(f)
            logger.info(f"[StaticPlanner] Loaded plan from {self.source}")

        steps = parse_plan(payload)
        logger.info(f"[StaticPlanner] {len(steps)} steps")
        return steps
