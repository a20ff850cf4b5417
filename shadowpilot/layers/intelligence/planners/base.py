from abc import ABC, abstractmethod
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from shadowpilot.core.plan import ActionStep
    from shadowpilot.layers.sense.serializer import SnapshotNode


class PlannerInterface(ABC):
    """Abstract base class for action planners."""

    @abstractmethod
    def plan(self, instruction: str, snapshot: List["SnapshotNode"]) -> List["ActionStep"]:
        """
        Produce an action list for the instruction.

        Args:
            instruction: Natural-language instruction, already redacted.
            snapshot: Current page snapshot.

        Returns:
            Validated steps ordered by sequence.
        """
        pass
