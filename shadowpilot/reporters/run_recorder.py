"""
Run Recorder - keeps a record of what a run saw and did.

Captures snapshots, the executed plan, action results and errors, and
writes them to a JSON file for debugging. The record is never read back.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime
import json
import os

if TYPE_CHECKING:
    from shadowpilot.core.plan import ActionStep
    from shadowpilot.layers.action.executor import ActionResult
    from shadowpilot.layers.sense.serializer import SnapshotNode


MASKED_VALUE = "********"


def _mask_passwords(node: Dict[str, Any]) -> Dict[str, Any]:
    """Keep typed passwords out of the record on disk."""
    if node.get("type") == "password" and node.get("value"):
        node = dict(node, value=MASKED_VALUE)
    if "shadowChildren" in node:
        node = dict(node, shadowChildren=[_mask_passwords(c) for c in node["shadowChildren"]])
    return node


@dataclass
class LogEntry:
    """A single entry in the run record."""
    timestamp: datetime
    step: int
    event_type: str  # 'navigation', 'snapshot', 'plan', 'action', 'warning', 'error'
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "step": self.step,
            "event_type": self.event_type,
            "message": self.message,
            "data": self.data,
        }


class RunRecorder:
    """
    Records one shadowpilot run.

    Example:
        >>> recorder = RunRecorder()
        >>> recorder.log_snapshot("before", snapshot)
        >>> path = recorder.save()
    """

    def __init__(self, output_dir: str = "./shadowpilot_reports", run_name: Optional[str] = None):
        """
        Args:
            output_dir: Parent directory of all run records
            run_name: Sub-directory for this run, a timestamp when omitted
        """
        started = datetime.now()
        self.output_dir = output_dir
        self.run_name = run_name or started.strftime("run_%Y%m%d_%H%M%S")
        self.run_dir = os.path.join(output_dir, self.run_name)
        self.entries: List[LogEntry] = []
        self.metadata: Dict[str, Any] = {"run_name": self.run_name, "started": started.isoformat()}

    def _add(self, event_type: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.entries.append(LogEntry(
            timestamp=datetime.now(),
            step=len(self.entries),
            event_type=event_type,
            message=message,
            data=data or {},
        ))

    def log_navigation(self, url: str) -> None:
        self._add("navigation", f"Navigated to {url}", {"url": url})
        self.metadata["url"] = url

    def log_snapshot(self, label: str, snapshot: List["SnapshotNode"]) -> None:
        """Log a full snapshot under ``label`` (e.g. 'before', 'after')."""
        self._add(
            "snapshot",
            f"Snapshot '{label}': {len(snapshot)} top-level nodes",
            {"label": label, "nodes": [_mask_passwords(node.to_dict()) for node in snapshot]},
        )

    def log_plan(self, steps: List["ActionStep"]) -> None:
        """Log the plan as received from the planner (still redacted)."""
        self._add(
            "plan",
            f"Plan with {len(steps)} steps",
            {"steps": [step.to_dict() for step in steps]},
        )

    def log_action_result(self, result: "ActionResult") -> None:
        self._add(
            "action",
            f"Step {result.sequence}: {result.action} on {result.target[:40]}",
            result.to_dict(),
        )

    def log_warning(self, message: str) -> None:
        self._add("warning", message)

    def log_error(self, message: str, exception: Optional[Exception] = None) -> None:
        self._add(
            "error",
            message,
            {
                "exception": str(exception) if exception else None,
                "type": exception.__class__.__name__ if exception else None,
            },
        )

    def save(self) -> str:
        """
        Write the record to ``<output_dir>/<run_name>/run_record.json``.

        Returns:
            Path to the written file
        """
        counts = Counter(e.event_type for e in self.entries)
        self.metadata.update(
            finished=datetime.now().isoformat(),
            actions=counts["action"],
            errors=counts["error"],
        )
        record = {"metadata": self.metadata, "entries": [e.to_dict() for e in self.entries]}

        os.makedirs(self.run_dir, exist_ok=True)
        path = os.path.join(self.run_dir, "run_record.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
        return path
