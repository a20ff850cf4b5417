"""
Runtime configuration for shadowpilot.

Everything that changes what gets snapshotted or how long the browser is
waited on lives here so the CLI, the runner and tests share one source.
"""

from dataclasses import dataclass
from typing import Optional

# Union of semantic control tags, explicit ARIA roles and editable regions.
# Decides both what appears in a snapshot and what shadow descent can reach.
DEFAULT_INTERACTIVE_SELECTOR = (
    "button, a, input, select, textarea, [role], [contenteditable='true']"
)

# Hardening against pathological shadow nesting. Well-formed pages never get close.
DEFAULT_MAX_SHADOW_DEPTH = 32

PLANNER_TYPES = ("static", "cloud")


@dataclass
class ShadowpilotConfig:
    """Configuration for a shadowpilot run."""
    url: str
    instruction: str = ""
    headless: bool = False
    timeout: int = 30  # Seconds to wait for document readiness after navigation
    page_load_timeout: int = 60  # Driver-level navigation timeout
    interactive_selector: str = DEFAULT_INTERACTIVE_SELECTOR
    max_shadow_depth: int = DEFAULT_MAX_SHADOW_DEPTH
    report_dir: str = "./shadowpilot_reports"
    planner_type: str = "static"  # static, cloud
    model_name: Optional[str] = None
    plan_path: Optional[str] = None
    keep_open: float = 0.0  # Seconds to keep the browser open after the run

    def __post_init__(self) -> None:
        if self.planner_type not in PLANNER_TYPES:
            raise ValueError(
                f"Unknown planner type '{self.planner_type}'. Expected one of {', '.join(PLANNER_TYPES)}"
            )
        if self.max_shadow_depth < 0:
            raise ValueError("max_shadow_depth must be >= 0")
