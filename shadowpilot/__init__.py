"""
Shadowpilot - planner-driven browser automation through frames and shadow DOM.

Snapshots every actionable element of a live page, including nested frames
and shadow roots, and executes planner action lists against it.
"""

__version__ = "0.1.0"

from shadowpilot.core.orchestrator import ShadowpilotRunner, RunResult

__all__ = [
    "ShadowpilotRunner",
    "RunResult",
    "__version__",
]
