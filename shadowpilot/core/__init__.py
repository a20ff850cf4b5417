"""Core module - Runner, configuration, action plans and driver management."""

from shadowpilot.core.orchestrator import ShadowpilotRunner
from shadowpilot.core.driver_factory import create_driver, driver_session

__all__ = ["ShadowpilotRunner", "create_driver", "driver_session"]
