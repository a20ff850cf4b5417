"""Action Layer - Shadow chain resolution, target location and execution."""

from shadowpilot.layers.action.executor import ActionExecutor, ActionResult
from shadowpilot.layers.action.locator import LocatorStrategy
from shadowpilot.layers.action.shadow_chain import ShadowChainResolver, ShadowContext

__all__ = ["ActionExecutor", "ActionResult", "LocatorStrategy", "ShadowChainResolver", "ShadowContext"]
