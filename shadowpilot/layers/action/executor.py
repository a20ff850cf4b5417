"""
Action Executor - runs an action list against the live page.

Steps run strictly one after another; each step's effect has settled
before the next starts. Navigation failures propagate unchanged, an
unresolvable fill target aborts the rest of the list.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, TYPE_CHECKING
import logging
import time

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.support.ui import WebDriverWait

from shadowpilot.core.errors import ElementNotResolvedError, UnsupportedActionError
from shadowpilot.core.plan import FillAction, NavigateAction
from shadowpilot.layers.action.locator import LocatorStrategy
from shadowpilot.layers.action.shadow_chain import ShadowChainResolver

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from shadowpilot.core.plan import ActionStep

logger = logging.getLogger(__name__)

READY_STATE_SCRIPT = "return document.readyState;"


@dataclass
class ActionResult:
    """Result of one executed step."""
    sequence: int
    action: str
    target: str
    duration_ms: float
    metadata: Optional[dict] = None

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "action": self.action,
            "target": self.target,
            "duration_ms": round(self.duration_ms, 1),
            "metadata": self.metadata or {},
        }


class ActionExecutor:
    """
    Execute planner steps one at a time.

    Example:
        >>> executor = ActionExecutor(driver)
        >>> results = executor.execute_plan(parse_plan(plan_json))
        >>> [r.action for r in results]
        ['goto', 'input']
    """

    def __init__(
        self,
        driver: "WebDriver",
        timeout: int = 30,
        resolver: Optional[ShadowChainResolver] = None,
        locator: Optional[LocatorStrategy] = None,
        recorder: Optional[Any] = None,
    ):
        """
        Initialize the action executor.

        Args:
            driver: Selenium WebDriver
            timeout: Seconds to wait for the document to finish loading after navigation
            resolver: Shadow chain resolver (one is created when omitted)
            locator: Locator strategy (one is created when omitted)
            recorder: Optional RunRecorder for logging
        """
        self.driver = driver
        self.timeout = timeout
        self.resolver = resolver or ShadowChainResolver(driver, recorder=recorder)
        self.locator = locator or LocatorStrategy()
        self.recorder = recorder

    def execute_plan(self, steps: List["ActionStep"]) -> List[ActionResult]:
        """Run every step in order. The first error stops the list."""
        results = []
        for step in steps:
            results.append(self.execute(step))
        return results

    def execute(self, step: "ActionStep") -> ActionResult:
        start_time = time.time()
        action = step.action

        if isinstance(action, NavigateAction):
            self.navigate(action.url)
            target = action.url
            metadata = None
        elif isinstance(action, FillAction):
            metadata = self.fill(step)
            target = action.target
        else:
            raise UnsupportedActionError(getattr(action, "kind", type(action).__name__), step.sequence)

        result = ActionResult(
            sequence=step.sequence,
            action=action.kind,
            target=target,
            duration_ms=(time.time() - start_time) * 1000,
            metadata=metadata,
        )
        if self.recorder:
            self.recorder.log_action_result(result)
        return result

    def navigate(self, url: str) -> None:
        """Load ``url`` and wait for the document to settle."""
        self.driver.get(url)
        self._wait_for_stability()
        logger.info(f"[ActionExecutor] Navigated to {url}")

    def fill(self, step: "ActionStep") -> dict:
        """Resolve the step's shadow chain, locate its target and type its value."""
        action = step.action
        context = self.resolver.resolve(step.prerequisite)

        element = self.locator.locate(context, action.target)
        if element is None:
            raise ElementNotResolvedError(action.target, step.sequence)

        element.clear()
        # One key at a time so per-keystroke listeners fire
        for char in action.value:
            element.send_keys(char)

        # The value is never logged, it may be a restored credential
        logger.info(f'[ActionExecutor] Filled "{action.target}" ({len(action.value)} chars)')
        return {"in_shadow_root": not context.is_document, "chars": len(action.value)}

    def _wait_for_stability(self) -> None:
        """Wait for ``document.readyState == "complete"``, best effort."""
        try:
            WebDriverWait(self.driver, self.timeout).until(
                lambda d: d.execute_script(READY_STATE_SCRIPT) == "complete"
            )
        except TimeoutException:
            logger.warning(f"[ActionExecutor] Page not complete after {self.timeout}s, continuing")
