"""
Shadowpilot Runner - The Master Controller.

Drives one run end to end: navigate, snapshot, plan, restore redacted
values, execute, snapshot again. Any error from planning or execution is
reported and recorded; the run always ends cleanly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
import time

from shadowpilot.core.config import (
    DEFAULT_INTERACTIVE_SELECTOR,
    DEFAULT_MAX_SHADOW_DEPTH,
    ShadowpilotConfig,
)
from shadowpilot.core.driver_factory import WebDriverType, create_driver
from shadowpilot.core.redactor import Redactor
from shadowpilot.layers.action import ActionExecutor, ActionResult
from shadowpilot.layers.intelligence import PlannerEngine
from shadowpilot.layers.sense import DOMMapper, SnapshotNode
from shadowpilot.reporters import RunRecorder

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a shadowpilot run."""
    success: bool
    url: str
    instruction: str
    start_time: datetime
    end_time: datetime
    results: List[ActionResult] = field(default_factory=list)
    snapshot_before: List[SnapshotNode] = field(default_factory=list)
    snapshot_after: List[SnapshotNode] = field(default_factory=list)
    report_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def steps(self) -> int:
        """Number of steps that completed."""
        return len(self.results)

    @property
    def duration_seconds(self) -> float:
        """Total execution time in seconds."""
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "url": self.url,
            "instruction": self.instruction,
            "steps": self.steps,
            "duration_seconds": self.duration_seconds,
            "results": [r.to_dict() for r in self.results],
            "report_path": self.report_path,
            "error": self.error,
        }


class ShadowpilotRunner:
    """
    Runs a planner's action list against a live page.

    The instruction is redacted before it reaches the planner, and the
    planner's steps are restored before they reach the executor.

    Example:
        >>> runner = ShadowpilotRunner(
        ...     url="https://mattkenefick.github.io/sample-shadow-dom/",
        ...     plan_path="plans/sample_shadow_dom.json",
        ... )
        >>> result = runner.run()
        >>> print(f"Success: {result.success} in {result.steps} steps")
    """

    def __init__(
        self,
        url: str,
        instruction: str = "",
        headless: bool = False,
        planner_type: str = "static",
        plan_path: Optional[str] = None,
        plan: Optional[Any] = None,
        model_name: Optional[str] = None,
        report_dir: str = "./shadowpilot_reports",
        timeout: int = 30,
        page_load_timeout: int = 60,
        interactive_selector: str = DEFAULT_INTERACTIVE_SELECTOR,
        max_shadow_depth: int = DEFAULT_MAX_SHADOW_DEPTH,
        keep_open: float = 0.0,
        driver: Optional[WebDriverType] = None,
    ):
        """
        Initialize the runner.

        Args:
            planner_type: "static" (replays ``plan``/``plan_path``) or "cloud"
            plan: In-memory plan payload, takes precedence over ``plan_path``
            keep_open: Seconds to keep the browser open after the run
            driver: Existing WebDriver to use; the runner will not quit it
        """
        self.config = ShadowpilotConfig(
            url=url,
            instruction=instruction,
            headless=headless,
            timeout=timeout,
            page_load_timeout=page_load_timeout,
            interactive_selector=interactive_selector,
            max_shadow_depth=max_shadow_depth,
            report_dir=report_dir,
            planner_type=planner_type,
            model_name=model_name,
            plan_path=plan_path,
            keep_open=keep_open,
        )
        self._plan_payload = plan

        self._driver: Optional[WebDriverType] = driver
        self._owns_driver = driver is None
        self._dom_mapper: Optional[DOMMapper] = None
        self._executor: Optional[ActionExecutor] = None
        self._planner: Optional[PlannerEngine] = None
        self._recorder = RunRecorder(output_dir=self.config.report_dir)
        self._redactor = Redactor()
        self._initialized = False

    @property
    def registry(self):
        """Node registry of the latest snapshot, None before the first one."""
        return self._dom_mapper.registry if self._dom_mapper else None

    def _initialize(self) -> None:
        if self._initialized:
            return

        if self._driver is None:
            self._driver = create_driver(
                headless=self.config.headless,
                page_load_timeout=self.config.page_load_timeout,
            )

        self._dom_mapper = DOMMapper(
            self._driver,
            selector=self.config.interactive_selector,
            max_shadow_depth=self.config.max_shadow_depth,
        )
        self._executor = ActionExecutor(
            self._driver,
            timeout=self.config.timeout,
            recorder=self._recorder,
        )
        self._initialized = True

    def _get_planner(self) -> PlannerEngine:
        if self._planner is None:
            self._planner = PlannerEngine(
                planner_type=self.config.planner_type,
                plan_source=self._plan_payload if self._plan_payload is not None else self.config.plan_path,
                model_name=self.config.model_name,
            )
        return self._planner

    def run(self) -> RunResult:
        """
        Execute the navigate-snapshot-plan-act sequence.

        Returns:
            RunResult with success status, completed steps, both
            snapshots and the record path.
        """
        start_time = datetime.now()
        results: List[ActionResult] = []
        snapshot_before: List[SnapshotNode] = []
        snapshot_after: List[SnapshotNode] = []
        error_msg: Optional[str] = None
        report_path: Optional[str] = None

        try:
            self._initialize()

            self._executor.navigate(self.config.url)
            self._recorder.log_navigation(self.config.url)

            snapshot_before = self._dom_mapper.get_snapshot()
            self._recorder.log_snapshot("before", snapshot_before)

            redacted = self._redactor.redact(self.config.instruction)
            steps = self._get_planner().plan(redacted, snapshot_before)
            self._recorder.log_plan(steps)

            for step in self._redactor.restore_plan(steps):
                results.append(self._executor.execute(step))

            snapshot_after = self._dom_mapper.get_snapshot()
            self._recorder.log_snapshot("after", snapshot_after)

        except Exception as e:
            error_msg = str(e) or e.__class__.__name__
            logger.error(f"[Runner] Run aborted: {error_msg}")
            self._recorder.log_error("Run aborted", e)

        finally:
            try:
                report_path = self._recorder.save()
            except OSError as e:
                logger.warning(f"[Runner] Could not write run record: {e}")
            self._close()

        return RunResult(
            success=error_msg is None,
            url=self.config.url,
            instruction=self.config.instruction,
            start_time=start_time,
            end_time=datetime.now(),
            results=results,
            snapshot_before=snapshot_before,
            snapshot_after=snapshot_after,
            report_path=report_path,
            error=error_msg,
        )

    def snapshot(self) -> List[SnapshotNode]:
        """Navigate to the configured URL and return a single snapshot."""
        self._initialize()
        self._executor.navigate(self.config.url)
        return self._dom_mapper.get_snapshot()

    def close(self) -> None:
        """Quit the driver if this runner created it."""
        self._close(wait=False)

    def _close(self, wait: bool = True) -> None:
        if self._driver is None:
            return
        if wait and self.config.keep_open > 0:
            time.sleep(self.config.keep_open)
        if self._owns_driver:
            try:
                self._driver.quit()
            except Exception as e:
                logger.debug(f"[Runner] Driver quit failed: {e}")
            self._driver = None
            self._initialized = False
