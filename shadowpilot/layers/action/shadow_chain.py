"""
Shadow Chain Resolver - descends through a sequence of shadow hosts.

Each prerequisite names a host by CSS selector. A step that cannot be
satisfied leaves the context where it was and the chain carries on, so a
partially resolvable chain still lets the action be attempted.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, TYPE_CHECKING
import logging

from selenium.common.exceptions import (
    InvalidSelectorException,
    NoSuchShadowRootException,
    WebDriverException,
)
from selenium.webdriver.common.by import By

from shadowpilot.core.plan import SWITCH_TO_SHADOW_ROOT

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from selenium.webdriver.remote.webelement import WebElement
    from shadowpilot.core.plan import Prerequisite

logger = logging.getLogger(__name__)

# Content projected through a <slot> is not part of the shadow root's own tree
SLOT_LOOKUP_SCRIPT = """
const root = arguments[0].shadowRoot;
const selector = arguments[1];
if (!root) return null;
for (const slot of root.querySelectorAll('slot')) {
    const assigned = slot.assignedElements ? slot.assignedElements() : [];
    const match = assigned.find(el => el.matches(selector));
    if (match) return match;
}
return null;
"""


@dataclass(frozen=True)
class ShadowContext:
    """Either the top-level document (no host) or the shadow root of ``host``."""
    root: Any  # WebDriver or ShadowRoot, both answer find_elements()
    host: Optional["WebElement"] = None

    @property
    def is_document(self) -> bool:
        return self.host is None


class ShadowChainResolver:
    """
    Resolves a prerequisite chain to the context an action should run in.

    Example:
        >>> resolver = ShadowChainResolver(driver)
        >>> context = resolver.resolve([Prerequisite("my-form"), Prerequisite("my-input")])
        >>> context.is_document
        False
    """

    def __init__(self, driver: "WebDriver", recorder: Optional[Any] = None):
        self.driver = driver
        self.recorder = recorder

    def document_context(self) -> ShadowContext:
        return ShadowContext(root=self.driver)

    def resolve(self, prerequisites: Optional[Iterable["Prerequisite"]]) -> ShadowContext:
        context = self.document_context()

        for pre in prerequisites or []:
            if pre.action != SWITCH_TO_SHADOW_ROOT:
                continue

            target = pre.target
            logger.info(f"[ShadowChain] Switching to shadow host: {target}")

            host = self._find_host(context, target)
            if host is None:
                self._miss(f'Shadow host "{target}" not found at this level. Staying in current context.')
                continue

            shadow_root = self._shadow_root_of(host)
            if shadow_root is None:
                self._miss(f'"{target}" has no shadowRoot (maybe slotted). Staying at current context.')
                continue

            context = ShadowContext(root=shadow_root, host=host)
            logger.info(f"[ShadowChain] Entered shadow root of: {target}")

        return context

    def _miss(self, message: str) -> None:
        logger.warning(f"[ShadowChain] {message}")
        if self.recorder:
            self.recorder.log_warning(message)

    def _find_host(self, context: ShadowContext, selector: str) -> Optional["WebElement"]:
        try:
            found = context.root.find_elements(By.CSS_SELECTOR, selector)
            if found:
                return found[0]
            if context.is_document:
                return None
            return self.driver.execute_script(SLOT_LOOKUP_SCRIPT, context.host, selector)
        except InvalidSelectorException:
            logger.warning(f'[ShadowChain] "{selector}" is not a valid CSS selector')
            return None
        except WebDriverException as e:
            # The host entered by an earlier step left the page
            logger.debug(f"[ShadowChain] Lookup of {selector} failed: {e.__class__.__name__}")
            return None

    def _shadow_root_of(self, host: "WebElement"):
        try:
            return host.shadow_root
        except NoSuchShadowRootException:
            return None
        except WebDriverException as e:
            logger.debug(f"[ShadowChain] Could not read shadow root: {e.__class__.__name__}")
            return None
