"""
Element Classifier - decides which elements a snapshot includes.

An element is kept when it is interactable (matches the configured
selector set) or hosts a shadow root, so traversal can pierce into it even
when the host itself is not actionable.
"""

from typing import Tuple, TYPE_CHECKING

from shadowpilot.core.config import DEFAULT_INTERACTIVE_SELECTOR

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from selenium.webdriver.remote.webelement import WebElement

# Both predicates are read-only, so one round trip answers them together.
CLASSIFY_SCRIPT = """
const el = arguments[0];
const selector = arguments[1];
return [
    !!(el.matches && el.matches(selector)),
    !!el.shadowRoot,
];
"""


class ElementClassifier:
    """Evaluates the interactable / shadow-host predicates for live elements."""

    def __init__(self, driver: "WebDriver", selector: str = DEFAULT_INTERACTIVE_SELECTOR):
        self.driver = driver
        self.selector = selector

    def classify(self, element: "WebElement") -> Tuple[bool, bool]:
        """
        Return ``(is_interactable, is_shadow_host)``.

        Raises StaleElementReferenceException if the element is gone.
        """
        result = self.driver.execute_script(CLASSIFY_SCRIPT, element, self.selector)
        return bool(result[0]), bool(result[1])

    def is_interactable(self, element: "WebElement") -> bool:
        return self.classify(element)[0]

    def is_shadow_host(self, element: "WebElement") -> bool:
        return self.classify(element)[1]

    def should_serialize(self, element: "WebElement") -> bool:
        interactable, host = self.classify(element)
        return interactable or host
