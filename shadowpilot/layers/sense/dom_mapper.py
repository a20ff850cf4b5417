"""
DOM Mapper - snapshot of every actionable element across frames and shadow roots.

Walks the main document and every descendant frame depth-first, parent
content before children, and serializes each element the classifier keeps.
Shadow descendants nest inside their host's ``shadow_children``; child
frame results are tagged with the frame's URL.
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING
import logging

from selenium.common.exceptions import StaleElementReferenceException, WebDriverException
from selenium.webdriver.common.by import By

from shadowpilot.core.config import DEFAULT_INTERACTIVE_SELECTOR, DEFAULT_MAX_SHADOW_DEPTH
from shadowpilot.layers.sense.classifier import ElementClassifier
from shadowpilot.layers.sense.registry import NodeRegistry, SnapshotSession
from shadowpilot.layers.sense.serializer import ElementSerializer, SnapshotNode

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver

logger = logging.getLogger(__name__)

# Frame elements of the current document in tree order, including those
# hosted inside open shadow roots, which a document query cannot reach.
FRAME_SCAN_SCRIPT = """
const frames = [];
const visit = (root) => {
    for (const el of root.querySelectorAll('*')) {
        if (el.tagName === 'IFRAME' || el.tagName === 'FRAME') frames.push(el);
        if (el.shadowRoot) visit(el.shadowRoot);
    }
};
visit(document);
return frames;
"""
FRAME_URL_SCRIPT = "return document.URL;"


class DOMMapper:
    """
    Builds the flattened snapshot of the current page.

    Every ``get_snapshot()`` call starts a new SnapshotSession: node ids
    restart at ``node-1`` and the registry of the previous pass is closed,
    so ids from an older snapshot can no longer be dereferenced.

    Example:
        >>> mapper = DOMMapper(driver)
        >>> snapshot = mapper.get_snapshot()
        >>> element = mapper.registry.get(snapshot[0].node_id)
    """

    def __init__(
        self,
        driver: "WebDriver",
        selector: str = DEFAULT_INTERACTIVE_SELECTOR,
        max_shadow_depth: int = DEFAULT_MAX_SHADOW_DEPTH,
    ):
        self.driver = driver
        self.selector = selector
        self.max_shadow_depth = max_shadow_depth
        self._session: Optional[SnapshotSession] = None

    @property
    def registry(self) -> Optional[NodeRegistry]:
        """Registry of the latest pass, None before the first snapshot."""
        return self._session.registry if self._session else None

    def get_snapshot(self) -> List[SnapshotNode]:
        """Snapshot the main frame and all descendant frames."""
        if self._session is not None:
            self._session.close()
        session = SnapshotSession(self.max_shadow_depth)
        self._session = session

        classifier = ElementClassifier(self.driver, self.selector)
        serializer = ElementSerializer(self.driver, self.selector, session)
        snapshot: List[SnapshotNode] = []

        self.driver.switch_to.default_content()
        try:
            self._process_frame(classifier, serializer, snapshot, frame_url=None)
        finally:
            self.driver.switch_to.default_content()

        logger.info(
            f"[DOMMapper] Snapshot captured: {len(snapshot)} top-level nodes, "
            f"{len(session.registry)} registered, {session.skipped} skipped"
        )
        return snapshot

    def get_snapshot_dicts(self) -> List[Dict[str, Any]]:
        """Snapshot in its JSON-representable form."""
        return [node.to_dict() for node in self.get_snapshot()]

    def _process_frame(
        self,
        classifier: ElementClassifier,
        serializer: ElementSerializer,
        snapshot: List[SnapshotNode],
        frame_url: Optional[str],
    ) -> None:
        for element in self.driver.find_elements(By.CSS_SELECTOR, "*"):
            try:
                if not classifier.should_serialize(element):
                    continue
                node = serializer.serialize(element, frame_url=frame_url)
            except StaleElementReferenceException:
                node = None

            if node is None:
                # Disconnected between enumeration and evaluation
                serializer.session.skipped += 1
                logger.debug("[DOMMapper] Skipping element that left the document")
                continue
            snapshot.append(node)

        for frame in self.driver.execute_script(FRAME_SCAN_SCRIPT) or []:
            try:
                self.driver.switch_to.frame(frame)
            except WebDriverException as e:
                logger.warning(f"[DOMMapper] Could not enter child frame: {e.__class__.__name__}")
                continue
            try:
                child_url = self.driver.execute_script(FRAME_URL_SCRIPT)
                self._process_frame(classifier, serializer, snapshot, frame_url=child_url)
            finally:
                self.driver.switch_to.parent_frame()
