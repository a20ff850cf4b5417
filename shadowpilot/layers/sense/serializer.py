"""
Element Serializer - turns one live element into a SnapshotNode.

A single script call collects the raw facts about an element; role,
accessible name and the debug path are derived from those facts in Python.
Shadow hosts are recursed into, collecting the classifier-matching
elements of their shadow root as ``shadow_children``.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TYPE_CHECKING
import logging

from selenium.common.exceptions import StaleElementReferenceException, WebDriverException
from selenium.webdriver.common.by import By

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from selenium.webdriver.remote.webelement import WebElement
    from shadowpilot.layers.sense.registry import SnapshotSession

logger = logging.getLogger(__name__)

# Controls whose text children are not meaningful names
FORM_CONTROL_TAGS = frozenset({"input", "textarea", "select"})

# Returns null for an element that left the document since it was enumerated.
DESCRIBE_SCRIPT = """
const node = arguments[0];
if (!node || !node.isConnected) return null;

const lineage = [];
let cur = node;
while (cur && cur.nodeType === Node.ELEMENT_NODE) {
    let nth = 1;
    let sib = cur;
    while ((sib = sib.previousElementSibling)) {
        if (sib.tagName === cur.tagName) nth++;
    }
    lineage.push({tag: cur.nodeName.toLowerCase(), id: cur.id || null, nth: nth});
    cur = cur.parentNode;
}

return {
    tag: node.tagName.toLowerCase(),
    role: node.getAttribute('role'),
    ariaLabel: node.getAttribute('aria-label'),
    alt: node.getAttribute('alt'),
    placeholder: node.getAttribute('placeholder'),
    text: node.textContent,
    id: node.id || null,
    type: node.getAttribute('type'),
    disabled: !!node.disabled,
    checked: !!node.checked,
    value: node.value === undefined ? null : node.value,
    hasShadowRoot: !!node.shadowRoot,
    lineage: lineage,
};
"""


@dataclass(frozen=True)
class SnapshotNode:
    """
    Machine-readable description of one actionable element or shadow host.

    Created once per element per snapshot pass; it does not follow later
    changes to the page.
    """
    role: str
    name: str  # Never None, "" when no naming source applies
    tag: str
    node_id: str
    path: str
    id: Optional[str] = None
    type: Optional[str] = None
    disabled: bool = False
    checked: bool = False
    value: Optional[str] = None
    has_shadow_root: bool = False
    frame_url: Optional[str] = None
    shadow_children: Optional[List["SnapshotNode"]] = None  # Set iff has_shadow_root

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape handed to planners."""
        data: Dict[str, Any] = {
            "role": self.role,
            "name": self.name,
            "tag": self.tag,
            "id": self.id,
            "type": self.type,
            "disabled": self.disabled,
            "checked": self.checked,
            "value": self.value,
            "hasShadowRoot": self.has_shadow_root,
            "nodeId": self.node_id,
            "path": self.path,
        }
        if self.frame_url:
            data["frameUrl"] = self.frame_url
        if self.has_shadow_root:
            data["shadowChildren"] = [child.to_dict() for child in self.shadow_children or []]
        return data

    def iter_tree(self):
        """Yield this node and every shadow descendant in pre-order."""
        yield self
        for child in self.shadow_children or []:
            yield from child.iter_tree()

    def __str__(self) -> str:
        """Compact one-line form for LLM prompts."""
        attrs = [f'role="{self.role}"']
        if self.name:
            attrs.append(f'name="{self.name[:60]}"')
        if self.id:
            attrs.append(f'id="{self.id}"')
        if self.type:
            attrs.append(f'type="{self.type}"')
        if self.value:
            attrs.append(f'value="{self.value[:40]}"')
        if self.disabled:
            attrs.append("disabled")
        return f"[{self.node_id}] <{self.tag} {' '.join(attrs)}>"


def accessible_name(facts: Dict[str, Any]) -> str:
    """First non-empty of aria-label, alt, placeholder, then trimmed text."""
    for key in ("ariaLabel", "alt", "placeholder"):
        if facts.get(key):
            return facts[key]
    if facts.get("tag") in FORM_CONTROL_TAGS:
        return ""
    return (facts.get("text") or "").strip()


def build_path(lineage: List[Dict[str, Any]]) -> str:
    """
    Build the debug path from an element-to-root lineage.

    Ascent stops at the first ancestor (or the element itself) that has an id.
    """
    segments = []
    for level in lineage:
        if level.get("id"):
            segments.append(f"{level['tag']}#{level['id']}")
            break
        segments.append(f"{level['tag']}:nth-of-type({level['nth']})")
    return " > ".join(reversed(segments))


class ElementSerializer:
    """
    Serializes live elements for one snapshot session.

    Example:
        >>> serializer = ElementSerializer(driver, selector, session)
        >>> node = serializer.serialize(element)
        >>> node.to_dict()["nodeId"]
        'node-1'
    """

    def __init__(self, driver: "WebDriver", selector: str, session: "SnapshotSession"):
        self.driver = driver
        self.selector = selector
        self.session = session

    def serialize(
        self,
        element: "WebElement",
        frame_url: Optional[str] = None,
        depth: int = 0,
    ) -> Optional[SnapshotNode]:
        """
        Describe ``element`` and register it in the session.

        Returns None when the element is no longer connected. A stale
        element reference is left to propagate so the caller can skip it.
        """
        facts = self.driver.execute_script(DESCRIBE_SCRIPT, element)
        if not facts:
            return None

        # Registered before recursing so a host's id precedes its children's
        node_id = self.session.register(element)

        shadow_children = None
        if facts.get("hasShadowRoot"):
            shadow_children = self._serialize_shadow_children(element, depth)

        tag = facts["tag"]
        return SnapshotNode(
            role=facts.get("role") or tag,
            name=accessible_name(facts),
            tag=tag,
            node_id=node_id,
            path=build_path(facts.get("lineage") or []),
            id=facts.get("id") or None,
            type=facts.get("type"),
            disabled=bool(facts.get("disabled")),
            checked=bool(facts.get("checked")),
            value=facts.get("value"),
            has_shadow_root=bool(facts.get("hasShadowRoot")),
            frame_url=frame_url,
            shadow_children=shadow_children,
        )

    def _serialize_shadow_children(self, host: "WebElement", depth: int) -> List[SnapshotNode]:
        if depth + 1 > self.session.max_shadow_depth:
            logger.warning(
                f"[Serializer] Shadow nesting deeper than {self.session.max_shadow_depth} levels; "
                f"not descending further"
            )
            return []

        children: List[SnapshotNode] = []
        try:
            shadow_root = host.shadow_root
            matches = shadow_root.find_elements(By.CSS_SELECTOR, self.selector)
            for child in matches:
                try:
                    node = self.serialize(child, depth=depth + 1)
                except StaleElementReferenceException:
                    self.session.skipped += 1
                    continue
                if node is not None:
                    children.append(node)
                else:
                    self.session.skipped += 1
        except WebDriverException as e:
            logger.debug(f"[Serializer] Shadow root not readable, leaving it empty: {e.__class__.__name__}")
            return []
        return children
