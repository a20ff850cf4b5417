"""
Node Registry - per-pass map from snapshot node ids to live elements.

The registry holds back-references only. The page owns every element; an
entry stops being usable as soon as the page navigates, the driver quits,
or a new snapshot pass starts. Elements found inside a child frame are
additionally only usable while that frame is the driver's current
browsing context.
"""

from typing import Any, Dict, Iterator, Optional, TYPE_CHECKING

from shadowpilot.core.errors import StaleSnapshotError

if TYPE_CHECKING:
    from selenium.webdriver.remote.webelement import WebElement

NODE_ID_PREFIX = "node-"


class NodeRegistry:
    """
    Generation-scoped store of ``node_id -> WebElement``.

    Ids are ``node-1``, ``node-2``, ... in registration order. There is no
    eviction besides ``clear()``; once ``close()`` is called every lookup
    raises ``StaleSnapshotError``.
    """

    def __init__(self):
        self._elements: Dict[str, "WebElement"] = {}
        self._counter = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def register(self, element: "WebElement") -> str:
        if self._closed:
            raise RuntimeError("Cannot register elements in a closed registry")
        self._counter += 1
        node_id = f"{NODE_ID_PREFIX}{self._counter}"
        self._elements[node_id] = element
        return node_id

    def get(self, node_id: str, default: Any = None) -> Optional["WebElement"]:
        if self._closed:
            raise StaleSnapshotError(node_id)
        return self._elements.get(node_id, default)

    def __getitem__(self, node_id: str) -> "WebElement":
        if self._closed:
            raise StaleSnapshotError(node_id)
        return self._elements[node_id]

    def __contains__(self, node_id: object) -> bool:
        return not self._closed and node_id in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._elements))

    def clear(self) -> None:
        """Drop every entry and reset the id counter."""
        self._elements.clear()
        self._counter = 0

    def close(self) -> None:
        """Clear and mark this generation as finished."""
        self.clear()
        self._closed = True


class SnapshotSession:
    """
    State owned by one snapshot call: its registry and id counter.

    A fresh session per call keeps passes from leaking into each other and
    lets several pages be snapshotted independently.
    """

    def __init__(self, max_shadow_depth: int):
        self.registry = NodeRegistry()
        self.max_shadow_depth = max_shadow_depth
        self.skipped = 0  # Elements dropped because they disconnected mid-pass

    def register(self, element: "WebElement") -> str:
        return self.registry.register(element)

    def close(self) -> None:
        self.registry.close()
