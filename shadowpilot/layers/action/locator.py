"""
Locator Strategy - resolves a free-text target to one element.

Strategies run in a fixed order and the first match wins: exact
placeholder, exact name, exact id. There is no fuzzy matching.
"""

from typing import List, Optional, Tuple, TYPE_CHECKING
import logging

from selenium.webdriver.common.by import By

if TYPE_CHECKING:
    from selenium.webdriver.remote.webelement import WebElement
    from shadowpilot.layers.action.shadow_chain import ShadowContext

logger = logging.getLogger(__name__)


def css_escape(value: str) -> str:
    """Escape ``value`` for use as a CSS identifier (CSSOM ``CSS.escape``)."""
    out = []
    first = value[:1]
    for index, char in enumerate(value):
        code = ord(char)
        if code == 0:
            out.append("\ufffd")
        elif (
            0x01 <= code <= 0x1F
            or code == 0x7F
            or (index == 0 and char.isdigit() and char.isascii())
            or (index == 1 and char.isdigit() and char.isascii() and first == "-")
        ):
            out.append(f"\\{code:x} ")
        elif index == 0 and len(value) == 1 and char == "-":
            out.append("\\-")
        elif code >= 0x80 or char in "-_" or (char.isascii() and char.isalnum()):
            out.append(char)
        else:
            out.append("\\" + char)
    return "".join(out)


def css_string(value: str) -> str:
    """Quote ``value`` as a CSS string for attribute selectors."""
    out = ['"']
    for char in value:
        code = ord(char)
        if code == 0:
            out.append("\ufffd")
        elif 0x01 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif char in '"\\':
            out.append("\\" + char)
        else:
            out.append(char)
    out.append('"')
    return "".join(out)


class LocatorStrategy:
    """Finds fill targets inside a resolved ShadowContext."""

    def candidates(self, target: str) -> List[Tuple[str, str]]:
        """Ordered ``(strategy, selector)`` pairs tried for ``target``."""
        quoted = css_string(target)
        return [
            ("placeholder", f"input[placeholder={quoted}]"),
            ("placeholder", f"textarea[placeholder={quoted}]"),
            ("name", f"input[name={quoted}], textarea[name={quoted}]"),
            ("id", f"#{css_escape(target)}"),
        ]

    def locate(self, context: "ShadowContext", target: str) -> Optional["WebElement"]:
        """Return the first matching element, or None when nothing matches."""
        if not target:
            return None

        for strategy, selector in self.candidates(target):
            found = context.root.find_elements(By.CSS_SELECTOR, selector)
            if found:
                logger.debug(f'[Locator] "{target}" matched by {strategy}')
                return found[0]

        logger.debug(f'[Locator] "{target}" matched nothing')
        return None
