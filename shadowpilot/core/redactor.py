"""
Credential redaction for instructions sent to a text-generation service.

Password-like values are swapped for ``<SENSITIVE_n>`` placeholders before
the instruction leaves the process, and swapped back into the planner's
answer before anything is typed into the page.
"""

import re
from typing import Dict, List, TYPE_CHECKING

if TYPE_CHECKING:
    from shadowpilot.core.plan import ActionStep

PLACEHOLDER_PREFIX = "<SENSITIVE_"
PLACEHOLDER_SUFFIX = ">"

PASSWORD_INDICATORS = ["password", "pass", "passwd", "pwd", "secret", "token", "apikey", "pin"]

# john:test123 or john/test123
_INLINE_PATTERN = re.compile(r"\b([^\s:/]+)[:/]([^\s.,]+)")
# password test123, pass: xxx, token="abc"
_KEYWORD_PATTERN = re.compile(
    r"\b(" + "|".join(PASSWORD_INDICATORS) + r")\b\s*[:=]?\s*[\"']?([^\s\"'.]+)",
    re.IGNORECASE,
)
_USERNAME_PASSWORD_PATTERN = re.compile(
    r"\busername\s+(\S+)\s+(?:and\s+)?password\s+([^\s.,]+)", re.IGNORECASE
)
_CREDENTIALS_PATTERN = re.compile(r"\bcredentials\s+(\S+)\s+([^\s.,]+)", re.IGNORECASE)
_LOGIN_PATTERN = re.compile(
    r"\blogin(?:\s+to\s+\S+)?\s+(?:using|with)?\s+(\S+)\s+(?:and\s+)?([^\s.,]+)",
    re.IGNORECASE,
)


class Redactor:
    """
    Masks credentials in free text and restores them afterwards.

    The mapping lives for one redact/restore round: every ``redact`` call
    starts from an empty mapping and placeholder counter.

    Example:
        >>> redactor = Redactor()
        >>> redactor.redact("login with alice and hunter2")
        'login with alice and <SENSITIVE_0>'
        >>> redactor.restore("type <SENSITIVE_0>")
        'type hunter2'
    """

    def __init__(self):
        self._mapping: Dict[str, str] = {}
        self._counter = 0

    @property
    def mapping(self) -> Dict[str, str]:
        """Placeholder to original value, for the last ``redact`` call."""
        return dict(self._mapping)

    def redact(self, text: str) -> str:
        self._mapping.clear()
        self._counter = 0
        result = str(text)

        # Inline pairs mask only the password half and keep their separator
        result = _INLINE_PATTERN.sub(
            lambda m: m.group(0)[:m.start(2) - m.start(0)] + self._store(m.group(2)), result
        )
        result = _KEYWORD_PATTERN.sub(self._mask_second_group, result)
        # The phrase patterns below only ever mask their first occurrence
        result = _USERNAME_PASSWORD_PATTERN.sub(self._mask_second_group, result, count=1)
        result = _CREDENTIALS_PATTERN.sub(self._mask_second_group, result, count=1)
        result = _LOGIN_PATTERN.sub(self._mask_second_group, result, count=1)
        return result

    def restore(self, text: str) -> str:
        restored = str(text)
        for placeholder, value in self._mapping.items():
            restored = restored.replace(placeholder, value)
        return restored

    def restore_plan(self, steps: List["ActionStep"]) -> List["ActionStep"]:
        """Restore real values into every payload of an action list."""
        from shadowpilot.core.plan import restore_plan
        return restore_plan(steps, self.restore)

    def _store(self, value: str) -> str:
        placeholder = f"{PLACEHOLDER_PREFIX}{self._counter}{PLACEHOLDER_SUFFIX}"
        self._counter += 1
        self._mapping[placeholder] = value
        return placeholder

    def _mask_second_group(self, match: "re.Match") -> str:
        value = match.group(2)
        # Already masked by an earlier pattern
        if value.startswith(PLACEHOLDER_PREFIX):
            return match.group(0)
        return match.group(0).replace(value, self._store(value), 1)
