"""
Action Plan - the ordered action list a planner hands to the executor.

Each step carries exactly one action whose payload shape is fixed by its
kind. Payloads are validated here, at ingestion, so the executor only ever
sees well-formed steps.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Union

from shadowpilot.core.errors import PlanValidationError, UnsupportedActionError

SWITCH_TO_SHADOW_ROOT = "switchToShadowRoot"

NAVIGATE = "goto"
FILL = "input"

# Planner-facing aliases for the two supported kinds
KIND_ALIASES = {
    "goto": NAVIGATE,
    "navigate": NAVIGATE,
    "input": FILL,
    "fill": FILL,
}


@dataclass(frozen=True)
class Prerequisite:
    """One shadow-host descent step that must happen before the action."""
    target: str  # CSS selector of the shadow host
    action: str = SWITCH_TO_SHADOW_ROOT

    def to_dict(self) -> Dict[str, str]:
        return {"action": self.action, "target": self.target}


@dataclass(frozen=True)
class NavigateAction:
    """Load a URL and wait for it to settle."""
    url: str
    kind: str = field(default=NAVIGATE, init=False)

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "url": self.url}


@dataclass(frozen=True)
class FillAction:
    """Clear a field and type a value into it."""
    target: str
    value: str
    kind: str = field(default=FILL, init=False)

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "target": self.target, "value": self.value}


Action = Union[NavigateAction, FillAction]


@dataclass(frozen=True)
class ActionStep:
    """A single numbered step of an action list."""
    sequence: int
    action: Action
    prerequisite: List[Prerequisite] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return self.action.kind

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"sequence": self.sequence, "action": self.action.to_dict()}
        if self.prerequisite:
            data["prerequisite"] = [p.to_dict() for p in self.prerequisite]
        return data

    def __repr__(self) -> str:
        chain = " > ".join(p.target for p in self.prerequisite)
        chain = f", chain='{chain}'" if chain else ""
        return f"ActionStep(sequence={self.sequence}, action={self.action}{chain})"


def parse_plan(payload: Union[str, bytes, Dict[str, Any], List[Any]]) -> List[ActionStep]:
    """
    Validate a planner response and turn it into ordered ActionSteps.

    Accepts a JSON string, a list of step dicts, or a dict wrapping that
    list under "actions". Steps are returned sorted by ``sequence``.

    Raises:
        UnsupportedActionError: a step names an unknown action kind
        PlanValidationError: any other structural problem
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise PlanValidationError(f"Plan is not valid JSON: {e}") from e

    if isinstance(payload, dict):
        if "actions" not in payload:
            raise PlanValidationError('Plan object has no "actions" list')
        payload = payload["actions"]

    if not isinstance(payload, list):
        raise PlanValidationError(f"Plan must be a list of steps, got {type(payload).__name__}")

    steps = [_parse_step(raw, index) for index, raw in enumerate(payload)]

    seen = set()
    for step in steps:
        if step.sequence in seen:
            raise PlanValidationError(f"Duplicate sequence number {step.sequence}")
        seen.add(step.sequence)

    return sorted(steps, key=lambda s: s.sequence)


def restore_plan(steps: List[ActionStep], restore: Callable[[str], str]) -> List[ActionStep]:
    """Return new steps with every string payload passed through ``restore``."""
    restored = []
    for step in steps:
        action = step.action
        if isinstance(action, NavigateAction):
            action = NavigateAction(url=restore(action.url))
        elif isinstance(action, FillAction):
            action = FillAction(target=restore(action.target), value=restore(action.value))
        restored.append(replace(step, action=action))
    return restored


def _parse_step(raw: Any, index: int) -> ActionStep:
    if not isinstance(raw, dict):
        raise PlanValidationError(f"Step {index} must be an object")

    sequence = raw.get("sequence", index + 1)
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise PlanValidationError(f"Step {index}: sequence must be an integer")

    # The original planner wire shape nests the payload under "playwrightAction"
    # and names the kind "action"
    body = raw.get("action")
    if body is None:
        body = raw.get("playwrightAction")
    if not isinstance(body, dict):
        raise PlanValidationError(f"Step {sequence}: missing action object")

    kind = body.get("kind", body.get("action"))
    if not isinstance(kind, str) or not kind:
        raise PlanValidationError(f"Step {sequence}: action has no kind")

    normalized = KIND_ALIASES.get(kind.strip().lower())
    if normalized is None:
        raise UnsupportedActionError(kind, sequence)

    if normalized == NAVIGATE:
        action: Action = NavigateAction(url=_require_str(body, "url", sequence))
    else:
        action = FillAction(
            target=_require_str(body, "target", sequence),
            value=_require_str(body, "value", sequence, allow_empty=True),
        )

    return ActionStep(
        sequence=sequence,
        action=action,
        prerequisite=_parse_prerequisites(raw.get("prerequisite"), sequence),
    )


def _parse_prerequisites(raw: Optional[Any], sequence: int) -> List[Prerequisite]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise PlanValidationError(f"Step {sequence}: prerequisite must be a list")

    chain = []
    for pre in raw:
        if not isinstance(pre, dict):
            raise PlanValidationError(f"Step {sequence}: prerequisite entries must be objects")
        if pre.get("action") != SWITCH_TO_SHADOW_ROOT:
            raise PlanValidationError(
                f"Step {sequence}: unknown prerequisite action {pre.get('action')!r}"
            )
        chain.append(Prerequisite(target=_require_str(pre, "target", sequence)))
    return chain


def _require_str(body: Dict[str, Any], key: str, sequence: int, allow_empty: bool = False) -> str:
    value = body.get(key)
    if not isinstance(value, str):
        raise PlanValidationError(f"Step {sequence}: '{key}' must be a string")
    if not value and not allow_empty:
        raise PlanValidationError(f"Step {sequence}: '{key}' must not be empty")
    return value
