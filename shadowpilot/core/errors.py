"""Exceptions raised across the shadowpilot layers."""


class ShadowpilotError(Exception):
    """Base class for every error raised by shadowpilot itself."""
    pass


class PlanValidationError(ShadowpilotError, ValueError):
    """The action list handed in by a planner is malformed."""
    pass


class UnsupportedActionError(PlanValidationError):
    """An action step names a kind the executor cannot perform."""

    def __init__(self, kind: str, sequence=None):
        self.kind = kind
        self.sequence = sequence
        where = f" (sequence {sequence})" if sequence is not None else ""
        super().__init__(f'Action "{kind}" is not supported{where}')


class ElementNotResolvedError(ShadowpilotError, LookupError):
    """No element matched the fill target in the resolved context."""

    def __init__(self, target: str, sequence=None):
        self.target = target
        self.sequence = sequence
        super().__init__(f'Input not found for target "{target}" in current shadow context')


class StaleSnapshotError(ShadowpilotError, KeyError):
    """A node id from a finished snapshot pass was looked up."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(node_id)

    def __str__(self) -> str:
        return f"Node {self.node_id} belongs to a snapshot pass that is no longer current"
