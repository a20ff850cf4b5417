"""Reporters - Run records."""

from shadowpilot.reporters.run_recorder import RunRecorder

__all__ = ["RunRecorder"]
