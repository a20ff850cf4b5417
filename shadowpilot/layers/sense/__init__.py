"""Sense Layer - Snapshot of the live page across frames and shadow roots."""

from shadowpilot.layers.sense.dom_mapper import DOMMapper
from shadowpilot.layers.sense.registry import NodeRegistry, SnapshotSession
from shadowpilot.layers.sense.serializer import SnapshotNode

__all__ = ["DOMMapper", "NodeRegistry", "SnapshotSession", "SnapshotNode"]
