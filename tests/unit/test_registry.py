import pytest

from shadowpilot.core.errors import StaleSnapshotError
from shadowpilot.layers.sense.registry import NodeRegistry, SnapshotSession


def test_register_assigns_increasing_ids():
    registry = NodeRegistry()
    first, second = object(), object()

    assert registry.register(first) == "node-1"
    assert registry.register(second) == "node-2"
    assert registry["node-1"] is first
    assert registry.get("node-2") is second
    assert len(registry) == 2
    assert list(registry) == ["node-1", "node-2"]


def test_unknown_id_returns_default():
    registry = NodeRegistry()
    assert registry.get("node-99") is None
    assert "node-99" not in registry
    with pytest.raises(KeyError):
        registry["node-99"]


def test_clear_resets_counter():
    registry = NodeRegistry()
    registry.register(object())
    registry.clear()

    assert len(registry) == 0
    assert registry.register(object()) == "node-1"


def test_closed_registry_rejects_lookups():
    registry = NodeRegistry()
    registry.register(object())
    registry.close()

    assert registry.closed
    assert "node-1" not in registry
    with pytest.raises(StaleSnapshotError):
        registry.get("node-1")
    with pytest.raises(StaleSnapshotError) as exc:
        registry["node-1"]
    assert "no longer current" in str(exc.value)
    with pytest.raises(RuntimeError):
        registry.register(object())


def test_sessions_do_not_share_counters():
    first = SnapshotSession(max_shadow_depth=5)
    second = SnapshotSession(max_shadow_depth=5)

    first.register(object())
    first.register(object())

    assert second.register(object()) == "node-1"
    assert first.skipped == 0
    first.close()
    assert first.registry.closed
    assert not second.registry.closed
