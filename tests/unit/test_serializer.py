from unittest.mock import MagicMock, PropertyMock

from selenium.common.exceptions import WebDriverException

from shadowpilot.core.config import DEFAULT_INTERACTIVE_SELECTOR
from shadowpilot.layers.sense.registry import SnapshotSession
from shadowpilot.layers.sense.serializer import (
    ElementSerializer,
    SnapshotNode,
    accessible_name,
    build_path,
)
from fakes import FakeDocument, FakeDriver, FakeNode


def _serializer(driver, max_shadow_depth=32):
    session = SnapshotSession(max_shadow_depth)
    return ElementSerializer(driver, DEFAULT_INTERACTIVE_SELECTOR, session), session


def test_accessible_name_precedence():
    assert accessible_name({"tag": "a", "ariaLabel": "Home", "alt": "Logo", "text": "Go"}) == "Home"
    assert accessible_name({"tag": "img", "alt": "Logo", "placeholder": "x"}) == "Logo"
    assert accessible_name({"tag": "input", "placeholder": "Email"}) == "Email"
    assert accessible_name({"tag": "button", "text": "  Save \n"}) == "Save"
    assert accessible_name({"tag": "div"}) == ""


def test_accessible_name_ignores_form_control_text():
    assert accessible_name({"tag": "textarea", "text": "draft body"}) == ""
    assert accessible_name({"tag": "select", "text": "Red Green"}) == ""
    # Only the exact tags are suppressed
    assert accessible_name({"tag": "my-input", "text": "Custom"}) == "Custom"


def test_build_path_stops_at_first_id():
    lineage = [
        {"tag": "button", "id": None, "nth": 2},
        {"tag": "div", "id": "wrap", "nth": 1},
        {"tag": "body", "id": None, "nth": 1},
    ]
    assert build_path(lineage) == "div#wrap > button:nth-of-type(2)"


def test_build_path_element_with_id():
    assert build_path([{"tag": "input", "id": "email", "nth": 3}]) == "input#email"


def test_build_path_without_ids_reaches_root():
    lineage = [
        {"tag": "a", "id": None, "nth": 1},
        {"tag": "section", "id": None, "nth": 2},
    ]
    assert build_path(lineage) == "section:nth-of-type(2) > a:nth-of-type(1)"


def test_serialize_plain_element():
    second = FakeNode("button", text=" Save ")
    doc = FakeDocument("https://example.test", [
        FakeNode("div", {"id": "wrap"}, children=[FakeNode("p"), FakeNode("button", text="One"), second]),
    ])
    serializer, session = _serializer(FakeDriver(document=doc))

    node = serializer.serialize(second)

    assert node.node_id == "node-1"
    assert node.role == "button"
    assert node.name == "Save"
    assert node.path == "div#wrap > button:nth-of-type(2)"
    assert node.has_shadow_root is False
    assert node.shadow_children is None
    assert session.registry["node-1"] is second
    assert "shadowChildren" not in node.to_dict()
    assert "frameUrl" not in node.to_dict()


def test_serialize_explicit_role_and_state():
    box = FakeNode("input", {"type": "checkbox", "role": "switch", "checked": "", "disabled": ""})
    doc = FakeDocument("https://example.test", [box])
    serializer, _ = _serializer(FakeDriver(document=doc))

    data = serializer.serialize(box, frame_url="https://frame.test").to_dict()

    assert data["role"] == "switch"
    assert data["tag"] == "input"
    assert data["type"] == "checkbox"
    assert data["checked"] is True
    assert data["disabled"] is True
    assert data["value"] == ""
    assert data["frameUrl"] == "https://frame.test"


def test_serialize_shadow_host_nests_children():
    field = FakeNode("input", {"placeholder": "Email"})
    host = FakeNode("login-box", shadow=[FakeNode("span", text="label"), field])
    doc = FakeDocument("https://example.test", [host])
    serializer, session = _serializer(FakeDriver(document=doc))

    node = serializer.serialize(host)

    assert node.node_id == "node-1"
    assert node.role == "login-box"
    assert [c.node_id for c in node.shadow_children] == ["node-2"]
    assert node.shadow_children[0].name == "Email"
    assert node.shadow_children[0].path == "input:nth-of-type(1)"
    assert session.registry["node-2"] is field
    assert [n.node_id for n in node.iter_tree()] == ["node-1", "node-2"]


def test_empty_shadow_root_serializes_empty_list():
    host = FakeNode("empty-host", shadow=[])
    doc = FakeDocument("https://example.test", [host])
    serializer, _ = _serializer(FakeDriver(document=doc))

    data = serializer.serialize(host).to_dict()

    assert data["hasShadowRoot"] is True
    assert data["shadowChildren"] == []


def test_disconnected_element_serializes_to_none():
    orphan = FakeNode("button", text="Gone")
    doc = FakeDocument("https://example.test", [orphan])
    orphan.remove()
    serializer, session = _serializer(FakeDriver(document=doc))

    assert serializer.serialize(orphan) is None
    assert len(session.registry) == 0


def test_shadow_depth_guard_stops_descent():
    innermost = FakeNode("div", {"role": "group"}, shadow=[FakeNode("button", text="Deep")])
    middle = FakeNode("div", {"role": "group"}, shadow=[innermost])
    top = FakeNode("div", {"role": "group"}, shadow=[middle])
    doc = FakeDocument("https://example.test", [top])
    serializer, _ = _serializer(FakeDriver(document=doc), max_shadow_depth=1)

    node = serializer.serialize(top)

    assert len(node.shadow_children) == 1
    assert node.shadow_children[0].has_shadow_root is True
    assert node.shadow_children[0].shadow_children == []


def test_unreadable_shadow_root_yields_empty_children():
    driver = MagicMock()
    driver.execute_script.return_value = {"tag": "x-host", "hasShadowRoot": True, "lineage": []}
    host = MagicMock()
    type(host).shadow_root = PropertyMock(side_effect=WebDriverException("closed"))
    serializer = ElementSerializer(driver, "button", SnapshotSession(32))

    node = serializer.serialize(host)

    assert node.shadow_children == []


def test_snapshot_node_str():
    node = SnapshotNode(role="button", name="Save", tag="button", node_id="node-3", path="button:nth-of-type(1)")
    assert str(node) == '[node-3] <button role="button" name="Save">'
