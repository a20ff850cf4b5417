import json
from unittest.mock import MagicMock, patch

import pytest

from shadowpilot.core.errors import PlanValidationError, UnsupportedActionError
from shadowpilot.layers.intelligence.planner_engine import PlannerEngine
from shadowpilot.layers.intelligence.planners.cloud_planner import CloudPlanner
from shadowpilot.layers.intelligence.planners.static_planner import StaticPlanner
from shadowpilot.layers.sense.serializer import SnapshotNode

PLAN = {"actions": [
    {"sequence": 1, "action": {"kind": "goto", "url": "https://example.test"}},
    {"sequence": 2, "action": {"kind": "input", "target": "Password", "value": "<SENSITIVE_0>"}},
]}

SNAPSHOT = [SnapshotNode(role="input", name="Password", tag="input", node_id="node-1", path="input#pw", id="pw")]


def test_static_planner_from_payload():
    steps = StaticPlanner(PLAN).plan("ignored", [])
    assert [s.kind for s in steps] == ["goto", "input"]


def test_static_planner_from_file(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(PLAN), encoding="utf-8")

    steps = StaticPlanner(str(path)).plan("ignored", [])

    assert steps[1].action.value == "<SENSITIVE_0>"


def test_static_planner_json_string():
    steps = StaticPlanner(json.dumps(PLAN["actions"])).plan("", [])
    assert len(steps) == 2


def test_engine_static_requires_source():
    with pytest.raises(ValueError):
        PlannerEngine(planner_type="static")


def test_engine_unknown_type():
    with pytest.raises(ValueError):
        PlannerEngine(planner_type="psychic", plan_source=PLAN)


def test_engine_delegates():
    engine = PlannerEngine(planner_type="STATIC", plan_source=PLAN)
    assert engine.planner_type == "static"
    assert len(engine.plan("", [])) == 2


def test_cloud_planner_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ValueError, match="No API keys"):
        CloudPlanner()


def _openai_planner(reply):
    planner = CloudPlanner.__new__(CloudPlanner)
    planner.provider = "openai"
    planner.model = "gpt-4o"
    planner.client = MagicMock()
    planner.client.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content=reply))]
    return planner


def test_cloud_planner_openai_reply_is_validated():
    planner = _openai_planner(json.dumps(PLAN))

    steps = planner.plan("login with alice and <SENSITIVE_0>", SNAPSHOT)

    assert [s.sequence for s in steps] == [1, 2]
    kwargs = planner.client.chat.completions.create.call_args.kwargs
    user_prompt = kwargs["messages"][1]["content"]
    assert "<SENSITIVE_0>" in user_prompt
    assert '"nodeId":"node-1"' in user_prompt
    assert kwargs["response_format"] == {"type": "json_object"}


def test_cloud_planner_rejects_unsupported_kind():
    planner = _openai_planner(json.dumps({"actions": [{"sequence": 1, "action": {"kind": "click", "target": "x"}}]}))
    with pytest.raises(UnsupportedActionError):
        planner.plan("click x", SNAPSHOT)


def test_cloud_planner_rejects_non_json():
    planner = _openai_planner("I cannot help with that")
    with pytest.raises(PlanValidationError):
        planner.plan("do it", SNAPSHOT)


def test_cloud_planner_anthropic_strips_markdown():
    planner = CloudPlanner.__new__(CloudPlanner)
    planner.provider = "anthropic"
    planner.model = "claude-3-5-sonnet-latest"
    planner.client = MagicMock()
    reply = "Here you go:\n```json\n" + json.dumps(PLAN) + "\n```"
    planner.client.messages.create.return_value.content = [MagicMock(text=reply)]

    steps = planner.plan("go", SNAPSHOT)

    assert len(steps) == 2


@patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"}, clear=False)
def test_cloud_planner_selects_openai_from_env():
    fake_openai = MagicMock()
    with patch.dict("sys.modules", {"openai": fake_openai}):
        planner = CloudPlanner(model="gpt-4o-mini")

    assert planner.provider == "openai"
    assert planner.model == "gpt-4o-mini"
    fake_openai.OpenAI.assert_called_once_with(api_key="sk-test")
