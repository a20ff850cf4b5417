import json
from datetime import datetime
from unittest.mock import patch

from click.testing import CliRunner

from shadowpilot import RunResult, __version__
from shadowpilot.cli.main import cli
from shadowpilot.layers.action.executor import ActionResult
from shadowpilot.layers.sense.serializer import SnapshotNode

URL = "https://example.test"
NODE = SnapshotNode(role="button", name="Send", tag="button", node_id="node-1", path="button:nth-of-type(1)")


def _result(success=True, error=None):
    now = datetime.now()
    return RunResult(
        success=success,
        url=URL,
        instruction="",
        start_time=now,
        end_time=now,
        results=[ActionResult(sequence=1, action="goto", target=URL, duration_ms=5.0)],
        snapshot_before=[NODE],
        error=error,
    )


def test_version():
    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert f"Shadowpilot v{__version__}" in result.output


def test_run_static_needs_plan():
    result = CliRunner().invoke(cli, ["run", URL, "--planner", "static"])
    assert result.exit_code == 2
    assert "--plan is required" in result.output


def test_run_with_plan(tmp_path):
    plan = tmp_path / "plan.json"
    plan.write_text("[]", encoding="utf-8")

    with patch("shadowpilot.ShadowpilotRunner") as runner_cls:
        runner_cls.return_value.run.return_value = _result()
        result = CliRunner().invoke(cli, ["run", URL, "--plan", str(plan), "--headless"])

    assert result.exit_code == 0, result.output
    kwargs = runner_cls.call_args.kwargs
    assert kwargs["planner_type"] == "static"
    assert kwargs["plan_path"] == str(plan)
    assert kwargs["headless"] is True
    assert "Completed 1 steps" in result.output


def test_run_failure_exits_nonzero():
    with patch("shadowpilot.ShadowpilotRunner") as runner_cls:
        runner_cls.return_value.run.return_value = _result(success=False, error="Input not found")
        result = CliRunner().invoke(cli, ["run", URL, "-i", "fill the form"])

    assert result.exit_code == 1
    assert runner_cls.call_args.kwargs["planner_type"] == "cloud"
    assert "Input not found" in result.output


def test_snapshot_to_file(tmp_path):
    output = tmp_path / "snap.json"

    with patch("shadowpilot.ShadowpilotRunner") as runner_cls:
        runner_cls.return_value.snapshot.return_value = [NODE]
        result = CliRunner().invoke(cli, ["snapshot", URL, "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8"))[0]["nodeId"] == "node-1"
    runner_cls.return_value.close.assert_called_once()


def test_snapshot_to_stdout():
    with patch("shadowpilot.ShadowpilotRunner") as runner_cls:
        runner_cls.return_value.snapshot.return_value = [NODE]
        result = CliRunner().invoke(cli, ["snapshot", URL])

    assert result.exit_code == 0
    assert '"name": "Send"' in result.output
