"""Tests for the flow CLI."""
import json

import pytest
from click.testing import CliRunner

from flow_core import __version__
from flow_core.capabilities import DEFAULT_CAPABILITIES
from flow_core.cli.main import cli, parse_input_pairs
from flow_core.trace import TraceRun


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def broken_workflow(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text(
        "nodes:\n"
        "  - id: start\n"
        "    type: input\n"
        "  - id: odd\n"
        "    type: frobnicate\n"
        "edges:\n"
        "  - source: start\n"
        "    target: odd\n"
    )
    return path


@pytest.fixture
def cyclic_workflow(tmp_path):
    path = tmp_path / "cyclic.yaml"
    path.write_text(
        "nodes: [{id: a, type: output}, {id: b, type: output}]\n"
        "edges: [{source: a, target: b}, {source: b, target: a}]\n"
    )
    return path


@pytest.fixture
def enabled_config(tmp_path):
    path = tmp_path / "flow.test.yaml"
    path.write_text(
        "capabilities:\n"
        "  base_url: http://127.0.0.1:9/api\n"
        "  overrides:\n"
        "    language:\n"
        "      available: true\n"
    )
    return path


class TestParseInputPairs:
    def test_json_and_text_values(self):
        assert parse_input_pairs(("n=3", "name=Ada", "obj={\"a\": 1}")) == {"n": 3, "name": "Ada", "obj": {"a": 1}}

    def test_value_may_contain_equals(self):
        assert parse_input_pairs(("expr=a=b",)) == {"expr": "a=b"}


class TestRunCommand:
    def test_run_greeting(self, runner, examples_dir):
        result = runner.invoke(cli, ["run", str(examples_dir / "greeting.yaml"), "-i", "name=Ada"])
        assert result.exit_code == 0, result.output
        assert "Status: OK" in result.output
        assert "Hello, Ada!" in result.output

    def test_run_json(self, runner, examples_dir):
        result = runner.invoke(cli, ["run", str(examples_dir / "scores.yaml"), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["status"] == "completed"
        assert data["outputs"] == {"summary": {"result": 56}}

    def test_inputs_file(self, runner, examples_dir, tmp_path):
        inputs = tmp_path / "inputs.json"
        inputs.write_text('{"name": "Grace"}')
        result = runner.invoke(cli, ["run", str(examples_dir / "greeting.yaml"), "-f", str(inputs)])
        assert "Hello, Grace!" in result.output

    def test_run_failure_exits_nonzero(self, runner, broken_workflow):
        result = runner.invoke(cli, ["run", str(broken_workflow)])
        assert result.exit_code == 1
        assert "Unknown node type: frobnicate" in result.output
        assert "Failed node: odd" in result.output

    def test_run_writes_trace(self, runner, examples_dir, tmp_path):
        trace = tmp_path / "traces" / "greeting.jsonl"
        result = runner.invoke(cli, ["run", str(examples_dir / "greeting.yaml"), "--trace", str(trace)])
        assert result.exit_code == 0, result.output
        assert f"Trace saved to: {trace}" in result.output
        assert TraceRun.from_jsonl_file(str(trace)).end_event is not None

    def test_bad_input_pair(self, runner, examples_dir):
        result = runner.invoke(cli, ["run", str(examples_dir / "greeting.yaml"), "-i", "novalue"])
        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output

    def test_invalid_workflow_file(self, runner, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- not a workflow\n")
        result = runner.invoke(cli, ["run", str(path)])
        assert result.exit_code == 1
        assert "must contain a mapping" in result.output


class TestValidateCommand:
    def test_valid(self, runner, examples_dir):
        result = runner.invoke(cli, ["validate", str(examples_dir / "greeting.yaml")])
        assert result.exit_code == 0
        assert "Workflow 'greeting' is valid (3 nodes, 2 edges)" in result.output

    def test_cycle(self, runner, cyclic_workflow):
        result = runner.invoke(cli, ["validate", str(cyclic_workflow)])
        assert result.exit_code == 1
        assert "circular dependencies" in result.output


class TestInspectionCommands:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert __version__ in result.output

    def test_capabilities_none_available(self, runner):
        result = runner.invoke(cli, ["capabilities"])
        assert result.exit_code == 0
        assert "No capabilities available." in result.output

    def test_capabilities_all(self, runner):
        result = runner.invoke(cli, ["capabilities", "--all"])
        assert "language" in result.output
        assert "aevov-language/v1" in result.output
        assert "[unavailable]" in result.output

    def test_capabilities_from_config(self, runner, enabled_config):
        result = runner.invoke(cli, ["-c", str(enabled_config), "capabilities"])
        assert result.exit_code == 0, result.output
        assert "Language Engine [available]" in result.output
        assert "image" not in result.output

    def test_node_types(self, runner):
        result = runner.invoke(cli, ["node-types", "--all"])
        data = json.loads(result.stdout)
        assert {"input", "output", "http", "code", "language"} <= set(data["node_types"])

    def test_health(self, runner):
        result = runner.invoke(cli, ["health"])
        data = json.loads(result.stdout)
        assert data["status"] == "healthy"
        assert data["capabilities_total"] == len(DEFAULT_CAPABILITIES)
        assert data["capabilities_available"] == 0
        assert data["transport"] is None

    def test_health_with_config(self, runner, enabled_config):
        data = json.loads(runner.invoke(cli, ["-c", str(enabled_config), "health"]).stdout)
        assert data["capabilities_available"] == 1
        assert data["transport"] == "HTTPCapabilityTransport"
