"""
Tests for the nodeflow command-line interface.
"""

import json
from pathlib import Path

import pytest

from nodeflow import cli
from nodeflow.graph.document import save_workflow


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    # configure_logging replaces the root handlers, which would hide caplog
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


@pytest.fixture
def workflow_path(tmp_path, hello_graph):
    return save_workflow(hello_graph, tmp_path / "hello.json")


def test_run_prints_progress_and_output(workflow_path, capsys):
    code = cli.main(["run", str(workflow_path), "--message", "hello"])

    out = capsys.readouterr().out
    assert code == 0
    assert "▶ Chat Trigger (chatTrigger)" in out
    assert "→ true" in out
    assert "Skipped: b" in out
    assert out.rstrip().endswith("Greeting received")


def test_run_json_output(workflow_path, capsys):
    code = cli.main(["run", str(workflow_path), "-m", "good morning", "--json"])

    result = json.loads(capsys.readouterr().out)
    assert code == 0
    assert result["success"] is True
    assert result["final_output"] == "No greeting"
    assert result["skipped"] == ["a"]
    assert [e["node_id"] for e in result["executions"]] == ["trigger", "check", "b"]


def test_run_fail_fast_exit_code(workflow_path, capsys):
    # The simulated trigger latency outlasts the timeout
    code = cli.main(
        ["run", str(workflow_path), "--fail-fast", "--simulate-delay", "--timeout", "0.01"]
    )

    out = capsys.readouterr().out
    assert code == 1
    assert "✗ Chat Trigger: Node 'trigger' timed out after 0.01s" in out
    assert "Error: Node 'trigger' failed" in out
    assert "▶ If Condition" not in out


def test_run_missing_file(tmp_path, capsys):
    code = cli.main(["run", str(tmp_path / "nope.json")])

    assert code == 1
    assert "Error:" in capsys.readouterr().err


def test_validate_valid_workflow(workflow_path, capsys):
    code = cli.main(["validate", str(workflow_path)])

    assert code == 0
    assert "is valid (4 nodes, 3 edges)" in capsys.readouterr().out


def test_validate_reports_problems(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(
        json.dumps(
            {
                "name": "Bad",
                "nodes": [{"id": "x", "type": "teleport"}],
                "edges": [{"source": "x", "target": "y"}],
            }
        ),
        encoding="utf-8",
    )

    code = cli.main(["validate", str(path)])

    out = capsys.readouterr().out
    assert code == 1
    assert "'Bad' has 2 problem(s)" in out
    assert "unknown type 'teleport'" in out


def test_catalog_by_category(capsys):
    code = cli.main(["catalog", "--category", "flow"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert code == 0
    assert [line.split()[0] for line in lines] == ["ifCondition", "switchNode", "mergeNode"]


def test_catalog_json(capsys):
    cli.main(["catalog", "--json"])

    entries = json.loads(capsys.readouterr().out)
    assert len(entries) == 18
    assert entries[0]["type"] == "chatTrigger"


def test_bundled_example_workflow(capsys):
    example = Path(__file__).resolve().parents[2] / "examples" / "hello_workflow.json"

    code = cli.main(["run", str(example), "-m", "hello", "--json"])

    result = json.loads(capsys.readouterr().out)
    assert code == 0
    assert [e["node_id"] for e in result["executions"]] == ["trigger", "check", "agent", "reply"]
    assert result["skipped"] == ["search", "summary"]
    assert result["final_output"].startswith("Hello! 👋")


def test_run_rejects_unknown_log_level(workflow_path, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["run", str(workflow_path), "--log-level", "loud"])

    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_run_log_level_is_case_insensitive(workflow_path, monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: calls.append(kwargs))

    code = cli.main(["run", str(workflow_path), "--log-level", "debug"])

    assert code == 0
    assert calls[0]["level"] == "DEBUG"
