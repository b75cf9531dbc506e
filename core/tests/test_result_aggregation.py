"""
Tests for final-output extraction and run result assembly.
"""

from nodeflow.graph.edge import NodeSpec
from nodeflow.graph.result import (
    build_run_result,
    empty_workflow_result,
    extract_final_output,
    output_to_text,
)
from nodeflow.schemas.execution import ExecutionStatus, NodeExecution


def _record(node_id: str, output=None, error=None) -> NodeExecution:
    return NodeExecution.started(NodeSpec(id=node_id, type="step")).finish(
        output=output, error=error
    )


def test_output_to_text_field_priority():
    assert output_to_text({"message": "m", "response": "r"}) == "r"
    assert output_to_text({"message": "m", "result": "x"}) == "m"
    assert output_to_text({"response": "", "result": "x"}) == "x"


def test_output_to_text_non_string_field_is_json():
    assert output_to_text({"result": {"processed": True}}) == '{"processed": true}'


def test_output_to_text_falls_back_to_json_dump():
    assert output_to_text({"sent": True}) == '{\n  "sent": true\n}'
    assert output_to_text([1, 2]) == "[\n  1,\n  2\n]"


def test_output_to_text_scalars():
    assert output_to_text(None) == ""
    assert output_to_text("plain") == "plain"


def test_final_output_uses_last_success():
    executions = [
        _record("a", {"response": "first"}),
        _record("b", {"response": "second"}),
        _record("c", error="broke"),
    ]

    assert extract_final_output(executions) == "second"


def test_final_output_empty_without_success():
    assert extract_final_output([_record("a", error="broke")]) == ""
    assert extract_final_output([]) == ""


def test_build_run_result_success():
    executions = [_record("a", {"message": "done"}), _record("b", error="x")]

    result = build_run_result(
        executions, total_duration_ms=12, run_id="r1", executed=["a", "b"], skipped=["c"]
    )

    assert result.success is True
    assert result.final_output == "done"
    assert result.failed_nodes == ["b"]
    assert result.skipped == ["c"]
    assert result.model_dump()["failed_nodes"] == ["b"]


def test_build_run_result_with_error_fails():
    result = build_run_result([], total_duration_ms=1, error="Execution cancelled", cancelled=True)

    assert result.success is False
    assert result.cancelled is True


def test_empty_workflow_result():
    result = empty_workflow_result("r2")

    assert result.success is False
    assert result.final_output == "No nodes in the workflow. Please add nodes first."
    assert result.run_id == "r2"


def test_finished_record_is_a_copy():
    started = NodeExecution.started(NodeSpec(id="a", type="step", label="Step A"), {"in": 1})
    finished = started.finish(output={"out": 1}, branch="true")

    assert started.status == ExecutionStatus.RUNNING
    assert started.output is None
    assert finished.status == ExecutionStatus.SUCCESS
    assert finished.branch == "true"
    assert finished.input == {"in": 1}
    assert finished.node_label == "Step A"
    assert finished.duration_ms >= 0
    assert finished.to_summary().startswith("Step A [success]")


def test_error_record():
    record = _record("a", error="boom")

    assert record.status == ExecutionStatus.ERROR
    assert record.succeeded is False
    assert record.to_summary().endswith(": boom")
