"""Final-output extraction for a finished run."""

import json
from typing import Any

from nodeflow.schemas.execution import ExecutionResult, ExecutionStatus, NodeExecution

# Output fields checked, in order, for a human-readable answer
TEXT_FIELDS = ("response", "message", "result")

EMPTY_WORKFLOW_MESSAGE = "No nodes in the workflow. Please add nodes first."


def output_to_text(output: Any) -> str:
    """
    Render a node output as text.

    Dict outputs yield their first truthy ``response``/``message``/``result``
    field; otherwise the whole output is dumped as indented JSON.
    """
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    if isinstance(output, dict):
        for key in TEXT_FIELDS:
            value = output.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value, default=str)
        return json.dumps(output, indent=2, default=str)
    return json.dumps(output, indent=2, default=str)


def last_successful(executions: list[NodeExecution]) -> NodeExecution | None:
    for execution in reversed(executions):
        if execution.status == ExecutionStatus.SUCCESS:
            return execution
    return None


def extract_final_output(executions: list[NodeExecution]) -> str:
    """Text of the chronologically last successful execution ('' if none)."""
    last = last_successful(executions)
    if last is None:
        return ""
    return output_to_text(last.output)


def empty_workflow_result(run_id: str = "") -> ExecutionResult:
    return ExecutionResult(
        success=False,
        final_output=EMPTY_WORKFLOW_MESSAGE,
        total_duration_ms=0,
        error="Empty workflow",
        run_id=run_id,
    )


def build_run_result(
    executions: list[NodeExecution],
    total_duration_ms: int,
    run_id: str = "",
    executed: list[str] | None = None,
    skipped: list[str] | None = None,
    unreached: list[str] | None = None,
    error: str | None = None,
    cancelled: bool = False,
) -> ExecutionResult:
    """
    Assemble the result of a graph that had nodes.

    Such a run reports ``success=True`` even when no node succeeded (the
    final output is then empty); only a run-level error (cancellation,
    fail-fast halt) turns it into a failure.
    """
    return ExecutionResult(
        success=error is None,
        executions=list(executions),
        final_output=extract_final_output(executions),
        total_duration_ms=total_duration_ms,
        error=error,
        run_id=run_id,
        executed=executed or [],
        skipped=skipped or [],
        unreached=unreached or [],
        cancelled=cancelled,
    )
