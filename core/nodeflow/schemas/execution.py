"""
Execution Schema - What a run records about itself.

NodeExecution is the per-node record handed to progress observers and kept
in the run's execution log. ExecutionResult is what ``execute()`` returns
once the queue drains.
"""

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, computed_field

if TYPE_CHECKING:
    from nodeflow.graph.edge import NodeSpec


class ExecutionStatus(StrEnum):
    """Status of a single node execution."""

    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class NodeExecution(BaseModel):
    """
    Record of one node run.

    Created with status RUNNING when the node is dispatched. The finished
    record is a separate copy, so a RUNNING snapshot given to an observer
    never changes underneath it.
    """

    node_id: str
    node_label: str = ""
    node_type: str = ""
    node_icon: str = ""
    node_color: str = ""

    status: ExecutionStatus = ExecutionStatus.RUNNING
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: datetime | None = None
    duration_ms: int | None = None

    input: Any = None
    output: Any = None
    error: str | None = None
    branch: str | None = None  # Label chosen by a conditional node

    model_config = {"frozen": True}

    @classmethod
    def started(cls, node: "NodeSpec", input_data: Any = None) -> "NodeExecution":
        return cls(
            node_id=node.id,
            node_label=node.display_label,
            node_type=node.type,
            node_icon=node.icon,
            node_color=node.color,
            input=input_data,
        )

    def finish(
        self,
        output: Any = None,
        error: str | None = None,
        branch: str | None = None,
    ) -> "NodeExecution":
        """Return the terminal copy of this record."""
        end_time = datetime.now()
        return self.model_copy(
            update={
                "status": ExecutionStatus.ERROR if error is not None else ExecutionStatus.SUCCESS,
                "end_time": end_time,
                "duration_ms": int((end_time - self.start_time).total_seconds() * 1000),
                "output": output,
                "error": error,
                "branch": branch,
            }
        )

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    def to_summary(self) -> str:
        line = f"{self.node_label} [{self.status.value}]"
        if self.duration_ms is not None:
            line += f" {self.duration_ms}ms"
        if self.error:
            line += f": {self.error}"
        return line


class ExecutionResult(BaseModel):
    """Result of running a workflow graph once."""

    success: bool
    executions: list[NodeExecution] = Field(default_factory=list)  # Completion order
    final_output: str = ""
    total_duration_ms: int = 0
    error: str | None = None

    run_id: str = ""
    executed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    unreached: list[str] = Field(default_factory=list)  # Never became ready (cycles)
    cancelled: bool = False

    @computed_field
    @property
    def failed_nodes(self) -> list[str]:
        return [e.node_id for e in self.executions if e.status == ExecutionStatus.ERROR]

    def get_execution(self, node_id: str) -> NodeExecution | None:
        for execution in self.executions:
            if execution.node_id == node_id:
                return execution
        return None
