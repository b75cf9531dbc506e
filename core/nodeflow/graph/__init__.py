"""Graph structures: Nodes, Edges, and the workflow executor."""

from nodeflow.graph.conditions import evaluate_condition, resolve_field
from nodeflow.graph.document import (
    graph_from_document,
    graph_to_document,
    load_workflow,
    save_workflow,
)
from nodeflow.graph.edge import EdgeSpec, GraphIndex, GraphSpec, NodeSpec
from nodeflow.graph.executor import WorkflowExecutor
from nodeflow.graph.node import (
    CancellationToken,
    FunctionHandler,
    NodeContext,
    NodeHandler,
    NodeResult,
)
from nodeflow.graph.pruner import BranchPruner
from nodeflow.graph.readiness import Readiness, ReadinessTracker, RunState
from nodeflow.graph.registry import NodeRegistry
from nodeflow.graph.result import extract_final_output, output_to_text

__all__ = [
    # Graph model
    "NodeSpec",
    "EdgeSpec",
    "GraphSpec",
    "GraphIndex",
    # Node contract
    "NodeHandler",
    "FunctionHandler",
    "NodeContext",
    "NodeResult",
    "CancellationToken",
    "NodeRegistry",
    # Execution
    "WorkflowExecutor",
    "RunState",
    "Readiness",
    "ReadinessTracker",
    "BranchPruner",
    "extract_final_output",
    "output_to_text",
    # Conditions
    "evaluate_condition",
    "resolve_field",
    # Documents
    "load_workflow",
    "save_workflow",
    "graph_from_document",
    "graph_to_document",
]
