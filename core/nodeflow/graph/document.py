"""
Workflow documents - the editor's JSON export format.

    {
      "id": "...",
      "name": "My AI Agent Workflow",
      "nodes": [
        {"id": "n1", "type": "workflowNode", "position": {...},
         "data": {"type": "chatTrigger", "label": "Chat Trigger", "icon": "...",
                  "color": "...", "config": {...}, "inputs": 0, "outputs": 1}}
      ],
      "edges": [
        {"id": "e1", "source": "n1", "target": "n2", "sourceHandle": "true"}
      ],
      "exportedAt": "2026-01-01T00:00:00"
    }

Node fields may also sit at the top level of a node (``{"id", "type",
"config"}``), which is what hand-written workflows tend to use.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from nodeflow.errors import WorkflowDocumentError
from nodeflow.graph.edge import EdgeSpec, GraphSpec, NodeSpec

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_NAME = "Imported Workflow"

# Editor-only node wrapper type; the real node type lives in data.type
EDITOR_NODE_TYPE = "workflowNode"


def _node_from_document(raw: dict[str, Any]) -> NodeSpec:
    data = raw.get("data") or {}
    node_type = data.get("type")
    if not node_type and raw.get("type") != EDITOR_NODE_TYPE:
        node_type = raw.get("type")
    if not node_type:
        raise WorkflowDocumentError(f"Node '{raw.get('id', '?')}' has no type")

    fields: dict[str, Any] = {
        "id": str(raw.get("id") or uuid.uuid4()),
        "type": node_type,
        "config": data.get("config", raw.get("config")) or {},
    }
    for key in ("label", "description", "icon", "color", "inputs", "outputs"):
        value = data.get(key, raw.get(key))
        if value is not None:
            fields[key] = value
    if "position" in raw:
        fields["position"] = raw["position"]
    return NodeSpec(**fields)


def _edge_from_document(raw: dict[str, Any]) -> EdgeSpec:
    source = raw.get("source")
    target = raw.get("target")
    if not source or not target:
        raise WorkflowDocumentError(f"Edge '{raw.get('id', '?')}' needs a source and a target")
    return EdgeSpec(
        id=str(raw.get("id") or f"{source}->{target}"),
        source=str(source),
        target=str(target),
        source_handle=raw.get("sourceHandle", raw.get("source_handle")),
        target_handle=raw.get("targetHandle", raw.get("target_handle")),
    )


def graph_from_document(document: dict[str, Any]) -> GraphSpec:
    """
    Build a GraphSpec from a parsed workflow document.

    Raises:
        WorkflowDocumentError: if the document is not a workflow
    """
    if not isinstance(document, dict):
        raise WorkflowDocumentError(
            f"Workflow document must be an object, got {type(document).__name__}"
        )

    nodes = document.get("nodes") or []
    edges = document.get("edges") or []
    if not isinstance(nodes, list) or not isinstance(edges, list):
        raise WorkflowDocumentError("'nodes' and 'edges' must be lists")

    try:
        return GraphSpec(
            id=str(document.get("id") or uuid.uuid4()),
            name=document.get("name") or DEFAULT_WORKFLOW_NAME,
            nodes=[_node_from_document(n) for n in nodes],
            edges=[_edge_from_document(e) for e in edges],
        )
    except (ValidationError, AttributeError, TypeError) as e:
        raise WorkflowDocumentError(f"Invalid workflow document: {e}") from e


def graph_to_document(graph: GraphSpec) -> dict[str, Any]:
    """Export a GraphSpec in the editor's document format."""
    nodes = []
    for node in graph.nodes:
        entry: dict[str, Any] = {
            "id": node.id,
            "type": EDITOR_NODE_TYPE,
            "data": {
                "label": node.label,
                "type": node.type,
                "description": node.description,
                "icon": node.icon,
                "color": node.color,
                "config": dict(node.config),
                "inputs": node.inputs,
                "outputs": node.outputs,
            },
        }
        position = getattr(node, "position", None)
        if position is not None:
            entry["position"] = position
        nodes.append(entry)

    edges = []
    for edge in graph.edges:
        entry = {"id": edge.id, "source": edge.source, "target": edge.target}
        if edge.source_handle is not None:
            entry["sourceHandle"] = edge.source_handle
        if edge.target_handle is not None:
            entry["targetHandle"] = edge.target_handle
        edges.append(entry)

    return {
        "id": graph.id,
        "name": graph.name,
        "nodes": nodes,
        "edges": edges,
        "exportedAt": datetime.now().isoformat(),
    }


def load_workflow(path: str | Path) -> GraphSpec:
    """
    Load a workflow document from a JSON file.

    Raises:
        WorkflowDocumentError: if the file is missing, not JSON, or not a workflow
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise WorkflowDocumentError(f"Cannot read workflow file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise WorkflowDocumentError(f"Workflow file {path} is not valid JSON: {e}") from e

    graph = graph_from_document(document)
    logger.debug(f"Loaded workflow '{graph.name}' ({len(graph.nodes)} nodes) from {path}")
    return graph


def save_workflow(graph: GraphSpec, path: str | Path) -> Path:
    """Write a GraphSpec to a JSON workflow document."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(graph_to_document(graph), indent=2), encoding="utf-8")
    return path
