"""
Graph Model - How nodes connect in a workflow.

A workflow graph is a set of typed nodes joined by directed edges. Edges
leaving a multi-output node carry a ``source_handle`` naming the output port
they hang off; conditional nodes use the handle to select which branch runs.

Edge semantics:
- plain edge: target is enqueued whenever the source finishes
- handled edge on a conditional node: target runs only if the handle equals
  the branch label the node's handler returned; otherwise the target and its
  whole downstream closure are skipped

The graph is read-only during a run. ``GraphIndex`` is the per-run adjacency
view the executor works from.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NodeSpec(BaseModel):
    """
    Specification for a node in a workflow.

    Examples:
        NodeSpec(id="trigger", type="chatTrigger", outputs=1)

        NodeSpec(
            id="check",
            type="ifCondition",
            outputs=2,
            config={"field": "message", "operator": "contains", "value": "hello"},
        )
    """

    id: str
    type: str = Field(description="Discriminator selecting the node handler")
    label: str = ""
    description: str = ""
    icon: str = ""
    color: str = ""

    # Declared arity (from the node catalog)
    inputs: int = Field(default=1, ge=0, description="Declared input count")
    outputs: int = Field(default=1, ge=0, description="Declared output count")

    config: dict[str, Any] = Field(
        default_factory=dict, description="Opaque configuration passed to the handler"
    )

    model_config = {"extra": "allow", "frozen": True}

    @property
    def display_label(self) -> str:
        return self.label or self.type

    @property
    def is_multi_output(self) -> bool:
        return self.outputs > 1


class EdgeSpec(BaseModel):
    """
    Specification for an edge between nodes.

    Examples:
        # Plain data edge
        EdgeSpec(id="e1", source="trigger", target="agent")

        # Branch edge off an ifCondition node
        EdgeSpec(id="e2", source="check", target="greet", source_handle="true")
    """

    id: str = ""
    source: str = Field(description="Source node ID")
    target: str = Field(description="Target node ID")
    source_handle: str | None = Field(
        default=None, description="Output port label on the source node"
    )
    target_handle: str | None = None

    model_config = {"extra": "allow", "frozen": True}

    @property
    def handle(self) -> str:
        """Port label used for branch matching; unlabeled edges match ''."""
        return self.source_handle or ""


class GraphSpec(BaseModel):
    """
    Complete specification of a workflow graph.

    GraphSpec(
        id="support-bot",
        name="Support Bot",
        nodes=[NodeSpec(...), ...],
        edges=[EdgeSpec(...), ...],
    )
    """

    id: str = ""
    name: str = ""
    nodes: list[NodeSpec] = Field(default_factory=list)
    edges: list[EdgeSpec] = Field(default_factory=list)

    model_config = {"extra": "allow"}

    def get_node(self, node_id: str) -> NodeSpec | None:
        """Get a node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_outgoing_edges(self, node_id: str) -> list[EdgeSpec]:
        """Get all edges leaving a node, in declaration order."""
        return [e for e in self.edges if e.source == node_id]

    def get_incoming_edges(self, node_id: str) -> list[EdgeSpec]:
        """Get all edges entering a node."""
        return [e for e in self.edges if e.target == node_id]

    def get_start_nodes(self) -> list[NodeSpec]:
        """Nodes with no valid incoming edge, in declaration order."""
        return GraphIndex.build(self).start_nodes()

    def validate(self, known_types: set[str] | None = None) -> list[str]:
        """
        Validate the graph structure.

        The executor tolerates every problem reported here (dangling edges
        are dropped, cycles leave nodes unreached); this is for editors and
        the CLI to warn before a run.

        Args:
            known_types: Optional set of node types that have handlers

        Returns:
            List of human-readable problems (empty if none)
        """
        errors = []

        seen_ids: set[str] = set()
        for node in self.nodes:
            if node.id in seen_ids:
                errors.append(f"Duplicate node ID: '{node.id}'")
            seen_ids.add(node.id)
            if known_types is not None and node.type not in known_types:
                errors.append(f"Node '{node.id}' has unknown type '{node.type}'")

        for edge in self.edges:
            if edge.source not in seen_ids:
                errors.append(f"Edge '{edge.id}' references missing source '{edge.source}'")
            if edge.target not in seen_ids:
                errors.append(f"Edge '{edge.id}' references missing target '{edge.target}'")

        # Branch edges need a handle to be routable
        for node in self.nodes:
            if not node.is_multi_output:
                continue
            for edge in self.get_outgoing_edges(node.id):
                if not edge.source_handle:
                    errors.append(
                        f"Edge '{edge.id}' leaves multi-output node '{node.id}' "
                        f"without a source handle"
                    )

        index = GraphIndex.build(self)
        cyclic = index.find_cycle_nodes()
        if cyclic:
            errors.append(f"Graph contains a cycle through nodes: {sorted(cyclic)}")

        return errors


@dataclass
class GraphIndex:
    """
    Adjacency view of a GraphSpec, built once per run.

    Lookups are O(1) after one O(V+E) pass. Edges whose source or target is
    not a known node are dropped here and never seen by the executor.
    """

    nodes: dict[str, NodeSpec] = field(default_factory=dict)
    out_edges: dict[str, list[EdgeSpec]] = field(default_factory=dict)
    in_edges: dict[str, list[EdgeSpec]] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)  # Node IDs in declaration order

    @classmethod
    def build(cls, graph: GraphSpec) -> "GraphIndex":
        index = cls()
        for node in graph.nodes:
            if node.id in index.nodes:
                # First declaration wins
                continue
            index.nodes[node.id] = node
            index.order.append(node.id)
            index.out_edges[node.id] = []
            index.in_edges[node.id] = []

        for edge in graph.edges:
            if edge.source not in index.nodes or edge.target not in index.nodes:
                logger.debug(
                    f"Ignoring dangling edge '{edge.id}': {edge.source} -> {edge.target}"
                )
                continue
            index.out_edges[edge.source].append(edge)
            index.in_edges[edge.target].append(edge)

        return index

    def __len__(self) -> int:
        return len(self.nodes)

    def get_node(self, node_id: str) -> NodeSpec | None:
        return self.nodes.get(node_id)

    def outgoing(self, node_id: str) -> list[EdgeSpec]:
        return self.out_edges.get(node_id, [])

    def incoming(self, node_id: str) -> list[EdgeSpec]:
        return self.in_edges.get(node_id, [])

    def successors(self, node_id: str) -> list[str]:
        return [e.target for e in self.outgoing(node_id)]

    def declared_outputs(self, node_id: str) -> int:
        node = self.nodes.get(node_id)
        return node.outputs if node else 0

    def start_nodes(self) -> list[NodeSpec]:
        return [self.nodes[nid] for nid in self.order if not self.in_edges[nid]]

    def find_cycle_nodes(self) -> set[str]:
        """Nodes that Kahn's algorithm can never release (on or behind a cycle)."""
        in_degree = {nid: len(self.in_edges[nid]) for nid in self.order}
        queue = deque(nid for nid, deg in in_degree.items() if deg == 0)
        released: set[str] = set()
        while queue:
            current = queue.popleft()
            released.add(current)
            for target in self.successors(current):
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)
        return set(self.order) - released
