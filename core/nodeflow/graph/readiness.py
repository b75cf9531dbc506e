"""
Readiness Tracker - Decides whether a dequeued node may run now.

A node is ready once every incoming edge's source has reached a terminal
state (executed or skipped). Rather than re-checking all predecessors on
every dequeue and re-queueing nodes that are not ready yet, the tracker keeps
a Kahn-style counter of unresolved incoming edges per node. The counter is
decremented each time a predecessor becomes terminal, so:

- a node that is not ready when dequeued is simply dropped; the predecessor
  that resolves its last edge enqueues it again
- a node on a cycle never reaches zero and is reported as unreached instead
  of spinning the run loop forever

Fan-in is a single-source read: a node with several executed predecessors
sees only one of their outputs. Merging all live inputs would need the
state to carry every predecessor output per node.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from nodeflow.graph.edge import GraphIndex


@dataclass
class QueueEntry:
    """A pending visit of a node, with the input its enqueuer handed over."""

    node_id: str
    carried_input: Any = None


@dataclass
class RunState:
    """Mutable state of one run. Owned by the executor for the run's lifetime."""

    executed: set[str] = field(default_factory=set)
    skipped: set[str] = field(default_factory=set)
    outputs: dict[str, Any] = field(default_factory=dict)
    queue: deque[QueueEntry] = field(default_factory=deque)

    def is_terminal(self, node_id: str) -> bool:
        return node_id in self.executed or node_id in self.skipped

    def enqueue(self, node_id: str, carried_input: Any = None) -> None:
        self.queue.append(QueueEntry(node_id=node_id, carried_input=carried_input))


class Readiness(StrEnum):
    """Verdict for a dequeued node."""

    DONE = "done"  # Already executed or skipped, nothing to do
    WAITING = "waiting"  # Some predecessor still pending
    SKIP = "skip"  # All predecessors skipped
    RUN = "run"  # Dispatch now


class ReadinessTracker:
    """Tracks unresolved predecessors and terminal-state transitions for one run."""

    def __init__(self, index: GraphIndex, state: RunState):
        self.index = index
        self.state = state
        self._pending_edges: dict[str, int] = {
            node_id: len(index.incoming(node_id)) for node_id in index.order
        }

    def pending_predecessors(self, node_id: str) -> int:
        return self._pending_edges.get(node_id, 0)

    def is_ready(self, node_id: str) -> bool:
        return self._pending_edges.get(node_id, 0) == 0

    def has_executed_predecessor(self, node_id: str) -> bool:
        return any(e.source in self.state.executed for e in self.index.incoming(node_id))

    def check(self, node_id: str) -> Readiness:
        """Classify a node pulled off the queue."""
        if self.state.is_terminal(node_id):
            return Readiness.DONE
        if not self.is_ready(node_id):
            return Readiness.WAITING
        if self.index.incoming(node_id) and not self.has_executed_predecessor(node_id):
            return Readiness.SKIP
        return Readiness.RUN

    def resolve_input(self, node_id: str, carried_input: Any = None) -> Any:
        """
        Input for a node about to run.

        The carried input wins when present; otherwise the output of the
        first executed predecessor in incoming-edge order.
        """
        if carried_input is not None:
            return carried_input
        for edge in self.index.incoming(node_id):
            if edge.source in self.state.executed:
                return self.state.outputs.get(edge.source)
        return None

    def mark_executed(self, node_id: str, output: Any = None) -> None:
        if self.state.is_terminal(node_id):
            return
        self.state.executed.add(node_id)
        self.state.outputs[node_id] = output
        self._release_successors(node_id)

    def mark_skipped(self, node_id: str) -> bool:
        """Mark a node skipped. Returns False if it was already terminal."""
        if self.state.is_terminal(node_id):
            return False
        self.state.skipped.add(node_id)
        self._release_successors(node_id)
        return True

    def propagate_skip(self, node_id: str) -> None:
        """Skip a node whose predecessors were all skipped, and re-check its successors."""
        if self.mark_skipped(node_id):
            for target in self.index.successors(node_id):
                self.state.enqueue(target)

    def unreached(self) -> list[str]:
        """Nodes that never reached a terminal state."""
        return [nid for nid in self.index.order if not self.state.is_terminal(nid)]

    def _release_successors(self, node_id: str) -> None:
        for edge in self.index.outgoing(node_id):
            self._pending_edges[edge.target] -= 1
