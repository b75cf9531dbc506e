"""
Branch Pruner - Skips the sub-graphs a conditional node did not choose.

After a conditional node succeeds, each outgoing edge is either on the taken
branch (its handle equals the returned label) or not. Targets on the taken
branch are enqueued with the node's output. Targets off it are skipped at
once, together with everything reachable from them, before any of those
nodes can be dequeued. A node reachable from an un-taken branch is skipped
even if another live path also leads to it.
"""

import logging
from collections import deque
from typing import Any

from nodeflow.graph.edge import EdgeSpec, GraphIndex
from nodeflow.graph.readiness import ReadinessTracker

logger = logging.getLogger(__name__)


class BranchPruner:
    """Routes a conditional node's successors and prunes the losing branches."""

    def __init__(self, index: GraphIndex, tracker: ReadinessTracker):
        self.index = index
        self.tracker = tracker

    def split_edges(self, node_id: str, branch: str) -> tuple[list[EdgeSpec], list[EdgeSpec]]:
        """Partition outgoing edges into (taken, not taken) for a branch label."""
        taken: list[EdgeSpec] = []
        not_taken: list[EdgeSpec] = []
        for edge in self.index.outgoing(node_id):
            if edge.handle == branch:
                taken.append(edge)
            else:
                not_taken.append(edge)
        return taken, not_taken

    def apply(self, node_id: str, branch: str, output: Any) -> list[str]:
        """
        Route successors of a conditional node.

        Returns:
            IDs of the nodes newly marked skipped, in marking order
        """
        taken, not_taken = self.split_edges(node_id, branch)

        pruned: list[str] = []
        for edge in not_taken:
            pruned.extend(self.prune_from(edge.target))

        # Enqueue after pruning so a target that is also reachable from a
        # losing branch is already skipped when dequeued
        for edge in taken:
            self.tracker.state.enqueue(edge.target, output)

        if pruned:
            logger.info(
                f"   ✂ Branch '{branch}' taken at '{node_id}', skipped {len(pruned)} node(s): "
                f"{pruned}"
            )
        return pruned

    def prune_from(self, start_id: str) -> list[str]:
        """Breadth-first skip of start_id and its whole downstream closure."""
        pruned: list[str] = []
        visited: set[str] = set()
        to_visit = deque([start_id])
        while to_visit:
            current = to_visit.popleft()
            if current in visited:
                continue
            visited.add(current)
            if self.tracker.mark_skipped(current):
                pruned.append(current)
            for target in self.index.successors(current):
                if target not in visited:
                    to_visit.append(target)
        return pruned
