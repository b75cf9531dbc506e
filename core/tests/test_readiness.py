"""
Tests for ReadinessTracker: predecessor counting, skip detection and input resolution.
"""

from nodeflow.graph.edge import EdgeSpec, GraphIndex, GraphSpec, NodeSpec
from nodeflow.graph.readiness import Readiness, ReadinessTracker, RunState


def _tracker(node_ids, edges) -> ReadinessTracker:
    graph = GraphSpec(
        nodes=[NodeSpec(id=nid, type="step") for nid in node_ids],
        edges=[EdgeSpec(id=f"{s}->{t}", source=s, target=t) for s, t in edges],
    )
    return ReadinessTracker(GraphIndex.build(graph), RunState())


def test_start_node_is_ready_to_run():
    tracker = _tracker(["a", "b"], [("a", "b")])

    assert tracker.check("a") == Readiness.RUN
    assert tracker.pending_predecessors("a") == 0


def test_node_waits_until_every_predecessor_is_terminal():
    tracker = _tracker(["s1", "s2", "m"], [("s1", "m"), ("s2", "m")])

    assert tracker.check("m") == Readiness.WAITING
    assert tracker.pending_predecessors("m") == 2

    tracker.mark_executed("s1", {"from": "s1"})
    assert tracker.check("m") == Readiness.WAITING
    assert tracker.pending_predecessors("m") == 1

    tracker.mark_executed("s2", {"from": "s2"})
    assert tracker.check("m") == Readiness.RUN


def test_skipped_predecessor_counts_as_resolved():
    tracker = _tracker(["s1", "s2", "m"], [("s1", "m"), ("s2", "m")])

    tracker.mark_executed("s1", "out")
    tracker.mark_skipped("s2")

    assert tracker.check("m") == Readiness.RUN


def test_all_predecessors_skipped_yields_skip():
    tracker = _tracker(["s1", "s2", "m"], [("s1", "m"), ("s2", "m")])

    tracker.mark_skipped("s1")
    tracker.mark_skipped("s2")

    assert tracker.check("m") == Readiness.SKIP


def test_terminal_node_is_done():
    tracker = _tracker(["a", "b"], [("a", "b")])

    tracker.mark_executed("a", None)
    tracker.mark_skipped("b")

    assert tracker.check("a") == Readiness.DONE
    assert tracker.check("b") == Readiness.DONE


def test_terminal_state_is_never_overwritten():
    tracker = _tracker(["a", "b"], [("a", "b")])

    tracker.mark_executed("a", "first")
    tracker.mark_executed("a", "second")
    assert tracker.mark_skipped("a") is False

    assert tracker.state.outputs["a"] == "first"
    assert "a" not in tracker.state.skipped
    assert tracker.pending_predecessors("b") == 0


def test_propagate_skip_enqueues_successors():
    tracker = _tracker(["a", "b", "c"], [("a", "b"), ("b", "c")])
    tracker.mark_skipped("a")

    tracker.propagate_skip("b")

    assert "b" in tracker.state.skipped
    assert [e.node_id for e in tracker.state.queue] == ["c"]
    assert tracker.check("c") == Readiness.SKIP


def test_resolve_input_prefers_carried_input():
    tracker = _tracker(["s1", "m"], [("s1", "m")])
    tracker.mark_executed("s1", {"from": "s1"})

    assert tracker.resolve_input("m", {"carried": True}) == {"carried": True}


def test_resolve_input_falls_back_to_first_executed_predecessor():
    tracker = _tracker(["s1", "s2", "m"], [("s1", "m"), ("s2", "m")])
    tracker.mark_skipped("s1")
    tracker.mark_executed("s2", {"from": "s2"})

    assert tracker.resolve_input("m") == {"from": "s2"}


def test_resolve_input_without_executed_predecessor_is_none():
    tracker = _tracker(["a"], [])

    assert tracker.resolve_input("a") is None


def test_cycle_nodes_never_become_ready():
    tracker = _tracker(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "b")])

    tracker.mark_executed("a", None)

    assert tracker.check("b") == Readiness.WAITING
    assert tracker.unreached() == ["b", "c"]
