"""
Tests for BranchPruner: edge partitioning and eager skipping of losing branches.
"""

from nodeflow.graph.edge import EdgeSpec, GraphIndex, GraphSpec, NodeSpec
from nodeflow.graph.pruner import BranchPruner
from nodeflow.graph.readiness import ReadinessTracker, RunState


def _pruner(node_ids, edges) -> BranchPruner:
    graph = GraphSpec(
        nodes=[NodeSpec(id=nid, type="step") for nid in node_ids],
        edges=[
            EdgeSpec(id=f"{s}->{t}", source=s, target=t, source_handle=h) for s, t, h in edges
        ],
    )
    index = GraphIndex.build(graph)
    return BranchPruner(index, ReadinessTracker(index, RunState()))


def test_split_edges_by_handle():
    pruner = _pruner(
        ["if", "a", "b", "c"],
        [("if", "a", "true"), ("if", "b", "false"), ("if", "c", "true")],
    )

    taken, not_taken = pruner.split_edges("if", "true")

    assert [e.target for e in taken] == ["a", "c"]
    assert [e.target for e in not_taken] == ["b"]


def test_empty_branch_takes_unlabeled_edges():
    pruner = _pruner(["if", "a", "b"], [("if", "a", None), ("if", "b", "false")])

    taken, not_taken = pruner.split_edges("if", "")

    assert [e.target for e in taken] == ["a"]
    assert [e.target for e in not_taken] == ["b"]


def test_apply_prunes_losing_branch_and_enqueues_taken():
    pruner = _pruner(
        ["if", "a", "b", "b2"],
        [("if", "a", "true"), ("if", "b", "false"), ("b", "b2", None)],
    )
    pruner.tracker.mark_executed("if", {"result": True})

    pruned = pruner.apply("if", "true", {"result": True})

    state = pruner.tracker.state
    assert pruned == ["b", "b2"]
    assert state.skipped == {"b", "b2"}
    assert [(e.node_id, e.carried_input) for e in state.queue] == [("a", {"result": True})]


def test_unmatched_branch_prunes_every_successor():
    pruner = _pruner(["if", "a", "b"], [("if", "a", "true"), ("if", "b", "false")])
    pruner.tracker.mark_executed("if", None)

    pruned = pruner.apply("if", "maybe", None)

    assert pruned == ["a", "b"]
    assert not pruner.tracker.state.queue


def test_shared_descendant_is_pruned_even_with_live_path():
    # if -true-> a -> m ; if -false-> b -> m
    pruner = _pruner(
        ["if", "a", "b", "m"],
        [("if", "a", "true"), ("if", "b", "false"), ("a", "m", None), ("b", "m", None)],
    )
    pruner.tracker.mark_executed("if", None)

    pruned = pruner.apply("if", "true", None)

    assert pruned == ["b", "m"]
    assert "m" in pruner.tracker.state.skipped


def test_prune_from_leaves_executed_nodes_untouched():
    pruner = _pruner(["x", "y", "z"], [("x", "y", None), ("y", "z", None)])
    pruner.tracker.mark_executed("y", "done")

    pruned = pruner.prune_from("x")

    assert pruned == ["x", "z"]
    assert "y" in pruner.tracker.state.executed
    assert "y" not in pruner.tracker.state.skipped


def test_prune_from_terminates_on_cycles():
    pruner = _pruner(["a", "b"], [("a", "b", None), ("b", "a", None)])

    assert pruner.prune_from("a") == ["a", "b"]
