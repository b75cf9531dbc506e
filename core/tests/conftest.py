"""Shared fixtures for nodeflow tests."""

import pytest

from nodeflow.graph.edge import EdgeSpec, GraphSpec, NodeSpec
from nodeflow.observability import clear_trace_context


@pytest.fixture(autouse=True)
def _clean_trace_context():
    clear_trace_context()
    yield
    clear_trace_context()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Never read the developer's ~/.nodeflow/configuration.json."""
    monkeypatch.setenv("NODEFLOW_CONFIG", str(tmp_path / "no-config.json"))
    monkeypatch.delenv("NODEFLOW_NODE_TIMEOUT", raising=False)
    monkeypatch.delenv("NODEFLOW_LOG_LEVEL", raising=False)


@pytest.fixture
def hello_graph() -> GraphSpec:
    """trigger -> ifCondition(message contains 'hello') -> [true: A] [false: B]"""
    return GraphSpec(
        id="hello-flow",
        name="Hello Flow",
        nodes=[
            NodeSpec(id="trigger", type="chatTrigger", label="Chat Trigger", inputs=0),
            NodeSpec(
                id="check",
                type="ifCondition",
                label="If Condition",
                outputs=2,
                config={"field": "message", "operator": "contains", "value": "hello"},
            ),
            NodeSpec(
                id="a",
                type="sendMessage",
                label="Send A",
                outputs=0,
                config={"message": "Greeting received"},
            ),
            NodeSpec(
                id="b",
                type="sendMessage",
                label="Send B",
                outputs=0,
                config={"message": "No greeting"},
            ),
        ],
        edges=[
            EdgeSpec(id="e1", source="trigger", target="check"),
            EdgeSpec(id="e2", source="check", target="a", source_handle="true"),
            EdgeSpec(id="e3", source="check", target="b", source_handle="false"),
        ],
    )
