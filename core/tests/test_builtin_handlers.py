"""
Tests for the built-in node handlers and the default registry.
"""

import pytest

from nodeflow.graph.edge import NodeSpec
from nodeflow.graph.node import FunctionHandler, NodeContext
from nodeflow.nodes.builtin import (
    IfConditionHandler,
    SimulatedHandler,
    create_default_registry,
    generate_reply,
)
from nodeflow.nodes.catalog import list_node_definitions


def _ctx(node_type: str, message: str = "", config=None, input=None) -> NodeContext:
    config = config or {}
    return NodeContext(
        node=NodeSpec(id="n", type=node_type, config=config),
        input=input,
        message=message,
        config=dict(config),
    )


def test_generate_reply_keywords():
    assert generate_reply("Hello!").startswith("Hello! 👋")
    assert generate_reply("I need HELP").startswith("Sure! I can help you with")
    assert generate_reply("run the workflow").startswith("Your workflow has been executed")
    assert generate_reply("search docs").startswith("Search completed!")
    assert generate_reply("code please") == "Code executed successfully! ✅"
    assert generate_reply("qwerty").startswith('Your message received: "qwerty"')


def test_default_registry_covers_catalog():
    registry = create_default_registry()

    for definition in list_node_definitions():
        assert definition.type in registry


def test_unknown_type_falls_back_to_passthrough():
    registry = create_default_registry()

    assert "custom" not in registry
    assert isinstance(registry.get("custom"), SimulatedHandler)


@pytest.mark.asyncio
async def test_trigger_echoes_message():
    handler = create_default_registry().get("chatTrigger")

    result = await handler.execute(_ctx("chatTrigger", message="hi"))

    assert result.output["message"] == "hi"
    assert "timestamp" in result.output


@pytest.mark.asyncio
async def test_send_message_prefers_configured_text():
    handler = create_default_registry().get("sendMessage")

    configured = await handler.execute(_ctx("sendMessage", "hello", {"message": "Fixed"}))
    generated = await handler.execute(_ctx("sendMessage", "hello"))

    assert configured.output["message"] == "Fixed"
    assert generated.output["message"] == generate_reply("hello")


@pytest.mark.asyncio
async def test_merge_node_reports_its_input():
    handler = create_default_registry().get("mergeNode")

    result = await handler.execute(_ctx("mergeNode", input={"a": 1}))

    assert result.output == {"merged_input": {"a": 1}, "mode": "append"}


@pytest.mark.asyncio
async def test_passthrough_output():
    handler = create_default_registry().get("custom")

    result = await handler.execute(_ctx("custom"))

    assert result.output == {"processed": True}


@pytest.mark.asyncio
async def test_if_condition_true_branch():
    handler = IfConditionHandler()

    result = await handler.execute(
        _ctx("ifCondition", "hello world", {"field": "message", "operator": "contains",
                                            "value": "hello"})
    )

    assert handler.conditional is True
    assert result.branch == "true"
    assert result.output["result"] is True
    assert result.output["actual_value"] == "hello world"


@pytest.mark.asyncio
async def test_if_condition_defaults_and_false_branch():
    result = await IfConditionHandler().execute(_ctx("ifCondition", "abc", {"value": "xyz"}))

    assert result.branch == "false"
    assert result.output["field"] == "message"
    assert result.output["operator"] == "equals"


@pytest.mark.asyncio
async def test_if_condition_numeric_value_config():
    result = await IfConditionHandler().execute(
        _ctx("ifCondition", "hello", {"field": "message.length", "operator": "greater",
                                      "value": 3})
    )

    assert result.branch == "true"
    assert result.output["compare_value"] == "3"


def test_simulated_delays_per_type():
    delayed = create_default_registry(simulate_delay=True)
    instant = create_default_registry()

    assert delayed.get("aiAgent").delay == 1.5
    assert delayed.get("ifCondition").delay == 0.15
    assert delayed.get("custom").delay == 0.3
    assert instant.get("aiAgent").delay == 0.0


@pytest.mark.asyncio
async def test_function_handler_maps_bool_branch():
    handler = FunctionHandler(lambda i, m, c: ({"ok": True}, False), conditional=True)

    result = await handler.execute(_ctx("x"))

    assert result.output == {"ok": True}
    assert result.branch == "false"


@pytest.mark.asyncio
async def test_function_handler_keeps_tuples_when_not_conditional():
    handler = FunctionHandler(lambda i, m, c: (1, 2))

    result = await handler.execute(_ctx("x"))

    assert result.output == (1, 2)
    assert result.branch is None


def test_registry_decorator():
    registry = create_default_registry()

    @registry.handler("shout")
    def shout(input, message, config):
        return {"response": message.upper()}

    assert "shout" in registry
    assert "shout" in registry.types()
