"""
Built-in node handlers.

These are stand-ins for real integrations: they produce plausible,
deterministic outputs for every catalog node type so workflows can be run
end to end (CLI, demos, tests) without calling models or external APIs.
The ifCondition handler is real: it evaluates its condition and returns the
branch label the executor prunes on.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from nodeflow.graph.conditions import evaluate_condition, resolve_field
from nodeflow.graph.node import NodeContext, NodeHandler, NodeResult
from nodeflow.graph.registry import NodeRegistry

logger = logging.getLogger(__name__)

# Simulated latency per node type, in seconds (used when simulate_delay=True)
SIMULATED_DELAYS: dict[str, float] = {
    "chatTrigger": 0.3,
    "webhookTrigger": 0.3,
    "scheduleTrigger": 0.3,
    "aiAgent": 1.5,
    "openaiModel": 1.2,
    "anthropicModel": 1.0,
    "windowMemory": 0.2,
    "serpApi": 0.8,
    "httpRequest": 0.5,
    "codeExecutor": 0.4,
    "callWorkflow": 1.0,
    "ifCondition": 0.15,
    "switchNode": 0.15,
    "mergeNode": 0.2,
    "sendMessage": 0.3,
    "emailAction": 0.6,
    "setVariable": 0.1,
    "jsonParse": 0.1,
}
DEFAULT_DELAY = 0.3


def generate_reply(message: str) -> str:
    """Canned assistant reply keyed on words in the trigger message."""
    msg = message.lower()

    if "hello" in msg or "hi" in msg or "hey" in msg:
        return "Hello! 👋 I'm your intelligent assistant. How can I help you?"
    if "help" in msg:
        return (
            "Sure! I can help you with:\n• Answering questions\n• Searching for information\n"
            "• Processing data\n• Running automated tasks\n\nWhat would you like me to do?"
        )
    if "workflow" in msg:
        return (
            "Your workflow has been executed successfully! ✅ All nodes were processed "
            "correctly and the final output is ready."
        )
    if "search" in msg:
        return (
            "Search completed! 🔍 Relevant results found. Information has been gathered "
            "and processed from reliable sources."
        )
    if "code" in msg:
        return "Code executed successfully! ✅"
    if "test" in msg:
        return (
            "Workflow test completed successfully! ✅\n\n📊 Results:\n• All nodes: Passed\n"
            "• Errors: None\n• Status: Ready for production"
        )
    return (
        f'Your message received: "{message}"\n\n'
        "Processing completed successfully. Do you have any other questions?"
    )


def _trigger(ctx: NodeContext) -> dict[str, Any]:
    return {"message": ctx.message, "timestamp": datetime.now().isoformat()}


def _ai_agent(ctx: NodeContext) -> dict[str, Any]:
    return {
        "response": generate_reply(ctx.message),
        "tokens_used": 100 + len(ctx.message),
        "model": ctx.config.get("agentType") or "tools",
    }


def _openai_model(ctx: NodeContext) -> dict[str, Any]:
    model = ctx.config.get("model") or "gpt-4o"
    return {
        "model": model,
        "response": f'[{model}] Processing: "{ctx.message[:50]}"',
        "tokens": {"prompt": 50 + len(ctx.message), "completion": 100},
    }


def _anthropic_model(ctx: NodeContext) -> dict[str, Any]:
    return {
        "model": ctx.config.get("model") or "claude-sonnet-4-20250514",
        "response": f'[Claude] Analyzing: "{ctx.message[:50]}"',
        "tokens": {"input": 50 + len(ctx.message), "output": 100},
    }


def _window_memory(ctx: NodeContext) -> dict[str, Any]:
    window_size = ctx.config.get("windowSize") or 5
    return {"memory_stored": True, "window_size": window_size, "messages_in_buffer": 1}


def _serp_api(ctx: NodeContext) -> dict[str, Any]:
    return {
        "results": [
            {
                "title": f"Search result for: {ctx.message[:30]}",
                "url": "https://example.com/1",
                "snippet": "Relevant information found...",
            },
            {
                "title": "Related article",
                "url": "https://example.com/2",
                "snippet": "Additional context...",
            },
        ],
        "total_results": 2,
    }


def _http_request(ctx: NodeContext) -> dict[str, Any]:
    return {
        "status": 200,
        "method": ctx.config.get("method") or "GET",
        "url": ctx.config.get("url") or "",
        "data": {"success": True, "message": "Request completed"},
        "headers": {"content-type": "application/json"},
    }


def _code_executor(ctx: NodeContext) -> dict[str, Any]:
    return {
        "result": "Code executed successfully",
        "language": ctx.config.get("language") or "javascript",
    }


def _call_workflow(ctx: NodeContext) -> dict[str, Any]:
    return {
        "workflow_id": ctx.config.get("workflowId") or "sub-workflow-1",
        "status": "completed",
        "result": {"processed": True},
    }


def _switch(ctx: NodeContext) -> dict[str, Any]:
    return {"matched_route": 0, "field": ctx.config.get("field") or "status", "value": "active"}


def _merge(ctx: NodeContext) -> dict[str, Any]:
    # Sees one predecessor's output only (single-source fan-in)
    return {"merged_input": ctx.input, "mode": ctx.config.get("mode") or "append"}


def _send_message(ctx: NodeContext) -> dict[str, Any]:
    return {
        "sent": True,
        "type": ctx.config.get("messageType") or "success",
        "message": ctx.config.get("message") or generate_reply(ctx.message),
    }


def _email(ctx: NodeContext) -> dict[str, Any]:
    return {
        "sent": True,
        "to": ctx.config.get("to") or "user@example.com",
        "subject": ctx.config.get("subject") or "Notification",
    }


def _set_variable(ctx: NodeContext) -> dict[str, Any]:
    return {
        "variable": ctx.config.get("name") or "var1",
        "value": ctx.config.get("value") or ctx.message,
        "set": True,
    }


def _json_parse(ctx: NodeContext) -> dict[str, Any]:
    return {"parsed": True, "field": ctx.config.get("field") or "data", "result": {"key": "value"}}


def _passthrough(ctx: NodeContext) -> dict[str, Any]:
    return {"processed": True}


class SimulatedHandler(NodeHandler):
    """Produces a canned output, optionally after a simulated delay."""

    def __init__(self, produce: Callable[[NodeContext], Any], delay: float = 0.0):
        self.produce = produce
        self.delay = delay

    async def execute(self, ctx: NodeContext) -> NodeResult:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        return NodeResult(output=self.produce(ctx))


class IfConditionHandler(NodeHandler):
    """
    Evaluates ``field <operator> value`` and picks the "true" or "false" branch.

    Config:
        field: "message" (default), "message.length" or "output"
        operator: one of nodeflow.graph.conditions.OPERATORS (default "equals")
        value: value to compare against
    """

    conditional = True

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    async def execute(self, ctx: NodeContext) -> NodeResult:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        field = ctx.config.get("field") or "message"
        operator = ctx.config.get("operator") or "equals"
        compare_value = ctx.config.get("value")
        compare_value = "" if compare_value is None else str(compare_value)

        actual_value = resolve_field(field, ctx.message, ctx.input)
        result = evaluate_condition(actual_value, operator, compare_value)
        branch = "true" if result else "false"
        logger.debug(f"      {field} {operator} {compare_value!r} -> {branch}")

        return NodeResult(
            output={
                "field": field,
                "operator": operator,
                "compare_value": compare_value,
                "actual_value": actual_value,
                "result": result,
                "branch": branch,
            },
            branch=branch,
        )


_PRODUCERS: dict[str, Callable[[NodeContext], Any]] = {
    "chatTrigger": _trigger,
    "webhookTrigger": _trigger,
    "scheduleTrigger": _trigger,
    "aiAgent": _ai_agent,
    "openaiModel": _openai_model,
    "anthropicModel": _anthropic_model,
    "windowMemory": _window_memory,
    "serpApi": _serp_api,
    "httpRequest": _http_request,
    "codeExecutor": _code_executor,
    "callWorkflow": _call_workflow,
    "switchNode": _switch,
    "mergeNode": _merge,
    "sendMessage": _send_message,
    "emailAction": _email,
    "setVariable": _set_variable,
    "jsonParse": _json_parse,
}


def create_default_registry(simulate_delay: bool = False) -> NodeRegistry:
    """
    Registry with a built-in handler for every catalog node type.

    Unknown types fall back to a pass-through handler returning
    ``{"processed": True}``.

    Args:
        simulate_delay: Sleep for a type-specific latency before each node
    """

    def delay_for(node_type: str) -> float:
        return SIMULATED_DELAYS.get(node_type, DEFAULT_DELAY) if simulate_delay else 0.0

    registry = NodeRegistry(default=SimulatedHandler(_passthrough, delay_for("")))
    for node_type, produce in _PRODUCERS.items():
        registry.register(node_type, SimulatedHandler(produce, delay_for(node_type)))
    registry.register("ifCondition", IfConditionHandler(delay_for("ifCondition")))
    return registry
