"""
Node Protocol - The contract between the executor and the work a node does.

The executor never knows what a node type means. For every dispatched node
it builds a NodeContext carrying ``(input, message, config)`` and awaits the
handler registered for the node's type. A handler either returns a
NodeResult or raises; both outcomes are recorded, neither stops the run.

Conditional handlers set ``NodeResult.branch`` to the port label they chose.
The executor uses that label to prune the branches that were not taken.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from nodeflow.graph.edge import NodeSpec


class CancellationToken:
    """Cooperative cancellation shared by one run and every handler it calls."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "Execution cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class NodeContext:
    """Everything a handler may look at when it runs."""

    node: NodeSpec
    input: Any = None  # Output of one executed predecessor, None for start nodes
    message: str = ""  # The trigger message the run was started with
    config: dict[str, Any] = field(default_factory=dict)
    run_id: str = ""
    cancel_token: CancellationToken | None = None

    @property
    def node_id(self) -> str:
        return self.node.id


@dataclass
class NodeResult:
    """
    The result of running a node.

    Handlers report failure either by raising or by returning
    ``NodeResult(success=False, error=...)``.
    """

    output: Any = None
    branch: str | None = None  # Set only by conditional handlers
    success: bool = True
    error: str | None = None

    @property
    def is_conditional(self) -> bool:
        return self.branch is not None


class NodeHandler(ABC):
    """
    Interface all node handlers implement.

    Example:
        class EchoHandler(NodeHandler):
            async def execute(self, ctx: NodeContext) -> NodeResult:
                return NodeResult(output={"message": ctx.message})
    """

    # Conditional handlers return a branch label with their output
    conditional: bool = False

    @abstractmethod
    async def execute(self, ctx: NodeContext) -> NodeResult:
        """Run the node and return its result."""


class FunctionHandler(NodeHandler):
    """
    Adapts a plain callable into a NodeHandler.

    The callable receives ``(input, message, config)`` and may be sync or
    async. It returns either the output, a ``(output, branch)`` tuple, or a
    ready-made NodeResult.
    """

    def __init__(self, func: Callable[..., Any], conditional: bool = False):
        self.func = func
        self.conditional = conditional

    async def execute(self, ctx: NodeContext) -> NodeResult:
        res = self.func(ctx.input, ctx.message, ctx.config)
        if inspect.isawaitable(res):
            res = await res

        if isinstance(res, NodeResult):
            return res
        if self.conditional and isinstance(res, tuple) and len(res) == 2:
            output, branch = res
            if isinstance(branch, bool):
                branch = "true" if branch else "false"
            return NodeResult(output=output, branch=None if branch is None else str(branch))
        return NodeResult(output=res)

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"FunctionHandler({name})"
