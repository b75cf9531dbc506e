"""Node handler registration and per-run resolution."""

import logging
from collections.abc import Callable
from typing import Any

from nodeflow.graph.edge import GraphIndex
from nodeflow.graph.node import FunctionHandler, NodeHandler

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Maps node types to the handlers that perform their work.

    Handlers are looked up once per run (``resolve``), not on every dequeue.
    A type with no handler falls back to ``default`` when one is set;
    otherwise the node fails with NodeHandlerNotFound when dispatched.

    Example:
        registry = NodeRegistry()

        @registry.handler("shout")
        def shout(input, message, config):
            return {"response": message.upper()}

        registry.register("ifCondition", IfConditionHandler())
    """

    def __init__(self, default: NodeHandler | None = None):
        self._handlers: dict[str, NodeHandler] = {}
        self.default = default

    def register(self, node_type: str, handler: NodeHandler) -> None:
        """
        Register a handler for a node type, replacing any previous one.

        Args:
            node_type: Node type discriminator (e.g. "ifCondition")
            handler: NodeHandler instance
        """
        if node_type in self._handlers:
            logger.debug(f"Replacing handler for node type '{node_type}'")
        self._handlers[node_type] = handler

    def register_function(
        self,
        node_type: str,
        func: Callable[..., Any],
        conditional: bool = False,
    ) -> None:
        """Register a plain ``fn(input, message, config)`` callable."""
        self.register(node_type, FunctionHandler(func, conditional=conditional))

    def handler(self, node_type: str, conditional: bool = False) -> Callable:
        """Decorator form of register_function."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register_function(node_type, func, conditional=conditional)
            return func

        return decorator

    def get(self, node_type: str) -> NodeHandler | None:
        return self._handlers.get(node_type, self.default)

    def types(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def resolve(self, index: GraphIndex) -> dict[str, NodeHandler | None]:
        """
        Resolve a handler for every node of a graph.

        Returns:
            {node_id: handler}; None where no handler (and no default) exists
        """
        resolved: dict[str, NodeHandler | None] = {}
        missing: set[str] = set()
        for node_id in index.order:
            node = index.nodes[node_id]
            handler = self.get(node.type)
            if handler is None:
                missing.add(node.type)
            resolved[node_id] = handler
        if missing:
            logger.warning(f"⚠ No handler registered for node types: {sorted(missing)}")
        return resolved
