"""Node catalog and built-in handlers."""

from nodeflow.nodes.builtin import IfConditionHandler, SimulatedHandler, create_default_registry
from nodeflow.nodes.catalog import (
    NodeCategory,
    NodeDefinition,
    create_node,
    get_node_definition,
    list_node_definitions,
)

__all__ = [
    "NodeCategory",
    "NodeDefinition",
    "create_node",
    "get_node_definition",
    "list_node_definitions",
    "IfConditionHandler",
    "SimulatedHandler",
    "create_default_registry",
]
