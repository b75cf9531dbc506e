"""Exception types raised by nodeflow.

The executor never lets these escape ``WorkflowExecutor.execute()``; they are
caught at the node boundary and recorded on the node's execution record.
Document loading and the CLI raise them directly.
"""


class NodeflowError(Exception):
    """Base class for all nodeflow errors."""


class WorkflowDocumentError(NodeflowError):
    """A workflow document could not be read or does not describe a graph."""


class NodeHandlerNotFound(NodeflowError):
    """No handler is registered for a node type."""

    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"No handler registered for node type '{node_type}'")


class NodeTimeoutError(NodeflowError):
    """A node handler did not finish within its timeout."""

    def __init__(self, node_id: str, timeout: float):
        self.node_id = node_id
        self.timeout = timeout
        super().__init__(f"Node '{node_id}' timed out after {timeout:g}s")


class ExecutionCancelled(NodeflowError):
    """The run was cancelled through its cancellation token."""
