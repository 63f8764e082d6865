"""
Error taxonomy for the graph core.

None of these are ever shown to the end user. The shell catches them and
turns the failed operation into a quiet no-op.
"""

from typing import Optional


class GraphError(Exception):
    """Base class for graph core errors."""


class InvalidInput(GraphError):
    """Raised when a node would be created with an empty label."""


class GraphReferenceError(GraphError):
    """Raised when a connection names a node id that is not in the store."""
    def __init__(self, message: str, missing: Optional[list] = None):
        self.missing = list(missing or [])
        super().__init__(message)


class StaleReference(GraphError):
    """An interaction event targeted a node that has already been deleted."""
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} no longer exists")
