"""
Data model for the node graph.

Nodes and edges are frozen dataclasses. A GraphSnapshot bundles the two
collections as tuples; the store swaps in a new snapshot on every mutation
instead of editing one in place, so anything holding an older snapshot keeps
seeing a complete, consistent graph.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, Optional, Tuple


DEFAULT_NODE_TYPE = "customNode"


@dataclass(frozen=True)
class Position:
    """2D canvas coordinate."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_any(cls, value: Any) -> "Position":
        """Accept a Position, an (x, y) pair or a {'x':.., 'y':..} dict."""
        if isinstance(value, Position):
            return value
        if isinstance(value, dict):
            return cls(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
        if isinstance(value, (list, tuple)) and len(value) >= 2:
            return cls(float(value[0]), float(value[1]))
        raise TypeError(f"Cannot interpret {value!r} as a position")

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Node:
    id: str
    label: str
    text: str = ""
    position: Position = field(default_factory=Position)
    type: str = DEFAULT_NODE_TYPE
    # Collaborator-owned selection flag, never interpreted by the core
    selected: bool = False

    def with_label(self, label: str) -> "Node":
        return replace(self, label=label)

    def with_text(self, text: str) -> "Node":
        return replace(self, text=text)


@dataclass(frozen=True)
class Connection:
    """Payload of a connect gesture between two handles."""
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    @classmethod
    def from_event(cls, event: Any) -> "Connection":
        """
        Build a Connection from a collaborator event.

        Accepts an existing Connection or a dict using either the
        camelCase keys the canvas emits (sourceHandle/targetHandle) or
        snake_case keys.
        """
        if isinstance(event, Connection):
            return event
        if not isinstance(event, dict):
            raise TypeError(f"Unsupported connect event: {event!r}")
        return cls(
            source=event.get("source"),
            target=event.get("target"),
            source_handle=event.get("sourceHandle", event.get("source_handle")),
            target_handle=event.get("targetHandle", event.get("target_handle")),
        )


def edge_id_for(connection: Connection) -> str:
    """Deterministic edge id for a connection, before collision suffixing."""
    return (
        f"xy-edge__{connection.source}{connection.source_handle or ''}"
        f"-{connection.target}{connection.target_handle or ''}"
    )


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    selected: bool = False

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable view of the node and edge collections."""
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def node_ids(self) -> Tuple[str, ...]:
        return tuple(n.id for n in self.nodes)

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def incident_edges(self, node_id: str) -> Tuple[Edge, ...]:
        return tuple(e for e in self.edges if e.touches(node_id))

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)
