"""
GraphStore - single owner of the node and edge collections.

Every mutation builds new tuples and swaps in a fresh GraphSnapshot, then
notifies subscribers synchronously. Snapshots handed out earlier are never
touched, so an observer can never see a node deleted while its edges remain.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from flowpad.errors import GraphReferenceError, InvalidInput
from flowpad.models import (
    Connection,
    Edge,
    GraphSnapshot,
    Node,
    Position,
    edge_id_for,
)

logger = logging.getLogger(__name__)

Listener = Callable[[GraphSnapshot], None]


class GraphStore:
    """
    Canonical node/edge collections plus the operations that mutate them.

    Referential integrity is the only validation performed: an edge may
    only be created between nodes that exist, and deleting a node removes
    every edge that touches it in the same snapshot swap. Duplicate
    connections are kept as separate edges.
    """

    def __init__(
        self,
        nodes: Optional[Iterable[Node]] = None,
        edges: Optional[Iterable[Edge]] = None,
        id_prefix: str = "node-",
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            nodes: Optional initial nodes (insertion order is kept)
            edges: Optional initial edges; edges with a missing endpoint are dropped
            id_prefix: Prefix for generated node ids
            clock: Seconds-since-epoch source used for node ids
        """
        self._id_prefix = id_prefix
        self._clock = clock
        self._last_id_ms = 0
        self._listeners: List[Listener] = []

        initial_nodes = tuple(nodes or ())
        known = {n.id for n in initial_nodes}
        initial_edges = []
        for edge in edges or ():
            if edge.source in known and edge.target in known:
                initial_edges.append(edge)
            else:
                logger.warning(f"Dropping initial edge {edge.id}: endpoint missing")
        self._snapshot = GraphSnapshot(initial_nodes, tuple(initial_edges))

    # --- Read access ---

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._snapshot

    @property
    def nodes(self):
        return self._snapshot.nodes

    @property
    def edges(self):
        return self._snapshot.edges

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._snapshot.get_node(node_id)

    def __contains__(self, node_id: object) -> bool:
        return any(n.id == node_id for n in self._snapshot.nodes)

    def __len__(self) -> int:
        return len(self._snapshot.nodes)

    # --- Observers ---

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(self, snapshot: GraphSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Graph listener {listener!r} failed: {e}")

    # --- Id sources ---

    def _next_node_id(self) -> str:
        # Millisecond timestamps, bumped so two adds in the same ms never collide
        now_ms = int(self._clock() * 1000)
        self._last_id_ms = max(now_ms, self._last_id_ms + 1)
        return f"{self._id_prefix}{self._last_id_ms}"

    def _next_edge_id(self, connection: Connection) -> str:
        base = edge_id_for(connection)
        taken = {e.id for e in self._snapshot.edges}
        if base not in taken:
            return base
        suffix = 1
        while f"{base}~{suffix}" in taken:
            suffix += 1
        return f"{base}~{suffix}"

    # --- Node operations ---

    def add_node(self, label: str, text: str, position: Any) -> str:
        """
        Append a new node and return its id.

        Raises:
            InvalidInput: if label is empty
        """
        if not label:
            raise InvalidInput("Node label must not be empty")

        node = Node(
            id=self._next_node_id(),
            label=label,
            text=text,
            position=Position.from_any(position),
        )
        self._commit(GraphSnapshot(self._snapshot.nodes + (node,), self._snapshot.edges))
        logger.info(f"Added node {node.id} ({label!r})")
        return node.id

    def _replace_node(self, node_id: str, update: Callable[[Node], Node]) -> bool:
        changed = False
        new_nodes = []
        for node in self._snapshot.nodes:
            if node.id == node_id:
                node = update(node)
                changed = True
            new_nodes.append(node)
        if changed:
            self._commit(GraphSnapshot(tuple(new_nodes), self._snapshot.edges))
        return changed

    def update_node_label(self, node_id: str, new_label: str) -> None:
        """Replace a node's label. Unknown ids are ignored."""
        if not self._replace_node(node_id, lambda n: n.with_label(new_label)):
            logger.debug(f"update_node_label: no node {node_id}")

    def update_node_text(self, node_id: str, new_text: str) -> None:
        """Replace a node's annotation text. Unknown ids are ignored."""
        if not self._replace_node(node_id, lambda n: n.with_text(new_text)):
            logger.debug(f"update_node_text: no node {node_id}")

    def delete_node(self, node_id: str) -> None:
        """Remove a node together with every edge incident to it."""
        if node_id not in self:
            logger.debug(f"delete_node: no node {node_id}")
            return
        self._commit(self._without_nodes({node_id}, self._snapshot.nodes, self._snapshot.edges))
        logger.info(f"Deleted node {node_id}")

    @staticmethod
    def _without_nodes(removed: set, nodes: Sequence[Node], edges: Sequence[Edge]) -> GraphSnapshot:
        return GraphSnapshot(
            tuple(n for n in nodes if n.id not in removed),
            tuple(e for e in edges if e.source not in removed and e.target not in removed),
        )

    # --- Edge operations ---

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> str:
        """
        Append an edge from source to target and return its id.

        Raises:
            GraphReferenceError: if either endpoint is not a known node
        """
        missing = [nid for nid in (source, target) if nid not in self]
        if missing:
            raise GraphReferenceError(f"Cannot connect unknown node(s): {', '.join(map(str, missing))}", missing)

        connection = Connection(source, target, source_handle, target_handle)
        edge = Edge(
            id=self._next_edge_id(connection),
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self._commit(GraphSnapshot(self._snapshot.nodes, self._snapshot.edges + (edge,)))
        logger.info(f"Connected {source} -> {target} as {edge.id}")
        return edge.id

    def delete_edge(self, edge_id: str) -> None:
        """Remove a single edge. Unknown ids are ignored."""
        edges = tuple(e for e in self._snapshot.edges if e.id != edge_id)
        if len(edges) == len(self._snapshot.edges):
            logger.debug(f"delete_edge: no edge {edge_id}")
            return
        self._commit(GraphSnapshot(self._snapshot.nodes, edges))

    # --- Collaborator patches ---

    def apply_node_changes(self, changes: Iterable[Dict[str, Any]]) -> None:
        """
        Apply a batch of canvas node changes in one snapshot swap.

        Supported change types: 'position', 'select' and 'remove' (removal
        cascades to incident edges). Other types and unknown ids are ignored.
        """
        by_id = {n.id: n for n in self._snapshot.nodes}
        removed = set()
        touched = False

        for change in changes or ():
            kind = change.get("type")
            node_id = change.get("id")
            if node_id not in by_id or node_id in removed:
                continue
            node = by_id[node_id]
            if kind == "position":
                if change.get("position") is None:
                    continue
                by_id[node_id] = replace(node, position=Position.from_any(change["position"]))
                touched = True
            elif kind == "select":
                by_id[node_id] = replace(node, selected=bool(change.get("selected")))
                touched = True
            elif kind == "remove":
                removed.add(node_id)
                touched = True

        if not touched:
            return
        ordered = [by_id[n.id] for n in self._snapshot.nodes]
        self._commit(self._without_nodes(removed, ordered, self._snapshot.edges))
        if removed:
            logger.info(f"Removed nodes via canvas: {sorted(removed)}")

    def apply_edge_changes(self, changes: Iterable[Dict[str, Any]]) -> None:
        """Apply canvas edge changes ('select' and 'remove') in one snapshot swap."""
        by_id = {e.id: e for e in self._snapshot.edges}
        removed = set()
        touched = False

        for change in changes or ():
            kind = change.get("type")
            edge_id = change.get("id")
            if edge_id not in by_id:
                continue
            if kind == "select":
                by_id[edge_id] = replace(by_id[edge_id], selected=bool(change.get("selected")))
                touched = True
            elif kind == "remove":
                removed.add(edge_id)
                touched = True

        if touched:
            edges = tuple(by_id[e.id] for e in self._snapshot.edges if e.id not in removed)
            self._commit(GraphSnapshot(self._snapshot.nodes, edges))
