"""
Editor Shell - top-level orchestration of the node editor.

Owns the GraphStore, the pending node name and the interaction controller,
and interprets the controller's commands against the store. Nothing here
ever reports an error to the user: failed operations simply do nothing.
"""

import logging
import random
from typing import Any, Dict, Iterable, Optional

from flowpad.commands import (
    Command,
    DeleteRequested,
    EditRequested,
    LabelCommitted,
    TextChanged,
)
from flowpad.config import EditorSettings
from flowpad.errors import GraphReferenceError
from flowpad.graph_store import GraphStore, Listener
from flowpad.interaction import NodeInteractionController
from flowpad.models import Connection, GraphSnapshot, Position
from flowpad.render import (
    build_flow_payload,
    event_screen_point,
    normalize_event_payload,
    resolve_node_id,
)

logger = logging.getLogger(__name__)


class EditorShell:
    """
    Glue between user gestures and the GraphStore.

    The interaction controller is constructed with `dispatch` as its command
    sink, which is how per-node gestures reach the shared store without the
    store being globally reachable.
    """

    def __init__(
        self,
        store: Optional[GraphStore] = None,
        settings: Optional[EditorSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings if settings is not None else EditorSettings()
        self.store = store if store is not None else GraphStore(id_prefix=self.settings.node_id_prefix)
        self._rng = rng if rng is not None else random.Random()
        self._pending_name = ""

        self.interactions = NodeInteractionController(self.store.get_node, self.dispatch)
        self.store.subscribe(self._sync_interactions)

    # --- Pending name ---

    @property
    def pending_name(self) -> str:
        return self._pending_name

    def set_pending_name(self, value: str) -> None:
        self._pending_name = value

    def random_position(self) -> Position:
        return Position(
            self._rng.random() * self.settings.position_width,
            self._rng.random() * self.settings.position_height,
        )

    def submit_add_node(self) -> Optional[str]:
        """
        Add a node named after the pending name, then clear the name.

        An empty pending name is declined silently and left as it is.
        """
        if not self._pending_name:
            return None
        node_id = self.store.add_node(self._pending_name, self.settings.default_text, self.random_position())
        self._pending_name = ""
        return node_id

    # --- Collaborator events ---

    def on_connect(self, event: Any) -> Optional[str]:
        """Create an edge for a connect gesture; unknown endpoints are ignored."""
        try:
            connection = Connection.from_event(event)
            return self.store.connect(
                connection.source,
                connection.target,
                connection.source_handle,
                connection.target_handle,
            )
        except GraphReferenceError as e:
            logger.warning(f"Ignoring connect event: {e}")
            return None
        except TypeError as e:
            logger.warning(f"Ignoring malformed connect event: {e}")
            return None

    def on_nodes_change(self, changes: Iterable[Dict[str, Any]]) -> None:
        self.store.apply_node_changes(changes)

    def on_edges_change(self, changes: Iterable[Dict[str, Any]]) -> None:
        self.store.apply_edge_changes(changes)

    # --- Node commands ---

    def on_node_label_change(self, node_id: str, new_label: str) -> None:
        self.store.update_node_label(node_id, new_label)

    def on_node_text_change(self, node_id: str, new_text: str) -> None:
        self.store.update_node_text(node_id, new_text)

    def on_delete_node(self, node_id: str) -> None:
        self.store.delete_node(node_id)

    def dispatch(self, command: Command) -> None:
        """Apply an interaction command to the store."""
        if isinstance(command, LabelCommitted):
            self.on_node_label_change(command.node_id, command.label)
        elif isinstance(command, TextChanged):
            self.on_node_text_change(command.node_id, command.text)
        elif isinstance(command, DeleteRequested):
            self.on_delete_node(command.node_id)
        elif isinstance(command, EditRequested):
            # Editing is local UI state; the store changes on commit
            logger.debug(f"Editing label of {command.node_id}")
        else:
            logger.warning(f"Unknown command {command!r}")

    # --- Observation / rendering ---

    @property
    def snapshot(self) -> GraphSnapshot:
        return self.store.snapshot

    def subscribe(self, listener: Listener) -> None:
        self.store.subscribe(listener)

    def _sync_interactions(self, snapshot: GraphSnapshot) -> None:
        self.interactions.prune(snapshot.node_ids())

    def render_payload(self) -> Dict[str, Any]:
        """Current collections and styling for the rendering collaborator."""
        return build_flow_payload(self.store.snapshot, self.interactions.states)

    def on_chart_contextmenu(self, raw: Any) -> Optional[str]:
        """Open the menu of the node under a chart right-click, at the pointer."""
        payload = normalize_event_payload(raw)
        node_id = resolve_node_id(payload, self.store.snapshot)
        if node_id:
            self.interactions.open_menu(node_id, *event_screen_point(payload))
        return node_id
