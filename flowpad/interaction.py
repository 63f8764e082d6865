"""
Node Interaction Controller - per-node UI mode tracking.

Each node is either Viewing or Editing its label, with an independent
"context menu open" flag on top. States are kept in a mapping keyed by node
id rather than on long-lived per-node objects, so deleting a node and
creating another never leaves a stale state behind.

Store mutations are not performed here. The controller sends commands
(see flowpad.commands) to a sink, normally EditorShell.dispatch.
"""

import functools
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Tuple

from flowpad.commands import (
    CommandSink,
    DeleteRequested,
    EditRequested,
    LabelCommitted,
    TextChanged,
)
from flowpad.errors import StaleReference
from flowpad.models import Node

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"


@dataclass(frozen=True)
class InteractionState:
    """Immutable snapshot of one node's interaction state."""
    mode: Mode = Mode.VIEWING
    menu_open: bool = False
    menu_anchor: Optional[Tuple[float, float]] = None
    draft_label: str = ""
    # Set when entering Editing; the UI clears it after focusing the label field
    focus_requested: bool = False

    @property
    def is_editing_label(self) -> bool:
        return self.mode is Mode.EDITING

    @property
    def is_menu_open(self) -> bool:
        return self.menu_open


VIEWING = InteractionState()


def _tolerate_stale(method):
    """Turn a StaleReference into a silent no-op for the wrapped event handler."""
    @functools.wraps(method)
    def wrapper(self, node_id, *args, **kwargs):
        try:
            return method(self, node_id, *args, **kwargs)
        except StaleReference:
            logger.debug(f"Ignoring {method.__name__} for deleted node {node_id}")
            self._drop(node_id)
            return VIEWING
    return wrapper


class NodeInteractionController:
    """
    Tracks {Viewing, Editing} x {menu open} for every displayed node.

    Transitions:
    - open_menu:     menu opens, anchor recorded
    - choose_edit:   menu open -> Editing, menu closed, focus requested
    - choose_delete: menu open -> state dropped, DeleteRequested sent
    - click_outside: menu closed, nothing sent
    - commit_label:  Editing -> Viewing, LabelCommitted sent with the draft
    - change_text:   TextChanged sent in any mode
    """

    def __init__(self, node_lookup: Callable[[str], Optional[Node]], send: CommandSink):
        """
        Args:
            node_lookup: Returns the current Node for an id, or None if deleted
            send: Receives the commands produced by user gestures
        """
        self._node_lookup = node_lookup
        self._send = send
        self._states: Dict[str, InteractionState] = {}
        self._on_state_change: Optional[Callable[[str, InteractionState], None]] = None

    # --- State access ---

    def state(self, node_id: str) -> InteractionState:
        return self._states.get(node_id, VIEWING)

    @property
    def states(self) -> Dict[str, InteractionState]:
        return dict(self._states)

    def set_on_state_change(self, callback: Callable[[str, InteractionState], None]):
        self._on_state_change = callback

    def prune(self, existing_ids: Iterable[str]) -> None:
        """Forget states of nodes that are no longer in the graph."""
        keep = set(existing_ids)
        for node_id in [nid for nid in self._states if nid not in keep]:
            self._drop(node_id)

    # --- Internals ---

    def _require_node(self, node_id: str) -> Node:
        node = self._node_lookup(node_id)
        if node is None:
            raise StaleReference(node_id)
        return node

    def _set(self, node_id: str, new_state: InteractionState) -> InteractionState:
        if new_state == VIEWING:
            self._states.pop(node_id, None)
        else:
            self._states[node_id] = new_state
        if self._on_state_change:
            self._on_state_change(node_id, new_state)
        return new_state

    def _drop(self, node_id: str) -> None:
        if self._states.pop(node_id, None) is not None and self._on_state_change:
            self._on_state_change(node_id, VIEWING)

    # --- Gestures ---

    @_tolerate_stale
    def open_menu(self, node_id: str, x: float = 0, y: float = 0) -> InteractionState:
        """Secondary click on a node: open its menu at the pointer."""
        self._require_node(node_id)
        return self._set(node_id, replace(self.state(node_id), menu_open=True, menu_anchor=(x, y)))

    @_tolerate_stale
    def choose_edit(self, node_id: str) -> InteractionState:
        current = self.state(node_id)
        node = self._require_node(node_id)
        if not current.menu_open:
            return current
        new_state = self._set(node_id, InteractionState(
            mode=Mode.EDITING,
            draft_label=node.label,
            focus_requested=True,
        ))
        self._send(EditRequested(node_id))
        return new_state

    @_tolerate_stale
    def choose_delete(self, node_id: str) -> InteractionState:
        current = self.state(node_id)
        self._require_node(node_id)
        if not current.menu_open:
            return current
        self._drop(node_id)
        self._send(DeleteRequested(node_id))
        return VIEWING

    def click_outside(self, node_id: Optional[str] = None) -> None:
        """Close the menu of one node, or of every node when node_id is None."""
        targets = [node_id] if node_id is not None else list(self._states)
        for nid in targets:
            current = self._states.get(nid)
            if current and current.menu_open:
                self._set(nid, replace(current, menu_open=False, menu_anchor=None))

    @_tolerate_stale
    def change_draft(self, node_id: str, value: str) -> InteractionState:
        """Keystroke in the label field; only meaningful while editing."""
        current = self.state(node_id)
        self._require_node(node_id)
        if not current.is_editing_label:
            return current
        return self._set(node_id, replace(current, draft_label=value))

    @_tolerate_stale
    def commit_label(self, node_id: str) -> InteractionState:
        """Label field lost focus: leave Editing and commit the draft as-is."""
        current = self.state(node_id)
        self._require_node(node_id)
        if not current.is_editing_label:
            return current
        self._send(LabelCommitted(node_id, current.draft_label))
        return self._set(node_id, replace(current, mode=Mode.VIEWING, draft_label="", focus_requested=False))

    @_tolerate_stale
    def change_text(self, node_id: str, value: str) -> InteractionState:
        """Annotation edits go straight to the store, whatever the mode."""
        self._require_node(node_id)
        self._send(TextChanged(node_id, value))
        return self.state(node_id)

    def acknowledge_focus(self, node_id: str) -> None:
        current = self._states.get(node_id)
        if current and current.focus_requested:
            self._set(node_id, replace(current, focus_requested=False))
