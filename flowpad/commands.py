"""
Interaction commands.

The interaction controller never touches the store. It sends one of these
messages (node id plus verb) to the shell, which applies it to the
GraphStore. Node data therefore carries no callbacks.
"""

from dataclasses import dataclass
from typing import Callable, Union


@dataclass(frozen=True)
class EditRequested:
    node_id: str


@dataclass(frozen=True)
class DeleteRequested:
    node_id: str


@dataclass(frozen=True)
class TextChanged:
    node_id: str
    text: str


@dataclass(frozen=True)
class LabelCommitted:
    node_id: str
    label: str


Command = Union[EditRequested, DeleteRequested, TextChanged, LabelCommitted]
CommandSink = Callable[[Command], None]
