"""Optional human-readable aliases for nodes and events, and size metrics."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Hashable

_node_names: dict[int, str] = {}
_event_names: dict[Hashable, str] = {}
_node_lock = threading.Lock()
_event_lock = threading.Lock()


def set_node_name(validator_id: int, name: str) -> None:
    """Set a human-readable alias for a validator."""
    with _node_lock:
        _node_names[validator_id] = name


def set_event_name(event_id: Hashable, name: str) -> None:
    """Set a human-readable alias for an event hash."""
    with _event_lock:
        _event_names[event_id] = name


def get_node_name(validator_id: int) -> str:
    """Return a validator's alias, or an empty string if none is set."""
    with _node_lock:
        return _node_names.get(validator_id, "")


def get_event_name(event_id: Hashable) -> str:
    """Return an event's alias, or an empty string if none is set."""
    with _event_lock:
        return _event_names.get(event_id, "")


@dataclass(frozen=True)
class Metric:
    """A count of items and their total size."""

    num: int = 0
    size: int = 0

    def __str__(self) -> str:
        return f"{{Num={self.num},Size={self.size}}}"