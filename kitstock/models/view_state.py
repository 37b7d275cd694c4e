"""Immutable view state for the grouped inventory screen.

Screens never mutate state in place: every user action is described by an
action record and passed through :func:`reduce_view_state`, which returns a
new :class:`InventoryViewState`.
"""

from dataclasses import dataclass, replace
from typing import FrozenSet, Optional, Union

from .inventory import STATUSES

ALL = "all"
STATUS_FILTERS = (ALL,) + STATUSES

CLUB = "club"
PLAYER = "player"
SIZE = "size"
LEVELS = (CLUB, PLAYER, SIZE)


@dataclass(frozen=True)
class Message:
    """Transient banner shown after an action."""

    kind: str  # "success" or "error"
    text: str


@dataclass(frozen=True)
class InventoryViewState:
    status_filter: str = "In Stock"
    expanded_clubs: FrozenSet[str] = frozenset()
    expanded_players: FrozenSet[str] = frozenset()
    expanded_sizes: FrozenSet[str] = frozenset()
    selected_group: Optional[str] = None
    message: Optional[Message] = None

    def is_expanded(self, level: str, key: str) -> bool:
        return key in getattr(self, _FIELD_BY_LEVEL[level])


@dataclass(frozen=True)
class SetFilter:
    status_filter: str


@dataclass(frozen=True)
class ToggleExpanded:
    level: str
    key: str


@dataclass(frozen=True)
class SelectGroup:
    key: Optional[str]


@dataclass(frozen=True)
class ShowMessage:
    kind: str
    text: str


@dataclass(frozen=True)
class ClearMessage:
    pass


Action = Union[SetFilter, ToggleExpanded, SelectGroup, ShowMessage, ClearMessage]

_FIELD_BY_LEVEL = {
    CLUB: "expanded_clubs",
    PLAYER: "expanded_players",
    SIZE: "expanded_sizes",
}


def reduce_view_state(state: InventoryViewState, action: Action) -> InventoryViewState:
    """Return the state that results from applying ``action`` to ``state``."""
    if isinstance(action, SetFilter):
        if action.status_filter not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {action.status_filter}")
        return replace(state, status_filter=action.status_filter)

    if isinstance(action, ToggleExpanded):
        if action.level not in _FIELD_BY_LEVEL:
            raise ValueError(f"Unknown level: {action.level}")
        name = _FIELD_BY_LEVEL[action.level]
        current = getattr(state, name)
        updated = current - {action.key} if action.key in current else current | {action.key}
        return replace(state, **{name: frozenset(updated)})

    if isinstance(action, SelectGroup):
        return replace(state, selected_group=action.key)

    if isinstance(action, ShowMessage):
        return replace(state, message=Message(action.kind, action.text))

    if isinstance(action, ClearMessage):
        return replace(state, message=None)

    raise TypeError(f"Unsupported action: {type(action).__name__}")
