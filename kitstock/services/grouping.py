"""Grouping of flat inventory rows into the club → player → size tree."""

from typing import Dict, Iterable, List, Optional

from ..models.grouping import ClubGroup, PlayerGroup, SizeGroup
from ..models.inventory import InventoryItem, SIZES
from ..models.view_state import ALL, STATUS_FILTERS


def filter_by_status(items: Iterable[InventoryItem], status_filter: str = ALL) -> List[InventoryItem]:
    """Keep the items matching ``status_filter`` ("all" keeps everything)."""
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status_filter}")
    if status_filter == ALL:
        return list(items)
    return [item for item in items if item.status == status_filter]


def group_inventory(
    items: Iterable[InventoryItem],
    status_filter: str = ALL,
    sort: bool = False,
) -> Dict[str, ClubGroup]:
    """
    Fold inventory rows into a club → player → size hierarchy.

    Items not matching ``status_filter`` are dropped before grouping, so
    counts only reflect matching units and a club without any matching
    unit does not appear at all.

    Args:
        items: Inventory rows, usually the result of a full fetch.
        status_filter: "all", "In Stock", "Listed" or "Sold".
        sort: Order clubs and players alphabetically and sizes XS → XXL.
            By default keys keep the order in which they were first seen.

    Returns:
        Mapping of club name to :class:`ClubGroup`.
    """
    clubs: Dict[str, ClubGroup] = {}

    for item in filter_by_status(items, status_filter):
        group = clubs.get(item.club)
        if group is None:
            group = clubs[item.club] = ClubGroup(item.club)
        group.add(item)

    if sort:
        clubs = _sorted_tree(clubs)

    return clubs


def _sorted_tree(clubs: Dict[str, ClubGroup]) -> Dict[str, ClubGroup]:
    for club in clubs.values():
        for player in club.players.values():
            player.sizes = {
                size: player.sizes[size]
                for size in sorted(player.sizes, key=SIZES.index)
            }
        club.players = {name: club.players[name] for name in sorted(club.players, key=str.lower)}
    return {name: clubs[name] for name in sorted(clubs, key=str.lower)}


def size_groups(clubs: Dict[str, ClubGroup]) -> List[SizeGroup]:
    """Every leaf group of the tree, in tree order."""
    return [group for club in clubs.values() for group in club.size_groups()]


def flatten(clubs: Dict[str, ClubGroup]) -> List[InventoryItem]:
    """Items of the tree in tree order."""
    return [item for group in size_groups(clubs) for item in group.items]


def find_size_group(clubs: Dict[str, ClubGroup], item: InventoryItem) -> Optional[SizeGroup]:
    """Locate the leaf group an item belongs to, if the tree contains it."""
    club = clubs.get(item.club)
    if club is None:
        return None
    player: Optional[PlayerGroup] = club.players.get(item.player_name)
    if player is None:
        return None
    return player.sizes.get(item.size)


def find_group(clubs: Dict[str, ClubGroup], key: str) -> Optional[SizeGroup]:
    """Look up a leaf group by its ``club-player-size`` key."""
    for group in size_groups(clubs):
        if group.key == key:
            return group
    return None
