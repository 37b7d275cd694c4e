"""Club → player → size hierarchy built from inventory rows."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Any, Iterator

from .inventory import InventoryItem, IN_STOCK, LISTED, SOLD


@dataclass
class StatusCounts:
    """Per-status unit counters for one level of the tree."""

    in_stock: int = 0
    listed: int = 0
    sold: int = 0

    def add(self, status: str):
        if status == IN_STOCK:
            self.in_stock += 1
        elif status == LISTED:
            self.listed += 1
        elif status == SOLD:
            self.sold += 1

    @property
    def total(self) -> int:
        return self.in_stock + self.listed + self.sold

    @property
    def available(self) -> int:
        return self.in_stock + self.listed

    def to_dict(self) -> Dict[str, int]:
        return {"in_stock": self.in_stock, "listed": self.listed, "sold": self.sold}


@dataclass
class SizeGroup:
    """Identical units: same club, player and size."""

    club: str
    player: str
    size: str
    items: List[InventoryItem] = field(default_factory=list)
    counts: StatusCounts = field(default_factory=StatusCounts)

    @property
    def key(self) -> str:
        return f"{self.club}-{self.player}-{self.size}"

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def cost(self) -> Decimal:
        """Unit cost of the group, taken from its first unit."""
        return self.items[0].cost if self.items else Decimal("0.00")

    @property
    def available_items(self) -> List[InventoryItem]:
        return [item for item in self.items if not item.is_sold]

    def add(self, item: InventoryItem):
        self.items.append(item)
        self.counts.add(item.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "cost": float(self.cost),
            "total_items": self.total_items,
            "counts": self.counts.to_dict(),
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class PlayerGroup:
    """All sizes of one player's kit for a club."""

    club: str
    player: str
    sizes: Dict[str, SizeGroup] = field(default_factory=dict)
    total_items: int = 0
    counts: StatusCounts = field(default_factory=StatusCounts)

    @property
    def key(self) -> str:
        return f"{self.club}-{self.player}"

    def add(self, item: InventoryItem):
        group = self.sizes.get(item.size)
        if group is None:
            group = self.sizes[item.size] = SizeGroup(self.club, self.player, item.size)
        group.add(item)
        self.total_items += 1
        self.counts.add(item.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player,
            "total_items": self.total_items,
            "counts": self.counts.to_dict(),
            "sizes": [group.to_dict() for group in self.sizes.values()],
        }


@dataclass
class ClubGroup:
    """Every unit stocked for one club."""

    club: str
    players: Dict[str, PlayerGroup] = field(default_factory=dict)
    total_items: int = 0
    counts: StatusCounts = field(default_factory=StatusCounts)

    @property
    def key(self) -> str:
        return self.club

    def add(self, item: InventoryItem):
        name = item.player_name
        group = self.players.get(name)
        if group is None:
            group = self.players[name] = PlayerGroup(self.club, name)
        group.add(item)
        self.total_items += 1
        self.counts.add(item.status)

    def size_groups(self) -> Iterator[SizeGroup]:
        for player in self.players.values():
            yield from player.sizes.values()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "club": self.club,
            "total_items": self.total_items,
            "counts": self.counts.to_dict(),
            "players": [group.to_dict() for group in self.players.values()],
        }
