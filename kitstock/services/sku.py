"""SKU generation and ordinal allocation.

A SKU has the shape ``<CLUBCODE>-<PLAYERCODE>-<SIZE>-<NN>``::

    >>> generate_sku("Real Madrid", "", "L", 3)
    'REAMAD-BLANK-L-03'

Codes are built from the first three characters of every whitespace separated
word, upper-cased. Nothing is transliterated, so accented letters and
punctuation such as ``#10`` survive as written.
"""

from typing import List, Optional

from ..models.inventory import NO_NAME
from ..models.operation_result import CountResult
from ..utils.logger import get_inventory_logger

BLANK_PLAYER_CODE = "BLANK"


def word_code(name: str) -> str:
    """Concatenate the upper-cased 3-character prefix of each word in ``name``."""
    return "".join(word[:3].upper() for word in name.split())


def player_code(player: Optional[str]) -> str:
    if not player or not player.strip() or player == NO_NAME:
        return BLANK_PLAYER_CODE
    return word_code(player)


def sku_prefix(club: str, player: Optional[str], size: str) -> str:
    """Prefix shared by every unit of one (club, player, size) group, trailing dash included."""
    return f"{word_code(club)}-{player_code(player)}-{size}-"


def generate_sku(club: str, player: Optional[str], size: str, count: int = 1) -> str:
    """
    Build the SKU for the ``count``-th unit of a (club, player, size) group.

    Args:
        club: Club name, e.g. "Manchester United".
        player: Player printed on the kit; empty, None or "No Name" for blanks.
        size: One of XS, S, M, L, XL, XXL.
        count: Ordinal of the unit within its group, 1-based.

    Raises:
        ValueError: If ``count`` is not a positive integer.
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError("SKU ordinal must be a positive integer")
    return f"{sku_prefix(club, player, size)}{count:02d}"


class SkuAllocator:
    """Picks ordinals by counting the SKUs already stored for a group."""

    def __init__(self, inventory_repository):
        self.inventory = inventory_repository
        self.logger = get_inventory_logger()

    def existing_count(self, club: str, player: Optional[str], size: str) -> CountResult:
        """
        Count stored units whose SKU starts with the group's prefix.

        Never raises: a failed fetch is logged and reported as
        ``CountResult(0, error)`` so stock intake is not blocked by a read
        error. Two clients adding the same group at once can therefore
        receive the same ordinal.
        """
        prefix = sku_prefix(club, player, size)
        try:
            items = self.inventory.get_all()
        except Exception as e:
            self.logger.error(f"Error getting existing count for {prefix}: {str(e)}")
            return CountResult(count=0, error=e)

        return CountResult(count=sum(1 for item in items if item.sku.startswith(prefix)))

    def next_skus(self, club: str, player: Optional[str], size: str, quantity: int = 1) -> List[str]:
        """
        Allocate ``quantity`` consecutive SKUs for one group.

        The store is counted once, before any of the new rows exist, so the
        SKUs of one batch never collide with each other.
        """
        if quantity < 1:
            return []
        existing = self.existing_count(club, player, size).or_zero()
        return [generate_sku(club, player, size, existing + i) for i in range(1, quantity + 1)]
