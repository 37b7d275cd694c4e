"""Stock intake: single and bulk adds with the matching purchase expense."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .sku import SkuAllocator
from ..api.repositories import Backend
from ..models.inventory import (
    InventoryItem,
    Expense,
    IN_STOCK,
    SIZES,
    STOCK_PURCHASE,
    money,
    player_label,
)
from ..models.operation_result import OperationResult
from ..utils.config import get_config
from ..utils.exceptions import InventoryValidationError
from ..utils.logger import get_inventory_logger, get_error_logger


class StockIntakeService:
    """Create inventory units and log one Stock Purchase expense per submission."""

    def __init__(self, backend: Optional[Backend] = None, record_expense: Optional[bool] = None):
        self.config = get_config()
        self.logger = get_inventory_logger()
        self.error_logger = get_error_logger()
        self.backend = backend or Backend()
        self.allocator = SkuAllocator(self.backend.inventory)
        if record_expense is None:
            record_expense = self.config.inventory.record_stock_expense
        self.record_expense = record_expense

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, club: str, sizes: Dict[str, int], cost) -> Decimal:
        if not club or not club.strip():
            raise InventoryValidationError("Club is required")

        for size, quantity in sizes.items():
            if size not in SIZES:
                raise InventoryValidationError(
                    f"Unknown size: {size}",
                    details={"allowed": list(SIZES)}
                )
            if not isinstance(quantity, int) or quantity < 0:
                raise InventoryValidationError(
                    f"Quantity for {size} must be a non-negative integer",
                    details={"size": size, "quantity": quantity}
                )

        if sum(sizes.values()) == 0:
            raise InventoryValidationError("Nothing to add: all quantities are zero")

        try:
            unit_cost = money(cost)
        except ArithmeticError:
            raise InventoryValidationError(f"Invalid cost: {cost}")
        if unit_cost < 0:
            raise InventoryValidationError("Cost cannot be negative")
        return unit_cost

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def add_single(
        self,
        club: str,
        player: Optional[str],
        size: str,
        cost=None,
        purchase_date: Optional[date] = None,
    ) -> OperationResult:
        """
        Add one unit. Its ordinal is the group's existing count + 1.

        Raises:
            InventoryValidationError: On invalid input.
            SupabaseAPIError: If the unit could not be created.
        """
        return self.add_bulk(club, player, {size: 1}, cost, purchase_date, stop_on_error=False)

    def add_bulk(
        self,
        club: str,
        player: Optional[str],
        sizes: Dict[str, int],
        cost=None,
        purchase_date: Optional[date] = None,
        stop_on_error: bool = True,
    ) -> OperationResult:
        """
        Add several units of one kit, e.g. ``{"M": 2, "L": 3}``.

        SKUs are allocated per size before any row is written, counting the
        store once per size. Rows are then created one by one; a failure
        stops the batch and the units already created stay in place.

        Returns:
            Result whose ``records`` are the created units. When
            ``stop_on_error`` is False (single adds) a failed create is raised
            instead of reported.
        """
        if cost is None:
            cost = self.config.inventory.default_cost
        unit_cost = self._validate(club, sizes, cost)
        club = club.strip()
        player_name = player_label(player)
        purchase_date = purchase_date or date.today()

        pending: List[InventoryItem] = []
        for size, quantity in sizes.items():
            for sku in self.allocator.next_skus(club, player_name, size, quantity):
                pending.append(InventoryItem(
                    sku=sku,
                    club=club,
                    player=player_name,
                    size=size,
                    cost=unit_cost,
                    status=IN_STOCK,
                    purchase_date=purchase_date,
                ))

        result = OperationResult(success=True, total_items=len(pending))
        self.logger.info(f"Adding {len(pending)} unit(s): {club} {player_name}")

        for index, item in enumerate(pending):
            try:
                created = self.backend.inventory.create(item)
            except Exception as e:
                self.error_logger.error(f"Error adding {item.sku}: {str(e)}")
                if not stop_on_error:
                    raise
                result.add_error(item.sku, type(e).__name__, str(e))
                result.metadata["not_attempted"] = [other.sku for other in pending[index + 1:]]
                break
            result.records.append(created)
            result.updated_count += 1
            self.logger.info(f"  + {created.sku}")

        if result.records and self.record_expense:
            self._record_expense(result, club, player_name, unit_cost, purchase_date)

        return result.finalize()

    def _record_expense(self, result: OperationResult, club: str, player: str, unit_cost: Decimal, on: date):
        """Log the Stock Purchase expense for the units that were created."""
        created = result.records
        per_size: Dict[str, int] = {}
        for item in created:
            per_size[item.size] = per_size.get(item.size, 0) + 1
        breakdown = ", ".join(f"{size}×{count}" for size, count in per_size.items())

        expense = Expense(
            category=STOCK_PURCHASE,
            description=f"{len(created)}x {club} {player} ({breakdown})",
            amount=unit_cost * len(created),
            expense_date=on,
        )
        try:
            stored = self.backend.expenses.create(expense)
            result.metadata["expense_id"] = stored.id
            self.logger.info(f"Recorded stock expense €{stored.amount}: {stored.description}")
        except Exception as e:
            self.error_logger.error(f"Units added but stock expense not recorded: {str(e)}")
            result.add_error("EXPENSE", type(e).__name__, str(e))
