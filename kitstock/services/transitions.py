"""Status transitions of inventory units.

Lifecycle::

    In Stock <──> Listed ──> Sold
        └───────────────────┘

In Stock and Listed toggle freely with a single status write. Moving a unit
to Sold needs the sale figures and performs two writes: the Sale row first,
then the unit's status. Sold is terminal.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from ..api.repositories import Backend
from ..models.grouping import SizeGroup
from ..models.inventory import (
    InventoryItem,
    Sale,
    IN_STOCK,
    LISTED,
    SOLD,
    STATUSES,
    compute_profit,
)
from ..models.operation_result import OperationResult
from ..utils.config import get_config
from ..utils.exceptions import InvalidTransitionError, DeletionNotAllowedError, InventoryValidationError
from ..utils.logger import get_inventory_logger, get_error_logger


@dataclass
class SaleDetails:
    """Figures collected from the operator before a unit is marked Sold."""

    sale_price: Decimal
    platform: str
    platform_fees: Decimal = Decimal("0.00")
    shipping_cost: Decimal = Decimal("0.00")
    sale_date: Optional[date] = None


class StatusTransitionService:
    """Apply status changes, sales and deletions to inventory units."""

    def __init__(self, backend: Optional[Backend] = None, allow_delete_sold: Optional[bool] = None):
        self.config = get_config()
        self.logger = get_inventory_logger()
        self.error_logger = get_error_logger()
        self.backend = backend or Backend()
        if allow_delete_sold is None:
            allow_delete_sold = self.config.inventory.allow_delete_sold
        self.allow_delete_sold = allow_delete_sold

    # ------------------------------------------------------------------
    # Single unit
    # ------------------------------------------------------------------

    def set_status(self, item: InventoryItem, status: str) -> InventoryItem:
        """
        Toggle a unit between In Stock and Listed.

        Raises:
            InvalidTransitionError: If the unit is Sold, or ``status`` is Sold
                (use :meth:`sell`) or unknown.
        """
        if status not in STATUSES:
            raise InvalidTransitionError(f"Unknown status: {status}", details={"status": status})
        if status == SOLD:
            raise InvalidTransitionError(
                f"{item.sku}: marking a unit Sold requires sale details",
                details={"sku": item.sku}
            )
        if item.is_sold:
            raise InvalidTransitionError(
                f"{item.sku} is already Sold",
                details={"sku": item.sku, "status": item.status}
            )
        if item.status == status:
            self.logger.debug(f"{item.sku} already {status}")
            return item

        updated = self.backend.inventory.update_status(item.id, status)
        self.logger.info(f"{item.sku}: {item.status} → {status}")
        return updated

    def sell(self, item: InventoryItem, details: SaleDetails) -> Sale:
        """
        Record a sale for ``item`` and mark it Sold.

        Profit is fixed at this point from the unit's current cost. If the
        status update fails after the Sale row was written, the Sale is
        deleted again and the original error is raised.

        Raises:
            InvalidTransitionError: If the unit is already Sold.
            InventoryValidationError: If a sale figure is negative or the
                platform is empty.
        """
        if item.is_sold:
            raise InvalidTransitionError(
                f"{item.sku} is already Sold",
                details={"sku": item.sku}
            )

        try:
            sale = Sale(
                inventory_id=item.id,
                sale_price=details.sale_price,
                platform=details.platform,
                platform_fees=details.platform_fees,
                shipping_cost=details.shipping_cost,
                profit=compute_profit(details.sale_price, details.platform_fees, details.shipping_cost, item.cost),
                sale_date=details.sale_date or date.today(),
            )
        except (ValueError, ArithmeticError) as e:
            raise InventoryValidationError(str(e), details={"sku": item.sku})

        created = self.backend.sales.create(sale)

        try:
            sold_item = self.backend.inventory.update_status(item.id, SOLD)
        except Exception as e:
            self.error_logger.error(f"Failed to mark {item.sku} Sold after recording sale {created.id}: {str(e)}")
            self._compensate_sale(created, item)
            raise

        if created.inventory is None:
            created.inventory = sold_item
        self.logger.info(
            f"{item.sku} sold on {created.platform} for €{created.sale_price} (profit €{created.profit})"
        )
        return created

    def _compensate_sale(self, sale: Sale, item: InventoryItem):
        try:
            self.backend.sales.delete(sale.id)
            self.logger.warning(f"Removed sale {sale.id} for {item.sku}; unit left as {item.status}")
        except Exception as e:
            self.error_logger.error(
                f"Sale {sale.id} is recorded but {item.sku} is not Sold; fix manually: {str(e)}"
            )

    def sell_one(self, group: SizeGroup, details: SaleDetails, item_id: Optional[str] = None) -> Sale:
        """
        Sell one unit of a group: ``item_id`` if given, else the first available.

        Raises:
            InvalidTransitionError: If the group has no unit left to sell.
        """
        available = group.available_items
        if item_id is not None:
            available = [item for item in available if item.id == item_id]
        if not available:
            raise InvalidTransitionError(
                f"No available units in {group.key}",
                details={"group": group.key, "item_id": item_id}
            )
        return self.sell(available[0], details)

    def delete_item(self, item: InventoryItem):
        """
        Delete a unit.

        Raises:
            DeletionNotAllowedError: If the unit is Sold and the policy
                ``inventory.allow_delete_sold`` is off.
        """
        if item.is_sold and not self.allow_delete_sold:
            raise DeletionNotAllowedError(
                f"{item.sku} is Sold and cannot be deleted",
                details={"sku": item.sku}
            )
        self.backend.inventory.delete(item.id)
        self.logger.info(f"Deleted {item.sku} ({item.status})")

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def _run_bulk(self, items: Iterable[InventoryItem], action, label: str) -> OperationResult:
        """
        Apply ``action`` to each non-Sold unit in turn.

        Stops at the first failure. Units handled before it keep their new
        state; the rest are left untouched and reported in metadata.
        """
        items = list(items)
        result = OperationResult(success=True, total_items=len(items))
        pending: List[InventoryItem] = [item for item in items if not item.is_sold]
        result.skipped_count = len(items) - len(pending)

        for index, item in enumerate(pending):
            try:
                result.records.append(action(item))
                result.updated_count += 1
            except Exception as e:
                self.error_logger.error(f"{label} failed for {item.sku}: {str(e)}")
                result.add_error(item.sku, type(e).__name__, str(e))
                result.metadata["not_attempted"] = [other.sku for other in pending[index + 1:]]
                break

        self.logger.info(
            f"{label}: {result.updated_count} updated, {result.skipped_count} skipped, "
            f"{result.failed_count} failed"
        )
        return result.finalize()

    def bulk_set_status(self, items: Iterable[InventoryItem], status: str) -> OperationResult:
        """Move every non-Sold unit to In Stock or Listed."""
        if status not in (IN_STOCK, LISTED):
            raise InvalidTransitionError(
                f"Bulk status change to {status} is not supported",
                details={"status": status}
            )
        return self._run_bulk(items, lambda item: self.set_status(item, status), f"Bulk {status}")

    def bulk_sell(self, items: Iterable[InventoryItem], details: SaleDetails) -> OperationResult:
        """Sell every non-Sold unit with the same sale figures."""
        return self._run_bulk(items, lambda item: self.sell(item, details), "Bulk sell")

    def bulk_delete(self, items: Iterable[InventoryItem]) -> OperationResult:
        """Delete every non-Sold unit; Sold units are always skipped here."""
        def _delete(item):
            self.delete_item(item)
            return item

        return self._run_bulk(items, _delete, "Bulk delete")
