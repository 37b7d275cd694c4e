"""Sales and expense bookkeeping: listing, filtering, edits and deletions."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Any

from .dashboard import fetch_or_empty
from ..api.repositories import Backend
from ..models.inventory import (
    Sale,
    Expense,
    IN_STOCK,
    LISTED,
    compute_profit,
    money,
)
from ..models.view_state import ALL
from ..utils.exceptions import InventoryValidationError, InvalidTransitionError, RecordNotFoundError
from ..utils.logger import get_inventory_logger

_ZERO = Decimal("0.00")


def platforms(sales: List[Sale]) -> List[str]:
    """Filter choices for the sales list: "all" then each platform seen."""
    seen = dict.fromkeys(sale.platform for sale in sales)
    return [ALL] + list(seen)


def expense_categories(expenses: List[Expense]) -> List[str]:
    """Filter choices for the expense list: "all" then each category seen."""
    seen = dict.fromkeys(expense.category for expense in expenses)
    return [ALL] + list(seen)


def sales_totals(sales: List[Sale]) -> Tuple[Decimal, Decimal]:
    """Revenue and profit of a list of sales."""
    return (
        sum((sale.sale_price for sale in sales), _ZERO),
        sum((sale.profit for sale in sales), _ZERO),
    )


def expenses_total(expenses: List[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), _ZERO)


class LedgerService:
    """Sale and expense records after they have been created."""

    def __init__(self, backend: Optional[Backend] = None):
        self.logger = get_inventory_logger()
        self.backend = backend or Backend()

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def list_sales(self, platform: str = ALL) -> List[Sale]:
        sales = fetch_or_empty(self.backend.sales.get_all, "sales")
        if platform == ALL:
            return sales
        return [sale for sale in sales if sale.platform == platform]

    def get_sale(self, sale_id: str) -> Sale:
        for sale in self.backend.sales.get_all():
            if sale.id == sale_id:
                return sale
        raise RecordNotFoundError(f"No sale with id {sale_id}", details={"id": sale_id})

    def update_sale(
        self,
        sale: Sale,
        sale_price=None,
        platform: Optional[str] = None,
        platform_fees=None,
        shipping_cost=None,
        sale_date: Optional[date] = None,
    ) -> Sale:
        """
        Edit a sale and recompute its profit.

        The unit cost comes from the embedded inventory row as it is now;
        a sale whose unit was deleted is treated as costing nothing.
        """
        try:
            price = money(sale.sale_price if sale_price is None else sale_price)
            fees = money(sale.platform_fees if platform_fees is None else platform_fees)
            shipping = money(sale.shipping_cost if shipping_cost is None else shipping_cost)
        except ArithmeticError:
            raise InventoryValidationError("Sale amounts must be numbers")
        if min(price, fees, shipping) < 0:
            raise InventoryValidationError("Sale amounts cannot be negative")

        cost = sale.inventory.cost if sale.inventory else _ZERO
        fields: Dict[str, Any] = {
            "sale_price": float(price),
            "platform": platform or sale.platform,
            "platform_fees": float(fees),
            "shipping_cost": float(shipping),
            "sale_date": (sale_date or sale.sale_date or date.today()).isoformat(),
            "profit": float(compute_profit(price, fees, shipping, cost)),
        }
        updated = self.backend.sales.update(sale.id, fields)
        self.logger.info(f"Updated sale {sale.id}: €{updated.sale_price} (profit €{updated.profit})")
        return updated

    def delete_sale(self, sale: Sale, restore_status: Optional[str] = None):
        """
        Delete a sale. With ``restore_status`` (In Stock or Listed) the unit
        is put back on sale as well; otherwise it stays Sold.
        """
        if restore_status is not None and restore_status not in (IN_STOCK, LISTED):
            raise InvalidTransitionError(
                f"Cannot restore a unit to {restore_status}",
                details={"status": restore_status}
            )

        self.backend.sales.delete(sale.id)
        self.logger.info(f"Deleted sale {sale.id}")

        if restore_status:
            self.backend.inventory.update_status(sale.inventory_id, restore_status)
            self.logger.info(f"Restored unit {sale.inventory_id} to {restore_status}")

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def list_expenses(self, category: str = ALL) -> List[Expense]:
        expenses = fetch_or_empty(self.backend.expenses.get_all, "expenses")
        if category == ALL:
            return expenses
        return [expense for expense in expenses if expense.category == category]

    def get_expense(self, expense_id: str) -> Expense:
        for expense in self.backend.expenses.get_all():
            if expense.id == expense_id:
                return expense
        raise RecordNotFoundError(f"No expense with id {expense_id}", details={"id": expense_id})

    def add_expense(
        self,
        category: str,
        amount,
        expense_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Expense:
        try:
            expense = Expense(
                category=category,
                amount=amount,
                expense_date=expense_date or date.today(),
                description=description,
            )
        except (ValueError, ArithmeticError) as e:
            raise InventoryValidationError(str(e))

        stored = self.backend.expenses.create(expense)
        self.logger.info(f"Added expense {stored.category} €{stored.amount}")
        return stored

    def update_expense(
        self,
        expense: Expense,
        category: Optional[str] = None,
        amount=None,
        expense_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Expense:
        try:
            edited = Expense(
                category=category or expense.category,
                amount=expense.amount if amount is None else amount,
                expense_date=expense_date or expense.expense_date,
                description=expense.description if description is None else description,
            )
        except (ValueError, ArithmeticError) as e:
            raise InventoryValidationError(str(e))

        stored = self.backend.expenses.update(expense.id, edited.to_dict())
        self.logger.info(f"Updated expense {expense.id}")
        return stored

    def delete_expense(self, expense: Expense):
        self.backend.expenses.delete(expense.id)
        self.logger.info(f"Deleted expense {expense.id}: {expense.category} €{expense.amount}")
