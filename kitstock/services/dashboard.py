"""Read side of the screens: fail-soft fetches and the dashboard snapshot."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, TypeVar

from .grouping import group_inventory
from .metrics import compute_metrics
from ..api.repositories import Backend
from ..models.inventory import InventoryItem, Sale, Expense
from ..models.metrics import DashboardMetrics
from ..models.view_state import ALL
from ..utils.exceptions import RecordNotFoundError
from ..utils.logger import get_inventory_logger, get_error_logger

T = TypeVar("T")


def fetch_or_empty(fetch: Callable[[], List[T]], label: str) -> List[T]:
    """
    Run a full-table fetch for display, treating any failure as no rows.

    The failure is logged; nothing is raised.
    """
    try:
        return fetch()
    except Exception as e:
        get_error_logger().error(f"Error fetching {label}: {str(e)}")
        return []


@dataclass
class DashboardSnapshot:
    inventory: List[InventoryItem] = field(default_factory=list)
    sales: List[Sale] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    metrics: DashboardMetrics = field(default_factory=DashboardMetrics)


class DashboardService:
    """Loads the three tables and derives the dashboard and grouped views."""

    def __init__(self, backend: Optional[Backend] = None):
        self.logger = get_inventory_logger()
        self.backend = backend or Backend()

    def load_inventory(self) -> List[InventoryItem]:
        return fetch_or_empty(self.backend.inventory.get_all, "inventory")

    def load_sales(self) -> List[Sale]:
        return fetch_or_empty(self.backend.sales.get_all, "sales")

    def load_expenses(self) -> List[Expense]:
        return fetch_or_empty(self.backend.expenses.get_all, "expenses")

    def snapshot(self) -> DashboardSnapshot:
        inventory = self.load_inventory()
        sales = self.load_sales()
        expenses = self.load_expenses()
        return DashboardSnapshot(
            inventory=inventory,
            sales=sales,
            expenses=expenses,
            metrics=compute_metrics(inventory, sales, expenses),
        )

    def grouped_inventory(self, status_filter: str = ALL, sort: bool = False):
        return group_inventory(self.load_inventory(), status_filter, sort=sort)

    def find_item(self, ref: str) -> InventoryItem:
        """Look up a unit by id or SKU (SKU match is case-insensitive)."""
        for item in self.backend.inventory.get_all():
            if item.id == ref or item.sku.upper() == ref.upper():
                return item
        raise RecordNotFoundError(f"No inventory item with id or SKU {ref}", details={"ref": ref})
