"""Per-table repositories over the Supabase client.

These are the only objects the services talk to. Each ``get_all`` returns the
full table ordered by recency; filtering happens in the caller.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from .supabase_client import SupabaseClient
from ..models.inventory import InventoryItem, Sale, Expense, STATUSES
from ..utils.config import get_config
from ..utils.logger import get_error_logger

T = TypeVar("T")


def _without_id(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k != "id"}


def parse_rows(rows: List[Dict[str, Any]], parse: Callable[[Dict[str, Any]], T], table: str) -> List[T]:
    """
    Parse backend rows one at a time, skipping the ones that fail validation.

    A single malformed row (a size outside the known set, a null status, a
    sale whose unit reference was cleared) is logged to the error channel
    instead of failing the whole table.
    """
    parsed: List[T] = []
    for row in rows:
        try:
            parsed.append(parse(row))
        except (ValueError, KeyError, TypeError, ArithmeticError) as e:
            get_error_logger().error(f"Skipping malformed {table} row {row.get('id')}: {str(e)}")
    return parsed


class InventoryRepository:
    """Rows of the ``inventory`` table."""

    def __init__(self, client: SupabaseClient, table: str = "inventory"):
        self.client = client
        self.table = table

    def get_all(self) -> List[InventoryItem]:
        rows = self.client.select(self.table, order="created_at.desc")
        return parse_rows(rows, InventoryItem.from_dict, self.table)

    def get(self, item_id: str) -> Optional[InventoryItem]:
        rows = self.client.select(self.table, filters={"id": f"eq.{item_id}"})
        return InventoryItem.from_dict(rows[0]) if rows else None

    def create(self, item: InventoryItem) -> InventoryItem:
        row = self.client.insert(self.table, _without_id(item.to_dict()))
        return InventoryItem.from_dict(row)

    def update_status(self, item_id: str, status: str) -> InventoryItem:
        if status not in STATUSES:
            raise ValueError(f"Status must be one of {', '.join(STATUSES)}")
        row = self.client.update(self.table, item_id, {
            "status": status,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })
        return InventoryItem.from_dict(row)

    def update(self, item_id: str, fields: Dict[str, Any]) -> InventoryItem:
        fields = dict(fields, updated_at=datetime.now(timezone.utc).isoformat())
        return InventoryItem.from_dict(self.client.update(self.table, item_id, fields))

    def delete(self, item_id: str) -> None:
        self.client.remove(self.table, item_id)


class SalesRepository:
    """Rows of the ``sales`` table, each embedding its inventory row."""

    columns = "*,inventory(*)"

    def __init__(self, client: SupabaseClient, table: str = "sales"):
        self.client = client
        self.table = table

    def get_all(self) -> List[Sale]:
        rows = self.client.select(self.table, columns=self.columns, order="sale_date.desc")
        return parse_rows(rows, Sale.from_dict, self.table)

    def create(self, sale: Sale) -> Sale:
        row = self.client.insert(self.table, _without_id(sale.to_dict()), columns=self.columns)
        return Sale.from_dict(row)

    def update(self, sale_id: str, fields: Dict[str, Any]) -> Sale:
        return Sale.from_dict(self.client.update(self.table, sale_id, fields, columns=self.columns))

    def delete(self, sale_id: str) -> None:
        self.client.remove(self.table, sale_id)


class ExpensesRepository:
    """Rows of the ``expenses`` table."""

    def __init__(self, client: SupabaseClient, table: str = "expenses"):
        self.client = client
        self.table = table

    def get_all(self) -> List[Expense]:
        rows = self.client.select(self.table, order="expense_date.desc")
        return parse_rows(rows, Expense.from_dict, self.table)

    def create(self, expense: Expense) -> Expense:
        return Expense.from_dict(self.client.insert(self.table, _without_id(expense.to_dict())))

    def update(self, expense_id: str, fields: Dict[str, Any]) -> Expense:
        return Expense.from_dict(self.client.update(self.table, expense_id, fields))

    def delete(self, expense_id: str) -> None:
        self.client.remove(self.table, expense_id)


class Backend:
    """Bundle of the three repositories sharing one HTTP client."""

    def __init__(self, client: Optional[SupabaseClient] = None, transport: Optional[httpx.BaseTransport] = None):
        config = get_config()
        self.client = client or SupabaseClient(transport=transport)
        self.inventory = InventoryRepository(self.client, config.supabase.inventory_table)
        self.sales = SalesRepository(self.client, config.supabase.sales_table)
        self.expenses = ExpensesRepository(self.client, config.supabase.expenses_table)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
