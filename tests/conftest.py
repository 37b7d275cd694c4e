"""Pytest configuration and fixtures."""

import os
from dataclasses import replace
from datetime import date
from decimal import Decimal
from itertools import count

import pytest
from unittest.mock import MagicMock

# Settings are read from the environment on first use; the server module
# reads them at import time, before any fixture runs.
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["ENVIRONMENT"] = "production"

from kitstock.models.inventory import InventoryItem, Sale, Expense, IN_STOCK, LISTED, SOLD
from kitstock.utils.config import get_config


@pytest.fixture(autouse=True)
def fresh_config():
    """Reload configuration for every test so mutations do not leak."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def make_item(sku="REAMAD-BLANK-M-01", club="Real Madrid", player="No Name", size="M",
              cost="9.20", status=IN_STOCK, item_id=None, purchase_date=date(2025, 1, 10)):
    return InventoryItem(
        id=item_id or f"id-{sku}",
        sku=sku,
        club=club,
        player=player,
        size=size,
        cost=Decimal(cost),
        status=status,
        purchase_date=purchase_date,
    )


@pytest.fixture
def sample_item():
    """Create a sample InventoryItem for testing."""
    return make_item()


@pytest.fixture
def sample_items():
    """A small mixed inventory across two clubs."""
    return [
        make_item("REAMAD-BLANK-M-01"),
        make_item("REAMAD-BLANK-M-02", status=LISTED),
        make_item("REAMAD-BLANK-L-01", size="L", status=SOLD),
        make_item("REAMAD-BEL-M-01", player="Bellingham", cost="12.00"),
        make_item("LIV-SAL-S-01", club="Liverpool", player="Salah", size="S"),
        make_item("LIV-SAL-S-02", club="Liverpool", player="Salah", size="S", status=SOLD),
    ]


@pytest.fixture
def sample_sales(sample_items):
    """Sales for the two Sold items of ``sample_items``."""
    sold = [item for item in sample_items if item.status == SOLD]
    return [
        Sale(id="sale-1", inventory_id=sold[0].id, sale_price="25.00", platform="Vinted",
             platform_fees="1.50", shipping_cost="3.00", profit="11.30",
             sale_date=date(2025, 1, 20), inventory=sold[0]),
        Sale(id="sale-2", inventory_id=sold[1].id, sale_price="30.00", platform="eBay",
             platform_fees="0.00", shipping_cost="0.00", profit="20.80",
             sale_date=date(2025, 2, 3), inventory=sold[1]),
    ]


@pytest.fixture
def sample_expenses():
    return [
        Expense(id="exp-1", category="Stock Purchase", amount="18.40", expense_date=date(2025, 1, 10),
                description="2x Real Madrid No Name (M×2)"),
        Expense(id="exp-2", category="Packaging", amount="5.00", expense_date=date(2025, 1, 12)),
    ]


@pytest.fixture
def mock_backend():
    """
    Create a mock backend whose writes echo the record back with an id.

    ``backend.inventory.create`` etc. can be given a ``side_effect`` in a test
    to simulate backend failures.
    """
    ids = count(1)
    backend = MagicMock()
    backend.__enter__.return_value = backend
    backend.__exit__.return_value = False

    backend.inventory.get_all.return_value = []
    backend.inventory.get.return_value = None
    backend.inventory.create.side_effect = lambda item: replace(item, id=f"item-{next(ids)}")
    backend.inventory.update_status.side_effect = (
        lambda item_id, status: make_item(item_id=item_id, status=status)
    )

    backend.sales.get_all.return_value = []
    backend.sales.create.side_effect = lambda sale: replace(sale, id=f"sale-{next(ids)}")

    backend.expenses.get_all.return_value = []
    backend.expenses.create.side_effect = lambda expense: replace(expense, id=f"exp-{next(ids)}")
    return backend


@pytest.fixture
def item_factory():
    """Factory for InventoryItems with sensible defaults."""
    return make_item
