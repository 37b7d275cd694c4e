"""Tests for data models."""

import pytest
from datetime import date
from decimal import Decimal

from kitstock.models.inventory import (
    InventoryItem,
    Sale,
    Expense,
    NO_NAME,
    SOLD,
    compute_profit,
    money,
    player_label,
)
from kitstock.models.operation_result import OperationResult, CountResult


class TestMoney:
    """Tests for cent-quantized money values."""

    def test_float_goes_through_str(self):
        assert money(9.2) == Decimal("9.20")

    def test_rounds_half_up(self):
        assert money("1.005") == Decimal("1.01")

    def test_blank_is_zero(self):
        assert money(None) == Decimal("0.00")
        assert money("") == Decimal("0.00")

    def test_compute_profit(self):
        assert compute_profit(25, "1.50", 3, "9.20") == Decimal("11.30")

    def test_compute_profit_can_be_negative(self):
        assert compute_profit(5, 0, 0, "9.20") == Decimal("-4.20")


class TestInventoryItem:
    """Tests for InventoryItem model."""

    def test_create_inventory_item(self):
        item = InventoryItem(sku="REAMAD-BLANK-M-01", club="Real Madrid", size="M", cost=9.2)

        assert item.cost == Decimal("9.20")
        assert item.status == "In Stock"
        assert item.player == NO_NAME
        assert not item.is_sold

    def test_validation_empty_sku(self):
        """Test that empty SKU raises ValueError."""
        with pytest.raises(ValueError, match="SKU cannot be empty"):
            InventoryItem(sku="", club="Real Madrid", size="M", cost=9.2)

    def test_validation_invalid_size(self):
        with pytest.raises(ValueError, match="Size must be one of"):
            InventoryItem(sku="X-01", club="Real Madrid", size="XXXL", cost=9.2)

    def test_validation_invalid_status(self):
        with pytest.raises(ValueError, match="Status must be one of"):
            InventoryItem(sku="X-01", club="Real Madrid", size="M", cost=9.2, status="Reserved")

    def test_validation_negative_cost(self):
        with pytest.raises(ValueError, match="Cost cannot be negative"):
            InventoryItem(sku="X-01", club="Real Madrid", size="M", cost=-1)

    def test_player_name_substitutes_sentinel(self):
        item = InventoryItem(sku="X-01", club="Real Madrid", size="M", cost=9.2, player="")
        assert item.player_name == NO_NAME
        assert player_label("  Vinicius  ") == "Vinicius"

    def test_to_dict(self, sample_item):
        data = sample_item.to_dict()

        assert data["sku"] == "REAMAD-BLANK-M-01"
        assert data["cost"] == 9.2
        assert data["purchase_date"] == "2025-01-10"
        assert data["id"] == "id-REAMAD-BLANK-M-01"

    def test_from_dict(self):
        item = InventoryItem.from_dict({
            "id": "abc",
            "sku": "LIV-SAL-S-01",
            "club": "Liverpool",
            "player": "Salah",
            "size": "S",
            "cost": 9.2,
            "status": "Listed",
            "purchase_date": "2025-03-01T00:00:00+00:00",
            "created_at": "2025-03-01T10:00:00+00:00",
        })

        assert item.id == "abc"
        assert item.cost == Decimal("9.20")
        assert item.purchase_date == date(2025, 3, 1)
        assert item.status == "Listed"


class TestSale:
    """Tests for Sale model."""

    def test_from_dict_with_embedded_inventory(self):
        sale = Sale.from_dict({
            "id": "s1",
            "inventory_id": "abc",
            "sale_price": 25,
            "platform": "Vinted",
            "platform_fees": 1.5,
            "shipping_cost": 3,
            "profit": 11.3,
            "sale_date": "2025-01-20",
            "inventory": {
                "id": "abc", "sku": "LIV-SAL-S-01", "club": "Liverpool",
                "player": "Salah", "size": "S", "cost": 9.2, "status": SOLD,
            },
        })

        assert sale.sale_price == Decimal("25.00")
        assert sale.profit == Decimal("11.30")
        assert sale.club == "Liverpool"
        assert sale.inventory.is_sold

    def test_club_unknown_without_inventory(self):
        sale = Sale.from_dict({"inventory_id": "gone", "sale_price": 20, "platform": None})

        assert sale.club == "Unknown"
        assert sale.platform == "Other"

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError, match="sale_price cannot be negative"):
            Sale(inventory_id="abc", sale_price=-1, platform="Vinted")

    def test_to_dict_excludes_embedded_inventory(self, sample_sales):
        data = sample_sales[0].to_dict()

        assert "inventory" not in data
        assert data["sale_date"] == "2025-01-20"
        assert data["profit"] == 11.3


class TestExpense:
    """Tests for Expense model."""

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError, match="Category must be one of"):
            Expense(category="Travel", amount=10)

    def test_empty_description_is_none(self):
        expense = Expense(category="Packaging", amount="4.5", description="")

        assert expense.description is None
        assert expense.amount == Decimal("4.50")


class TestOperationResult:
    """Tests for OperationResult model."""

    def test_create_operation_result(self):
        result = OperationResult(success=True, total_items=10)

        assert result.success is True
        assert result.total_items == 10
        assert result.start_time is not None

    def test_add_error(self):
        """Test adding errors to OperationResult."""
        result = OperationResult(success=True)
        result.add_error(ref="LIV-SAL-S-01", error_type="SupabaseAPIError", message="boom")

        assert result.success is False
        assert result.failed_count == 1
        assert result.errors[0].ref == "LIV-SAL-S-01"

    def test_finalize(self):
        result = OperationResult(success=True).finalize()

        assert result.end_time is not None
        assert result.duration >= 0

    def test_success_rate(self):
        result = OperationResult(success=True, total_items=4, updated_count=3)

        assert result.success_rate == 75.0
        assert OperationResult(success=True).success_rate == 0.0

    def test_get_summary(self):
        result = OperationResult(success=True, total_items=3, updated_count=2)
        result.add_error("X-01", "SupabaseAPIError", "timeout")

        summary = result.get_summary()

        assert "Total items: 3" in summary
        assert "X-01: timeout" in summary


class TestCountResult:

    def test_ok(self):
        result = CountResult(count=4)
        assert result.ok
        assert result.or_zero() == 4

    def test_failed_lookup_counts_zero(self):
        result = CountResult(count=0, error=RuntimeError("down"))
        assert not result.ok
        assert result.or_zero() == 0
