"""Tests for stock intake."""

import pytest
from datetime import date
from decimal import Decimal

from kitstock.models.inventory import IN_STOCK, STOCK_PURCHASE
from kitstock.services.stock import StockIntakeService
from kitstock.utils.exceptions import InventoryValidationError, SupabaseAPIError


@pytest.fixture
def service(mock_backend):
    return StockIntakeService(mock_backend)


def created_skus(mock_backend):
    return [call[0][0].sku for call in mock_backend.inventory.create.call_args_list]


class TestAddBulk:

    def test_creates_units_and_one_expense(self, service, mock_backend):
        result = service.add_bulk("Real Madrid", "", {"M": 2, "L": 1}, cost="9.20",
                                  purchase_date=date(2025, 1, 10))

        assert result.success is True
        assert result.updated_count == 3
        assert created_skus(mock_backend) == ["REAMAD-BLANK-M-01", "REAMAD-BLANK-M-02", "REAMAD-BLANK-L-01"]
        assert all(item.status == IN_STOCK for item in result.records)
        assert all(item.player == "No Name" for item in result.records)

        mock_backend.expenses.create.assert_called_once()
        expense = mock_backend.expenses.create.call_args[0][0]
        assert expense.category == STOCK_PURCHASE
        assert expense.amount == Decimal("27.60")
        assert expense.expense_date == date(2025, 1, 10)
        assert expense.description == "3x Real Madrid No Name (M×2, L×1)"
        assert result.metadata["expense_id"].startswith("exp-")

    def test_continues_existing_ordinals(self, service, mock_backend, item_factory):
        mock_backend.inventory.get_all.return_value = [
            item_factory("REAMAD-BLANK-M-01"),
            item_factory("REAMAD-BLANK-M-02"),
        ]

        service.add_bulk("Real Madrid", None, {"M": 1})

        assert created_skus(mock_backend) == ["REAMAD-BLANK-M-03"]

    def test_default_cost_from_config(self, service, mock_backend):
        result = service.add_bulk("Liverpool", "Salah", {"S": 1})

        assert result.records[0].cost == Decimal("9.20")
        assert result.records[0].purchase_date == date.today()

    def test_zero_quantities_skipped(self, service, mock_backend):
        service.add_bulk("Liverpool", "Salah", {"S": 0, "M": 1})
        assert created_skus(mock_backend) == ["LIV-SAL-M-01"]

    def test_count_failure_does_not_block_intake(self, service, mock_backend):
        mock_backend.inventory.get_all.side_effect = SupabaseAPIError("read failed")

        result = service.add_bulk("Liverpool", "Salah", {"S": 2})

        assert result.success is True
        assert created_skus(mock_backend) == ["LIV-SAL-S-01", "LIV-SAL-S-02"]

    def test_stops_at_first_failed_create(self, service, mock_backend):
        created = []

        def create(item):
            if len(created) == 1:
                raise SupabaseAPIError("insert failed")
            created.append(item)
            return item

        mock_backend.inventory.create.side_effect = create

        result = service.add_bulk("Liverpool", "Salah", {"S": 3})

        assert result.success is False
        assert result.updated_count == 1
        assert result.errors[0].ref == "LIV-SAL-S-02"
        assert result.metadata["not_attempted"] == ["LIV-SAL-S-03"]
        # Expense covers only what was created.
        assert mock_backend.expenses.create.call_args[0][0].amount == Decimal("9.20")

    def test_expense_failure_reported(self, service, mock_backend):
        mock_backend.expenses.create.side_effect = SupabaseAPIError("insert failed")

        result = service.add_bulk("Liverpool", "Salah", {"S": 1})

        assert result.updated_count == 1
        assert result.success is False
        assert result.errors[0].ref == "EXPENSE"

    def test_expense_recording_disabled(self, mock_backend):
        StockIntakeService(mock_backend, record_expense=False).add_bulk("Liverpool", "Salah", {"S": 1})
        mock_backend.expenses.create.assert_not_called()


class TestValidation:

    @pytest.mark.parametrize("club,sizes,cost,message", [
        ("", {"M": 1}, 9.2, "Club is required"),
        ("  ", {"M": 1}, 9.2, "Club is required"),
        ("Arsenal", {"M": 0, "L": 0}, 9.2, "Nothing to add"),
        ("Arsenal", {"XXXL": 1}, 9.2, "Unknown size"),
        ("Arsenal", {"M": -1}, 9.2, "non-negative integer"),
        ("Arsenal", {"M": 1}, -1, "Cost cannot be negative"),
        ("Arsenal", {"M": 1}, "abc", "Invalid cost"),
    ])
    def test_invalid_input(self, service, mock_backend, club, sizes, cost, message):
        with pytest.raises(InventoryValidationError, match=message):
            service.add_bulk(club, "Saka", sizes, cost=cost)
        mock_backend.inventory.create.assert_not_called()


class TestAddSingle:

    def test_add_single(self, service, mock_backend):
        result = service.add_single("Manchester United", "Rashford #10", "M")

        assert result.records[0].sku == "MANUNI-RAS#10-M-01"
        assert mock_backend.expenses.create.call_args[0][0].amount == Decimal("9.20")

    def test_add_single_failure_raises(self, service, mock_backend):
        mock_backend.inventory.create.side_effect = SupabaseAPIError("insert failed")

        with pytest.raises(SupabaseAPIError):
            service.add_single("Arsenal", "Saka", "M")
        mock_backend.expenses.create.assert_not_called()


def test_bulk_add_across_sizes_has_no_collisions(mock_backend):
    result = StockIntakeService(mock_backend).add_bulk("Real Madrid", "", {"M": 2, "L": 3})

    skus = created_skus(mock_backend)
    assert skus == [
        "REAMAD-BLANK-M-01", "REAMAD-BLANK-M-02",
        "REAMAD-BLANK-L-01", "REAMAD-BLANK-L-02", "REAMAD-BLANK-L-03",
    ]
    assert len(set(skus)) == result.updated_count == 5
    assert mock_backend.expenses.create.call_args[0][0].description == "5x Real Madrid No Name (M×2, L×3)"
