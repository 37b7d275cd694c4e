"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from kitstock.cli import cli
from kitstock.models.inventory import LISTED, SOLD
from kitstock.utils.exceptions import SupabaseAPIError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def patched_backend(monkeypatch, mock_backend):
    monkeypatch.setattr("kitstock.cli.Backend", lambda: mock_backend)
    return mock_backend


def test_add_stock(runner, mock_backend):
    result = runner.invoke(cli, ["add-stock", "--club", "Real Madrid", "--player", "Vinicius", "--size", "m"])

    assert result.exit_code == 0
    assert "Successfully added Real Madrid Vinicius (M) as REAMAD-VIN-M-01" in result.output


def test_add_stock_failure(runner, mock_backend):
    mock_backend.inventory.create.side_effect = SupabaseAPIError("insert failed")

    result = runner.invoke(cli, ["add-stock", "--club", "Real Madrid", "--size", "M"])

    assert result.exit_code == 1
    assert "Error adding item. Please try again." in result.output


def test_bulk_add(runner, mock_backend):
    result = runner.invoke(cli, [
        "bulk-add", "--club", "Arsenal", "--player", "Saka",
        "--size", "M=2", "--size", "l=1", "--cost", "10",
    ])

    assert result.exit_code == 0
    assert "ARS-SAK-M-02" in result.output
    assert "ARS-SAK-L-01" in result.output
    assert "Successfully added 3 items" in result.output


def test_bulk_add_bad_size(runner):
    result = runner.invoke(cli, ["bulk-add", "--club", "Arsenal", "--size", "Q=2"])
    assert result.exit_code == 2


def test_inventory_tree(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["inventory", "--status", "all", "--expand", "Real Madrid"])

    assert result.exit_code == 0
    assert "2 clubs • 6 items (all)" in result.output
    assert "Bellingham" in result.output
    assert "Salah" not in result.output


def test_inventory_expand_all(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["inventory", "--expand-all"])

    assert "LIV-SAL-S-01" in result.output
    assert "LIV-SAL-S-02" not in result.output


def test_inventory_empty(runner):
    result = runner.invoke(cli, ["inventory", "--status", "Sold"])

    assert 'No items with status "Sold".' in result.output


def test_set_status(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["set-status", "reamad-blank-m-01", LISTED])

    assert result.exit_code == 0
    mock_backend.inventory.update_status.assert_called_once_with("id-REAMAD-BLANK-M-01", LISTED)


def test_sell_by_sku(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["sell", "LIV-SAL-S-01", "--price", "30"])

    assert result.exit_code == 0
    assert "on Vinted for €30.00, profit €20.80" in result.output
    mock_backend.inventory.update_status.assert_called_once_with("id-LIV-SAL-S-01", SOLD)


def test_sell_by_group(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["sell", "Real Madrid-No Name-M", "--platform", "Depop"])

    assert result.exit_code == 0
    mock_backend.inventory.update_status.assert_called_once_with("id-REAMAD-BLANK-M-01", SOLD)


def test_sell_unknown_ref(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["sell", "NOPE-01"])

    assert result.exit_code == 1
    mock_backend.sales.create.assert_not_called()


def test_delete_sold_refused(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["delete-item", "REAMAD-BLANK-L-01", "--yes"])

    assert result.exit_code == 1
    assert "cannot be deleted" in result.output
    mock_backend.inventory.delete.assert_not_called()


def test_sales_list(runner, mock_backend, sample_sales):
    mock_backend.sales.get_all.return_value = sample_sales

    result = runner.invoke(cli, ["sales", "list"])

    assert "2 sales • revenue €55.00 • profit €32.10" in result.output
    assert "Vinted (1)" in result.output


def test_sales_delete_with_restore(runner, mock_backend, sample_sales):
    mock_backend.sales.get_all.return_value = sample_sales

    result = runner.invoke(cli, ["sales", "delete", "sale-2", "--restore", "Listed", "--yes"])

    assert result.exit_code == 0
    mock_backend.inventory.update_status.assert_called_once_with(sample_sales[1].inventory_id, LISTED)


def test_expenses_add(runner, mock_backend):
    result = runner.invoke(cli, ["expenses", "add", "--category", "Packaging", "--amount", "4.5"])

    assert result.exit_code == 0
    assert "Packaging €4.50" in result.output


def test_dashboard(runner, mock_backend, sample_items, sample_sales, sample_expenses):
    mock_backend.inventory.get_all.return_value = sample_items
    mock_backend.sales.get_all.return_value = sample_sales
    mock_backend.expenses.get_all.return_value = sample_expenses

    result = runner.invoke(cli, ["dashboard"])

    assert result.exit_code == 0
    assert "Net profit:      €8.70" in result.output
    assert "Jan 2025" in result.output


def test_config_info(runner):
    result = runner.invoke(cli, ["config-info"])

    assert result.exit_code == 0
    assert "https://test-project.supabase.co" in result.output
    assert "Vinted" in result.output


def test_sell_negative_price(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["sell", "LIV-SAL-S-01", "--price=-5"])

    assert result.exit_code == 1
    assert "Error saving sale" in result.output
    mock_backend.sales.create.assert_not_called()


def test_bulk_sell(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["bulk-sell", "Real Madrid", "--player", "No Name", "--size", "M",
                                 "--price", "25", "--platform", "Depop"])

    assert result.exit_code == 0
    assert "Updated: 2" in result.output
    sold = [call[0][0] for call in mock_backend.inventory.update_status.call_args_list]
    assert sold == ["id-REAMAD-BLANK-M-01", "id-REAMAD-BLANK-M-02"]
    assert all(call[0][0].platform == "Depop" for call in mock_backend.sales.create.call_args_list)


def test_bulk_delete_keeps_sold(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["bulk-delete", "Liverpool", "--yes"])

    assert result.exit_code == 0
    assert "Skipped: 1" in result.output
    mock_backend.inventory.delete.assert_called_once_with("id-LIV-SAL-S-01")


def test_bulk_delete_unknown_club(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items

    result = runner.invoke(cli, ["bulk-delete", "Arsenal", "--yes"])

    assert result.exit_code == 1
    mock_backend.inventory.delete.assert_not_called()


def test_bulk_status_partial_lists_untouched(runner, mock_backend, sample_items):
    mock_backend.inventory.get_all.return_value = sample_items
    mock_backend.inventory.update_status.side_effect = SupabaseAPIError("patch failed")

    result = runner.invoke(cli, ["bulk-status", "Real Madrid", LISTED, "--player", "No Name"])

    assert result.exit_code == 1
    assert "Failed: 1" in result.output
    assert "Not attempted: REAMAD-BLANK-M-02" in result.output
