"""Tests for dashboard metrics."""

import locale

import pytest
from datetime import date
from decimal import Decimal

from kitstock.models.inventory import Sale
from kitstock.services.metrics import club_sales_distribution, compute_metrics, month_label, monthly_revenue


def test_compute_metrics(sample_items, sample_sales, sample_expenses):
    metrics = compute_metrics(sample_items, sample_sales, sample_expenses)

    assert metrics.total_in_stock == 3
    assert metrics.total_listed == 1
    assert metrics.total_sold == 2
    assert metrics.total_inventory == 6
    assert metrics.total_sales == 2
    assert metrics.total_revenue == Decimal("55.00")
    assert metrics.total_profit == Decimal("32.10")
    assert metrics.total_expenses == Decimal("23.40")
    assert metrics.net_profit == Decimal("8.70")
    assert metrics.sell_through_rate == pytest.approx(33.333, rel=1e-3)
    assert metrics.average_sale_price == Decimal("27.50")
    assert metrics.average_profit == Decimal("16.05")
    assert metrics.stock_value == Decimal("39.60")
    assert metrics.roi == pytest.approx(37.18, rel=1e-3)


def test_empty_tables_give_zeros():
    metrics = compute_metrics([], [], [])

    assert metrics.total_inventory == 0
    assert metrics.sell_through_rate == 0
    assert metrics.average_sale_price == Decimal("0.00")
    assert metrics.roi == 0
    assert metrics.club_sales == {}
    assert metrics.monthly_revenue == {}


def test_club_distribution_counts_orphans_as_unknown(sample_sales):
    orphan = Sale(inventory_id="deleted", sale_price="15.00", platform="Depop")

    assert club_sales_distribution(sample_sales + [orphan]) == {
        "Real Madrid": 1,
        "Liverpool": 1,
        "Unknown": 1,
    }


def test_monthly_revenue_buckets(sample_sales):
    extra = Sale(inventory_id="x", sale_price="10.00", platform="Vinted", sale_date=date(2025, 1, 31))
    undated = Sale(inventory_id="y", sale_price="99.00", platform="Vinted")

    revenue = monthly_revenue(sample_sales + [extra, undated])

    assert revenue == {"Jan 2025": Decimal("35.00"), "Feb 2025": Decimal("30.00")}


def test_to_dict_is_json_friendly(sample_items, sample_sales, sample_expenses):
    data = compute_metrics(sample_items, sample_sales, sample_expenses).to_dict()

    assert data["total_revenue"] == 55.0
    assert data["sell_through_rate"] == 33.33
    assert data["monthly_revenue"]["Feb 2025"] == 30.0


@pytest.mark.parametrize("month,label", [(1, "Jan 2025"), (5, "May 2025"), (10, "Oct 2025"), (12, "Dec 2025")])
def test_month_label(month, label):
    assert month_label(date(2025, month, 15)) == label


def test_month_label_ignores_locale():
    previous = locale.setlocale(locale.LC_TIME)
    try:
        locale.setlocale(locale.LC_TIME, "de_DE.UTF-8")
    except locale.Error:
        pytest.skip("de_DE locale not installed")
    try:
        assert month_label(date(2025, 10, 1)) == "Oct 2025"
        assert "Oct 2025" in monthly_revenue([
            Sale(inventory_id="x", sale_price="10.00", platform="Vinted", sale_date=date(2025, 10, 1)),
        ])
    finally:
        locale.setlocale(locale.LC_TIME, previous)
