"""Dashboard metrics folded from inventory, sales and expenses."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Sequence

from ..models.inventory import InventoryItem, Sale, Expense, IN_STOCK, LISTED, SOLD
from ..models.metrics import DashboardMetrics

_ZERO = Decimal("0.00")
_CENT = Decimal("0.01")

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_label(day) -> str:
    """English "Mon YYYY" label, independent of the process locale."""
    return f"{MONTHS[day.month - 1]} {day.year}"


def club_sales_distribution(sales: Sequence[Sale]) -> Dict[str, int]:
    """Number of sales per club; sales whose item is gone count as "Unknown"."""
    counts: Dict[str, int] = {}
    for sale in sales:
        counts[sale.club] = counts.get(sale.club, 0) + 1
    return counts


def monthly_revenue(sales: Sequence[Sale]) -> Dict[str, Decimal]:
    """Summed sale prices keyed by calendar month, e.g. ``"Jan 2025"``."""
    revenue: Dict[str, Decimal] = {}
    for sale in sales:
        if sale.sale_date is None:
            continue
        month = month_label(sale.sale_date)
        revenue[month] = revenue.get(month, _ZERO) + sale.sale_price
    return revenue


def compute_metrics(
    inventory: Sequence[InventoryItem],
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
) -> DashboardMetrics:
    """
    Fold the three tables into :class:`DashboardMetrics`.

    Rates are 0 when their denominator is empty: sell-through with no
    inventory, averages with no sales and ROI with no expenses.
    """
    metrics = DashboardMetrics(
        total_in_stock=sum(1 for item in inventory if item.status == IN_STOCK),
        total_listed=sum(1 for item in inventory if item.status == LISTED),
        total_sold=sum(1 for item in inventory if item.status == SOLD),
        total_inventory=len(inventory),
        total_sales=len(sales),
        total_revenue=sum((sale.sale_price for sale in sales), _ZERO),
        total_profit=sum((sale.profit for sale in sales), _ZERO),
        total_expenses=sum((expense.amount for expense in expenses), _ZERO),
        stock_value=sum((item.cost for item in inventory if not item.is_sold), _ZERO),
        club_sales=club_sales_distribution(sales),
        monthly_revenue=monthly_revenue(sales),
    )

    metrics.net_profit = metrics.total_profit - metrics.total_expenses

    if metrics.total_inventory > 0:
        metrics.sell_through_rate = metrics.total_sold / metrics.total_inventory * 100

    if sales:
        metrics.average_sale_price = (metrics.total_revenue / len(sales)).quantize(_CENT, rounding=ROUND_HALF_UP)
        metrics.average_profit = (metrics.total_profit / len(sales)).quantize(_CENT, rounding=ROUND_HALF_UP)

    if metrics.total_expenses > 0:
        metrics.roi = float(metrics.net_profit / metrics.total_expenses * 100)

    return metrics
