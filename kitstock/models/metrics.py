"""Dashboard metrics data model."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Any

_ZERO = Decimal("0.00")


@dataclass
class DashboardMetrics:
    """Summary figures folded from inventory, sales and expenses."""

    total_in_stock: int = 0
    total_listed: int = 0
    total_sold: int = 0
    total_inventory: int = 0
    total_sales: int = 0
    total_revenue: Decimal = _ZERO
    total_profit: Decimal = _ZERO
    total_expenses: Decimal = _ZERO
    net_profit: Decimal = _ZERO
    sell_through_rate: float = 0.0
    average_sale_price: Decimal = _ZERO
    average_profit: Decimal = _ZERO
    stock_value: Decimal = _ZERO
    roi: float = 0.0
    club_sales: Dict[str, int] = field(default_factory=dict)
    monthly_revenue: Dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "total_in_stock": self.total_in_stock,
            "total_listed": self.total_listed,
            "total_sold": self.total_sold,
            "total_inventory": self.total_inventory,
            "total_sales": self.total_sales,
            "total_revenue": float(self.total_revenue),
            "total_profit": float(self.total_profit),
            "total_expenses": float(self.total_expenses),
            "net_profit": float(self.net_profit),
            "sell_through_rate": round(self.sell_through_rate, 2),
            "average_sale_price": float(self.average_sale_price),
            "average_profit": float(self.average_profit),
            "stock_value": float(self.stock_value),
            "roi": round(self.roi, 2),
            "club_sales": dict(self.club_sales),
            "monthly_revenue": {month: float(value) for month, value in self.monthly_revenue.items()},
        }

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        return "\n".join([
            f"In stock:        {self.total_in_stock}",
            f"Listed:          {self.total_listed}",
            f"Sold:            {self.total_sold}",
            f"Revenue:         €{self.total_revenue:.2f}",
            f"Sales profit:    €{self.total_profit:.2f}",
            f"Expenses:        €{self.total_expenses:.2f}",
            f"Net profit:      €{self.net_profit:.2f}",
            f"Sell-through:    {self.sell_through_rate:.1f}%",
            f"Avg sale price:  €{self.average_sale_price:.2f}",
            f"Avg profit:      €{self.average_profit:.2f}",
            f"Stock value:     €{self.stock_value:.2f}",
            f"ROI:             {self.roi:.1f}%",
        ])
