"""Inventory, sale and expense data models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict, Any, Union

NO_NAME = "No Name"

SIZES = ("XS", "S", "M", "L", "XL", "XXL")

IN_STOCK = "In Stock"
LISTED = "Listed"
SOLD = "Sold"
STATUSES = (IN_STOCK, LISTED, SOLD)

PLATFORMS = ("Vinted", "Depop", "eBay", "Facebook Marketplace", "Instagram", "Other")

STOCK_PURCHASE = "Stock Purchase"
EXPENSE_CATEGORIES = (
    STOCK_PURCHASE,
    "Packaging",
    "Printing",
    "Shipping",
    "PayPal Fees",
    "Marketing",
    "Office Supplies",
    "Other",
)

_CENT = Decimal("0.01")

Number = Union[Decimal, float, int, str]


def money(value: Optional[Number]) -> Decimal:
    """Coerce a backend number or user input to a cent-quantized Decimal."""
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, float):
        # Go through str so 9.2 becomes 9.20 rather than 9.199999...
        value = str(value)
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def _parse_date(value: Union[date, str, None]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    # Accept both "2025-01-15" and full ISO timestamps
    return date.fromisoformat(value[:10])


def player_label(player: Optional[str]) -> str:
    """Display name for a player, substituting the sentinel for blanks."""
    return player.strip() if player and player.strip() else NO_NAME


@dataclass
class InventoryItem:
    """One physical unit of stock."""

    sku: str
    club: str
    size: str
    cost: Decimal
    status: str = IN_STOCK
    player: Optional[str] = NO_NAME
    purchase_date: Optional[date] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize data."""
        if not self.sku:
            raise ValueError("SKU cannot be empty")

        if self.size not in SIZES:
            raise ValueError(f"Size must be one of {', '.join(SIZES)}")

        if self.status not in STATUSES:
            raise ValueError(f"Status must be one of {', '.join(STATUSES)}")

        self.cost = money(self.cost)
        if self.cost < 0:
            raise ValueError("Cost cannot be negative")

        self.purchase_date = _parse_date(self.purchase_date)

    @property
    def player_name(self) -> str:
        return player_label(self.player)

    @property
    def is_sold(self) -> bool:
        return self.status == SOLD

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the backend row representation."""
        data = {
            "sku": self.sku,
            "club": self.club,
            "player": self.player,
            "size": self.size,
            "cost": float(self.cost),
            "status": self.status,
            "purchase_date": self.purchase_date.isoformat() if self.purchase_date else None,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryItem":
        """Create instance from a backend row."""
        return cls(
            id=data.get("id"),
            sku=data["sku"],
            club=data["club"],
            player=data.get("player"),
            size=data["size"],
            cost=data.get("cost"),
            status=data.get("status", IN_STOCK),
            purchase_date=data.get("purchase_date"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


def compute_profit(sale_price: Number, platform_fees: Number, shipping_cost: Number, cost: Number) -> Decimal:
    """Profit of one sale: price minus fees, shipping and the unit's cost."""
    return money(sale_price) - money(platform_fees) - money(shipping_cost) - money(cost)


@dataclass
class Sale:
    """One revenue event, owned by a single inventory item."""

    inventory_id: str
    sale_price: Decimal
    platform: str
    platform_fees: Decimal = Decimal("0.00")
    shipping_cost: Decimal = Decimal("0.00")
    profit: Decimal = Decimal("0.00")
    sale_date: Optional[date] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    inventory: Optional[InventoryItem] = None

    def __post_init__(self):
        if not self.inventory_id:
            raise ValueError("Sale must reference an inventory item")

        self.sale_price = money(self.sale_price)
        self.platform_fees = money(self.platform_fees)
        self.shipping_cost = money(self.shipping_cost)
        self.profit = money(self.profit)

        for name in ("sale_price", "platform_fees", "shipping_cost"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

        if not self.platform:
            raise ValueError("Platform cannot be empty")

        self.sale_date = _parse_date(self.sale_date)

    @property
    def club(self) -> str:
        return self.inventory.club if self.inventory else "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the backend row representation (without the embedded item)."""
        data = {
            "inventory_id": self.inventory_id,
            "sale_price": float(self.sale_price),
            "platform": self.platform,
            "platform_fees": float(self.platform_fees),
            "shipping_cost": float(self.shipping_cost),
            "profit": float(self.profit),
            "sale_date": self.sale_date.isoformat() if self.sale_date else None,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sale":
        """Create instance from a backend row, with the embedded item if present."""
        embedded = data.get("inventory")
        return cls(
            id=data.get("id"),
            inventory_id=data["inventory_id"],
            sale_price=data.get("sale_price"),
            platform=data.get("platform") or "Other",
            platform_fees=data.get("platform_fees"),
            shipping_cost=data.get("shipping_cost"),
            profit=data.get("profit"),
            sale_date=data.get("sale_date"),
            created_at=data.get("created_at"),
            inventory=InventoryItem.from_dict(embedded) if embedded else None,
        )


@dataclass
class Expense:
    """A standalone business expense."""

    category: str
    amount: Decimal
    expense_date: Optional[date] = None
    description: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        if self.category not in EXPENSE_CATEGORIES:
            raise ValueError(f"Category must be one of {', '.join(EXPENSE_CATEGORIES)}")

        self.amount = money(self.amount)
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")

        self.description = self.description or None
        self.expense_date = _parse_date(self.expense_date)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "category": self.category,
            "description": self.description,
            "amount": float(self.amount),
            "expense_date": self.expense_date.isoformat() if self.expense_date else None,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        return cls(
            id=data.get("id"),
            category=data["category"],
            description=data.get("description"),
            amount=data.get("amount"),
            expense_date=data.get("expense_date"),
            created_at=data.get("created_at"),
        )
