"""FastAPI server exposing the stock, sales and expense screens as JSON."""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .api.repositories import Backend
from .models.inventory import InventoryItem, money
from .models.view_state import ALL
from .services.dashboard import DashboardService
from .services.grouping import find_group, group_inventory
from .services.ledger import LedgerService, platforms, expense_categories, sales_totals, expenses_total
from .services.stock import StockIntakeService
from .services.transitions import StatusTransitionService, SaleDetails
from .utils.config import get_config
from .utils.exceptions import (
    BaseAppException,
    RecordNotFoundError,
    InventoryValidationError,
    InvalidTransitionError,
    DeletionNotAllowedError,
    AuthenticationError,
    RateLimitError,
    SupabaseAPIError,
)
from .utils.logger import get_api_logger

# Initialize shared state
config = get_config()
logger = get_api_logger()

ERROR_STATUS = {
    RecordNotFoundError: 404,
    InventoryValidationError: 422,
    InvalidTransitionError: 409,
    DeletionNotAllowedError: 409,
    AuthenticationError: 502,
    SupabaseAPIError: 502,
    RateLimitError: 503,
}


# ------------------------------------------------------------------
# Request bodies
# ------------------------------------------------------------------

class StockIn(BaseModel):
    club: str
    player: Optional[str] = None
    size: str
    cost: Optional[float] = None
    purchase_date: Optional[date] = None


class BulkStockIn(BaseModel):
    club: str
    player: Optional[str] = None
    sizes: Dict[str, int]
    cost: Optional[float] = None
    purchase_date: Optional[date] = None


class StatusIn(BaseModel):
    status: str


class BulkStatusIn(BaseModel):
    item_ids: List[str]
    status: str


class SaleIn(BaseModel):
    sale_price: Optional[float] = Field(default=None, ge=0)
    platform: Optional[str] = None
    platform_fees: float = Field(default=0.0, ge=0)
    shipping_cost: float = Field(default=0.0, ge=0)
    sale_date: Optional[date] = None

    def to_details(self) -> SaleDetails:
        inventory = get_config().inventory
        return SaleDetails(
            sale_price=money(inventory.default_sale_price if self.sale_price is None else self.sale_price),
            platform=self.platform or inventory.default_platform,
            platform_fees=money(self.platform_fees),
            shipping_cost=money(self.shipping_cost),
            sale_date=self.sale_date,
        )


class GroupSaleIn(SaleIn):
    group: str
    item_id: Optional[str] = None


class BulkSaleIn(SaleIn):
    item_ids: List[str]


class BulkDeleteIn(BaseModel):
    item_ids: List[str]


class SaleUpdateIn(BaseModel):
    sale_price: Optional[float] = Field(default=None, ge=0)
    platform: Optional[str] = None
    platform_fees: Optional[float] = Field(default=None, ge=0)
    shipping_cost: Optional[float] = Field(default=None, ge=0)
    sale_date: Optional[date] = None


class ExpenseIn(BaseModel):
    category: str
    amount: float
    expense_date: Optional[date] = None
    description: Optional[str] = None


class ExpenseUpdateIn(BaseModel):
    category: Optional[str] = None
    amount: Optional[float] = None
    expense_date: Optional[date] = None
    description: Optional[str] = None


# ------------------------------------------------------------------
# Lifespan and dependencies
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup / shutdown of the application."""
    logger.info("=" * 60)
    logger.info("Kit Stock Tracker API Starting")
    logger.info("=" * 60)
    logger.info(f"Environment:          {config.env.environment}")
    logger.info(f"Port:                 {config.env.port}")
    logger.info(f"Supabase:             {config.env.supabase_url}")
    logger.info("=" * 60)

    yield

    logger.info("API server shut down.")


def get_backend() -> Iterator[Backend]:
    """One backend connection per request."""
    with Backend() as backend:
        yield backend


def _sale_json(sale) -> dict:
    data = sale.to_dict()
    data["inventory"] = sale.inventory.to_dict() if sale.inventory else None
    return data


def _item_or_404(backend: Backend, item_id: str) -> InventoryItem:
    item = backend.inventory.get(item_id)
    if item is None:
        raise RecordNotFoundError(f"No inventory item with id {item_id}", details={"id": item_id})
    return item


app = FastAPI(
    title="Kit Stock Tracker",
    description="Inventory, sales and expense tracking for a football kit reseller",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Kit Stock Tracker",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": config.env.environment
    }


# ------------------------------------------------------------------
# Inventory
# ------------------------------------------------------------------

@app.get("/inventory")
def grouped_inventory(status: str = "In Stock", sort: bool = False, backend: Backend = Depends(get_backend)):
    """Stock grouped by club → player → size, filtered by status."""
    items = DashboardService(backend).load_inventory()
    try:
        clubs = group_inventory(items, status, sort=sort)
    except ValueError as e:
        raise InventoryValidationError(str(e))
    return {
        "status_filter": status,
        "total_items": len(items),
        "shown_items": sum(club.total_items for club in clubs.values()),
        "clubs": [club.to_dict() for club in clubs.values()],
    }


@app.post("/inventory", status_code=201)
def add_stock(body: StockIn, backend: Backend = Depends(get_backend)):
    """Add a single unit."""
    result = StockIntakeService(backend).add_single(
        body.club, body.player, body.size, body.cost, body.purchase_date
    )
    response = result.to_dict()
    response["items"] = [item.to_dict() for item in result.records]
    return response


@app.post("/inventory/bulk")
def add_stock_bulk(body: BulkStockIn, backend: Backend = Depends(get_backend)):
    """
    Add several units across sizes.

    Answers 201 when every unit was created, 207 when the batch stopped part
    way; the created units are listed either way.
    """
    result = StockIntakeService(backend).add_bulk(
        body.club, body.player, body.sizes, body.cost, body.purchase_date
    )
    response = result.to_dict()
    response["items"] = [item.to_dict() for item in result.records]
    return JSONResponse(status_code=201 if result.success else 207, content=response)


@app.patch("/inventory/{item_id}/status")
def change_status(item_id: str, body: StatusIn, backend: Backend = Depends(get_backend)):
    """Toggle a unit between In Stock and Listed."""
    item = _item_or_404(backend, item_id)
    return StatusTransitionService(backend).set_status(item, body.status).to_dict()


@app.post("/inventory/bulk-status")
def change_status_bulk(body: BulkStatusIn, backend: Backend = Depends(get_backend)):
    """Move several units; Sold units are skipped and the first failure stops the batch."""
    items = [_item_or_404(backend, item_id) for item_id in body.item_ids]
    result = StatusTransitionService(backend).bulk_set_status(items, body.status)
    return JSONResponse(status_code=200 if result.success else 207, content=result.to_dict())


@app.post("/inventory/bulk-sell")
def sell_bulk(body: BulkSaleIn, backend: Backend = Depends(get_backend)):
    """Sell several units with the same figures; Sold units are skipped."""
    items = [_item_or_404(backend, item_id) for item_id in body.item_ids]
    result = StatusTransitionService(backend).bulk_sell(items, body.to_details())
    response = result.to_dict()
    response["sales"] = [_sale_json(sale) for sale in result.records]
    return JSONResponse(status_code=201 if result.success else 207, content=response)


@app.post("/inventory/bulk-delete")
def delete_bulk(body: BulkDeleteIn, backend: Backend = Depends(get_backend)):
    """Delete several units; Sold units are always skipped."""
    items = [_item_or_404(backend, item_id) for item_id in body.item_ids]
    result = StatusTransitionService(backend).bulk_delete(items)
    response = result.to_dict()
    response["deleted"] = [item.sku for item in result.records]
    return JSONResponse(status_code=200 if result.success else 207, content=response)


# Registered before /inventory/{item_id}/sell so "groups" is not taken for an id.
@app.post("/inventory/groups/sell", status_code=201)
def sell_from_group(body: GroupSaleIn, backend: Backend = Depends(get_backend)):
    """Sell the first available unit (or ``item_id``) of a club-player-size group."""
    clubs = group_inventory(DashboardService(backend).load_inventory())
    group = find_group(clubs, body.group)
    if group is None:
        raise RecordNotFoundError(f"No group {body.group}", details={"group": body.group})
    return _sale_json(StatusTransitionService(backend).sell_one(group, body.to_details(), body.item_id))


@app.post("/inventory/{item_id}/sell", status_code=201)
def sell_item(item_id: str, body: SaleIn, backend: Backend = Depends(get_backend)):
    """Record a sale for one unit and mark it Sold."""
    item = _item_or_404(backend, item_id)
    return _sale_json(StatusTransitionService(backend).sell(item, body.to_details()))


@app.delete("/inventory/{item_id}")
def delete_item(item_id: str, backend: Backend = Depends(get_backend)):
    """Delete a unit."""
    item = _item_or_404(backend, item_id)
    StatusTransitionService(backend).delete_item(item)
    return {"status": "deleted", "id": item_id, "sku": item.sku}


# ------------------------------------------------------------------
# Sales
# ------------------------------------------------------------------

@app.get("/sales")
def list_sales(platform: str = ALL, backend: Backend = Depends(get_backend)):
    service = LedgerService(backend)
    everything = service.list_sales()
    shown = everything if platform == ALL else [sale for sale in everything if sale.platform == platform]
    revenue, profit = sales_totals(shown)
    return {
        "platforms": platforms(everything),
        "total_revenue": float(revenue),
        "total_profit": float(profit),
        "sales": [_sale_json(sale) for sale in shown],
    }


@app.patch("/sales/{sale_id}")
def update_sale(sale_id: str, body: SaleUpdateIn, backend: Backend = Depends(get_backend)):
    service = LedgerService(backend)
    sale = service.get_sale(sale_id)
    return service.update_sale(
        sale, body.sale_price, body.platform, body.platform_fees, body.shipping_cost, body.sale_date
    ).to_dict()


@app.delete("/sales/{sale_id}")
def delete_sale(sale_id: str, restore_status: Optional[str] = None, backend: Backend = Depends(get_backend)):
    """Delete a sale, optionally putting its unit back on sale."""
    service = LedgerService(backend)
    service.delete_sale(service.get_sale(sale_id), restore_status=restore_status)
    return {"status": "deleted", "id": sale_id, "restored_to": restore_status}


# ------------------------------------------------------------------
# Expenses
# ------------------------------------------------------------------

@app.get("/expenses")
def list_expenses(category: str = ALL, backend: Backend = Depends(get_backend)):
    service = LedgerService(backend)
    everything = service.list_expenses()
    shown = everything if category == ALL else [e for e in everything if e.category == category]
    return {
        "categories": expense_categories(everything),
        "total": float(expenses_total(shown)),
        "expenses": [expense.to_dict() for expense in shown],
    }


@app.post("/expenses", status_code=201)
def create_expense(body: ExpenseIn, backend: Backend = Depends(get_backend)):
    return LedgerService(backend).add_expense(
        body.category, body.amount, body.expense_date, body.description
    ).to_dict()


@app.patch("/expenses/{expense_id}")
def update_expense(expense_id: str, body: ExpenseUpdateIn, backend: Backend = Depends(get_backend)):
    service = LedgerService(backend)
    expense = service.get_expense(expense_id)
    return service.update_expense(
        expense, body.category, body.amount, body.expense_date, body.description
    ).to_dict()


@app.delete("/expenses/{expense_id}")
def delete_expense(expense_id: str, backend: Backend = Depends(get_backend)):
    service = LedgerService(backend)
    service.delete_expense(service.get_expense(expense_id))
    return {"status": "deleted", "id": expense_id}


# ------------------------------------------------------------------
# Dashboard
# ------------------------------------------------------------------

@app.get("/dashboard")
def dashboard(backend: Backend = Depends(get_backend)):
    return DashboardService(backend).snapshot().metrics.to_dict()


# ------------------------------------------------------------------
# Exception handlers
# ------------------------------------------------------------------

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    """Map application errors to JSON error bodies."""
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        500
    )
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "type": type(exc).__name__,
            "details": exc.details,
            "status_code": status_code
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Custom HTTP exception handler."""
    logger.warning(f"HTTP {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if not config.is_production else "An error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kitstock.server:app",
        host="0.0.0.0",
        port=config.env.port,
        reload=not config.is_production
    )
