"""Command-line interface for stock, sales and expense bookkeeping."""

import sys
import click
from typing import Dict, List, Optional, Tuple

from .api.repositories import Backend
from .models.grouping import ClubGroup
from .models.inventory import InventoryItem, SIZES, EXPENSE_CATEGORIES, PLATFORMS, IN_STOCK, LISTED, money
from .models.view_state import (
    InventoryViewState,
    SetFilter,
    ToggleExpanded,
    STATUS_FILTERS,
    CLUB,
    PLAYER,
    SIZE,
    reduce_view_state,
)
from .services.dashboard import DashboardService
from .services.grouping import find_group, group_inventory
from .services.ledger import LedgerService, platforms, expense_categories, sales_totals, expenses_total
from .services.stock import StockIntakeService
from .services.transitions import StatusTransitionService, SaleDetails
from .utils.config import get_config
from .utils.exceptions import BaseAppException, ConfigurationError

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _fail(text: str, code: int = 1):
    click.echo(click.style(f"✗ {text}", fg="red"), err=True)
    sys.exit(code)


def _parse_sizes(values: Tuple[str, ...]) -> Dict[str, int]:
    """Parse ``M=2 L=3`` style options into a size → quantity mapping."""
    sizes: Dict[str, int] = {}
    for value in values:
        size, sep, quantity = value.partition("=")
        size = size.strip().upper()
        if not sep or size not in SIZES:
            raise click.BadParameter(f"expected SIZE=QTY with SIZE in {', '.join(SIZES)}: {value}")
        try:
            sizes[size] = sizes.get(size, 0) + int(quantity)
        except ValueError:
            raise click.BadParameter(f"quantity must be an integer: {value}")
    return sizes


def _date(value):
    return value.date() if value else None


def render_tree(clubs: Dict[str, ClubGroup], state: InventoryViewState, expand_all: bool = False) -> List[str]:
    """Text rendering of the grouped inventory honoring the expanded nodes."""
    def counts(c) -> str:
        return f"in stock {c.in_stock} · listed {c.listed} · sold {c.sold}"

    lines: List[str] = []
    for club in clubs.values():
        lines.append(f"{club.club}  [{club.total_items} total | {counts(club.counts)}]")
        if not (expand_all or state.is_expanded(CLUB, club.key)):
            continue
        for player in club.players.values():
            lines.append(f"  {player.player}  [{player.total_items} total | {counts(player.counts)}]")
            if not (expand_all or state.is_expanded(PLAYER, player.key)):
                continue
            for group in player.sizes.values():
                lines.append(
                    f"    {group.size:<4} €{group.cost:.2f}  [{group.total_items} total | {counts(group.counts)}]"
                )
                if expand_all or state.is_expanded(SIZE, group.key):
                    for item in group.items:
                        lines.append(f"      {item.sku:<28} {item.status:<9} {item.id}")
    return lines


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    Kit stock tracker CLI.

    Add stock, move units through In Stock → Listed → Sold, and keep the
    sales and expense ledgers.
    """
    pass


# ----------------------------------------------------------------------
# Stock intake
# ----------------------------------------------------------------------

@cli.command("add-stock")
@click.option("--club", required=True, help="Club name, e.g. 'Real Madrid'")
@click.option("--player", default="", help="Player printed on the kit (blank for none)")
@click.option("--size", required=True, type=click.Choice(SIZES, case_sensitive=False))
@click.option("--cost", type=float, default=None, help="Unit cost (defaults to config)")
@click.option("--date", "purchase_date", type=DATE, default=None, help="Purchase date (YYYY-MM-DD)")
def add_stock(club: str, player: str, size: str, cost: Optional[float], purchase_date):
    """Add a single unit of stock."""
    try:
        with Backend() as backend:
            result = StockIntakeService(backend).add_single(
                club, player, size.upper(), cost, _date(purchase_date)
            )
    except BaseAppException as e:
        _fail(f"Error adding item. Please try again. ({e.message})")

    item = result.records[0]
    click.echo(click.style(
        f"✓ Successfully added {item.club} {item.player_name} ({item.size}) as {item.sku}",
        fg="green", bold=True
    ))
    for error in result.errors:
        click.echo(click.style(f"⚠ {error.ref}: {error.message}", fg="yellow"))


@cli.command("bulk-add")
@click.option("--club", required=True)
@click.option("--player", default="")
@click.option("--size", "sizes", multiple=True, required=True, help="SIZE=QTY, repeatable (e.g. --size M=2 --size L=3)")
@click.option("--cost", type=float, default=None)
@click.option("--date", "purchase_date", type=DATE, default=None)
def bulk_add(club: str, player: str, sizes: Tuple[str, ...], cost: Optional[float], purchase_date):
    """Add several units of one kit across sizes."""
    quantities = _parse_sizes(sizes)

    try:
        with Backend() as backend:
            result = StockIntakeService(backend).add_bulk(
                club, player, quantities, cost, _date(purchase_date)
            )
    except BaseAppException as e:
        _fail(f"Error adding items. Please try again. ({e.message})")

    for item in result.records:
        click.echo(f"  + {item.sku}")

    if result.success:
        click.echo(click.style(f"✓ Successfully added {result.updated_count} items: {club} {player or 'No Name'}",
                               fg="green", bold=True))
    else:
        click.echo(click.style(f"✗ Added {result.updated_count} of {result.total_items} items", fg="red", bold=True))
        for error in result.errors:
            click.echo(click.style(f"  {error.ref}: {error.message}", fg="red"))
        sys.exit(1)


# ----------------------------------------------------------------------
# Inventory views and transitions
# ----------------------------------------------------------------------

@cli.command()
@click.option("--status", "status_filter", type=click.Choice(STATUS_FILTERS), default="In Stock", show_default=True)
@click.option("--expand", multiple=True, help="Expand a node: club, 'club-player' or 'club-player-size'")
@click.option("--expand-all", is_flag=True, help="Show every level down to single units")
@click.option("--sort", is_flag=True, help="Sort clubs and players alphabetically")
def inventory(status_filter: str, expand: Tuple[str, ...], expand_all: bool, sort: bool):
    """Show stock grouped by club, player and size."""
    state = reduce_view_state(InventoryViewState(), SetFilter(status_filter))

    with Backend() as backend:
        items = DashboardService(backend).load_inventory()
    clubs = group_inventory(items, state.status_filter, sort=sort)

    player_keys = {player.key for club in clubs.values() for player in club.players.values()}
    for key in expand:
        level = CLUB if key in clubs else PLAYER if key in player_keys else SIZE
        state = reduce_view_state(state, ToggleExpanded(level, key))

    total = sum(club.total_items for club in clubs.values())
    click.echo(f"{len(clubs)} clubs • {total} items ({state.status_filter}) • {len(items)} total items")
    click.echo("─" * 60)
    if not clubs:
        click.echo("No inventory items yet." if state.status_filter == "all"
                   else f'No items with status "{state.status_filter}".')
        return
    for line in render_tree(clubs, state, expand_all=expand_all):
        click.echo(line)


@cli.command("set-status")
@click.argument("ref")
@click.argument("status", type=click.Choice([IN_STOCK, LISTED]))
def set_status(ref: str, status: str):
    """Move one unit (id or SKU) between In Stock and Listed."""
    try:
        with Backend() as backend:
            item = DashboardService(backend).find_item(ref)
            updated = StatusTransitionService(backend).set_status(item, status)
    except BaseAppException as e:
        _fail(f"Error updating status: {e.message}")

    click.echo(click.style(f"✓ {updated.sku} is now {updated.status}", fg="green"))


def _select_units(backend: Backend, club: str, player: Optional[str], size: Optional[str]) -> List[InventoryItem]:
    """Every unit of a club, narrowed to one player and/or size."""
    clubs = group_inventory(DashboardService(backend).load_inventory())
    if club not in clubs:
        _fail(f"No stock for {club}")
    return [
        item for group in clubs[club].size_groups() for item in group.items
        if (player is None or group.player == (player or "No Name"))
        and (size is None or group.size == size.upper())
    ]


def _unit_filters(func):
    func = click.option("--size", default=None, type=click.Choice(SIZES, case_sensitive=False),
                        help="Limit to one size")(func)
    func = click.option("--player", default=None, help="Limit to one player")(func)
    return func


def _report_bulk(result):
    click.echo(result.get_summary())
    not_attempted = result.metadata.get("not_attempted")
    if not_attempted:
        click.echo(click.style(f"Not attempted: {', '.join(not_attempted)}", fg="yellow"))
    sys.exit(0 if result.success else 1)


@cli.command("bulk-status")
@click.argument("club")
@click.argument("status", type=click.Choice([IN_STOCK, LISTED]))
@_unit_filters
def bulk_status(club: str, status: str, player: Optional[str], size: Optional[str]):
    """Move every unsold unit of a club (or player / size) to STATUS."""
    try:
        with Backend() as backend:
            items = _select_units(backend, club, player, size)
            result = StatusTransitionService(backend).bulk_set_status(items, status)
    except BaseAppException as e:
        _fail(f"Error updating status: {e.message}")

    _report_bulk(result)


def _sale_options(func):
    func = click.option("--date", "sale_date", type=DATE, default=None, help="Sale date (YYYY-MM-DD)")(func)
    func = click.option("--shipping", type=float, default=0.0, show_default=True)(func)
    func = click.option("--fees", type=float, default=0.0, show_default=True, help="Platform fees")(func)
    func = click.option("--platform", default=lambda: get_config().inventory.default_platform,
                        help=f"e.g. {', '.join(PLATFORMS)}")(func)
    func = click.option("--price", type=float,
                        default=lambda: get_config().inventory.default_sale_price)(func)
    return func


def _sale_details(price: float, platform: str, fees: float, shipping: float, sale_date) -> SaleDetails:
    return SaleDetails(
        sale_price=money(price),
        platform=platform,
        platform_fees=money(fees),
        shipping_cost=money(shipping),
        sale_date=_date(sale_date),
    )


@cli.command()
@click.argument("ref")
@_sale_options
def sell(ref: str, price: float, platform: str, fees: float, shipping: float, sale_date):
    """
    Record the sale of a unit and mark it Sold.

    REF: unit id or SKU, or a group key 'club-player-size' to sell its first
    available unit.
    """
    details = _sale_details(price, platform, fees, shipping, sale_date)

    try:
        with Backend() as backend:
            dashboard = DashboardService(backend)
            transitions = StatusTransitionService(backend)
            group = find_group(group_inventory(dashboard.load_inventory()), ref)
            if group is not None:
                sale = transitions.sell_one(group, details)
            else:
                sale = transitions.sell(dashboard.find_item(ref), details)
    except BaseAppException as e:
        _fail(f"Error saving sale: {e.message}")

    colour = "green" if sale.profit >= 0 else "red"
    click.echo(click.style(
        f"✓ Sold {sale.inventory.sku if sale.inventory else sale.inventory_id} on {sale.platform} "
        f"for €{sale.sale_price:.2f}, profit €{sale.profit:.2f}",
        fg=colour, bold=True
    ))


@cli.command("delete-item")
@click.argument("ref")
@click.confirmation_option(prompt="Delete this unit?")
def delete_item(ref: str):
    """Delete a unit (Sold units are refused unless the policy allows it)."""
    try:
        with Backend() as backend:
            item = DashboardService(backend).find_item(ref)
            StatusTransitionService(backend).delete_item(item)
    except BaseAppException as e:
        _fail(e.message)

    click.echo(click.style(f"✓ Deleted {item.sku}", fg="green"))


@cli.command("bulk-sell")
@click.argument("club")
@_unit_filters
@_sale_options
def bulk_sell(club: str, player: Optional[str], size: Optional[str], price: float, platform: str,
              fees: float, shipping: float, sale_date):
    """Sell every unsold unit of a club (or player / size) at the same price."""
    details = _sale_details(price, platform, fees, shipping, sale_date)

    try:
        with Backend() as backend:
            items = _select_units(backend, club, player, size)
            result = StatusTransitionService(backend).bulk_sell(items, details)
    except BaseAppException as e:
        _fail(f"Error saving sale: {e.message}")

    for sale in result.records:
        click.echo(f"  $ {sale.inventory.sku if sale.inventory else sale.inventory_id}  profit €{sale.profit:.2f}")
    _report_bulk(result)


@cli.command("bulk-delete")
@click.argument("club")
@_unit_filters
@click.confirmation_option(prompt="Delete these units?")
def bulk_delete(club: str, player: Optional[str], size: Optional[str]):
    """Delete every unsold unit of a club (or player / size); Sold units are kept."""
    try:
        with Backend() as backend:
            items = _select_units(backend, club, player, size)
            result = StatusTransitionService(backend).bulk_delete(items)
    except BaseAppException as e:
        _fail(e.message)

    for item in result.records:
        click.echo(f"  - {item.sku}")
    _report_bulk(result)


# ----------------------------------------------------------------------
# Sales ledger
# ----------------------------------------------------------------------

@cli.group()
def sales():
    """List, edit and delete recorded sales."""
    pass


@sales.command("list")
@click.option("--platform", default="all", show_default=True)
def sales_list(platform: str):
    """List sales, optionally for one platform."""
    with Backend() as backend:
        everything = LedgerService(backend).list_sales()
    shown = everything if platform == "all" else [s for s in everything if s.platform == platform]

    revenue, profit = sales_totals(shown)
    click.echo(f"{len(shown)} sales • revenue €{revenue:.2f} • profit €{profit:.2f}")
    click.echo("Platforms: " + ", ".join(
        p if p == "all" else f"{p} ({sum(1 for s in everything if s.platform == p)})"
        for p in platforms(everything)
    ))
    click.echo("─" * 60)
    if not shown:
        click.echo("No sales recorded yet." if platform == "all" else f"No sales on {platform}.")
    for sale in shown:
        item = sale.inventory
        label = f"{item.club} {item.player_name} ({item.size})" if item else "Unknown item"
        click.echo(
            f"{sale.sale_date}  {label:<40} {sale.platform:<20} "
            f"€{sale.sale_price:>8.2f}  profit €{sale.profit:>8.2f}  {sale.id}"
        )


@sales.command("edit")
@click.argument("sale_id")
@click.option("--price", type=float, default=None)
@click.option("--platform", default=None)
@click.option("--fees", type=float, default=None)
@click.option("--shipping", type=float, default=None)
@click.option("--date", "sale_date", type=DATE, default=None)
def sales_edit(sale_id: str, price, platform, fees, shipping, sale_date):
    """Edit a sale; profit is recomputed from the unit's cost."""
    try:
        with Backend() as backend:
            service = LedgerService(backend)
            sale = service.get_sale(sale_id)
            updated = service.update_sale(sale, price, platform, fees, shipping, _date(sale_date))
    except BaseAppException as e:
        _fail(f"Error updating sale: {e.message}")

    click.echo(click.style(f"✓ Sale updated: €{updated.sale_price:.2f}, profit €{updated.profit:.2f}", fg="green"))


@sales.command("delete")
@click.argument("sale_id")
@click.option("--restore", type=click.Choice([IN_STOCK, LISTED]), default=None,
              help="Also put the unit back to this status")
@click.confirmation_option(prompt="Delete this sale?")
def sales_delete(sale_id: str, restore: Optional[str]):
    """Delete a sale."""
    try:
        with Backend() as backend:
            service = LedgerService(backend)
            service.delete_sale(service.get_sale(sale_id), restore_status=restore)
    except BaseAppException as e:
        _fail(f"Error deleting sale. Please try again. ({e.message})")

    click.echo(click.style("✓ Sale deleted successfully!", fg="green"))


# ----------------------------------------------------------------------
# Expenses ledger
# ----------------------------------------------------------------------

@cli.group()
def expenses():
    """List, add, edit and delete business expenses."""
    pass


@expenses.command("list")
@click.option("--category", default="all", show_default=True)
def expenses_list(category: str):
    """List expenses, optionally for one category."""
    with Backend() as backend:
        everything = LedgerService(backend).list_expenses()
    shown = everything if category == "all" else [e for e in everything if e.category == category]

    click.echo(f"{len(shown)} expenses • total €{expenses_total(shown):.2f}")
    click.echo("Categories: " + ", ".join(expense_categories(everything)))
    click.echo("─" * 60)
    for expense in shown:
        click.echo(
            f"{expense.expense_date}  {expense.category:<16} €{expense.amount:>8.2f}  "
            f"{expense.description or ''}  {expense.id}"
        )


@expenses.command("add")
@click.option("--category", required=True, type=click.Choice(EXPENSE_CATEGORIES))
@click.option("--amount", required=True, type=float)
@click.option("--date", "expense_date", type=DATE, default=None)
@click.option("--description", default=None)
def expenses_add(category: str, amount: float, expense_date, description: Optional[str]):
    """Record an expense."""
    try:
        with Backend() as backend:
            expense = LedgerService(backend).add_expense(category, amount, _date(expense_date), description)
    except BaseAppException as e:
        _fail(f"Error adding expense. Please try again. ({e.message})")

    click.echo(click.style(f"✓ Expense added successfully! ({expense.category} €{expense.amount:.2f})", fg="green"))


@expenses.command("edit")
@click.argument("expense_id")
@click.option("--category", type=click.Choice(EXPENSE_CATEGORIES), default=None)
@click.option("--amount", type=float, default=None)
@click.option("--date", "expense_date", type=DATE, default=None)
@click.option("--description", default=None)
def expenses_edit(expense_id: str, category, amount, expense_date, description):
    """Edit an expense."""
    try:
        with Backend() as backend:
            service = LedgerService(backend)
            expense = service.get_expense(expense_id)
            service.update_expense(expense, category, amount, _date(expense_date), description)
    except BaseAppException as e:
        _fail(f"Error updating expense: {e.message}")

    click.echo(click.style("✓ Expense updated", fg="green"))


@expenses.command("delete")
@click.argument("expense_id")
@click.confirmation_option(prompt="Delete this expense?")
def expenses_delete(expense_id: str):
    """Delete an expense."""
    try:
        with Backend() as backend:
            service = LedgerService(backend)
            service.delete_expense(service.get_expense(expense_id))
    except BaseAppException as e:
        _fail(f"Error deleting expense. Please try again. ({e.message})")

    click.echo(click.style("✓ Expense deleted successfully!", fg="green"))


# ----------------------------------------------------------------------
# Dashboard and diagnostics
# ----------------------------------------------------------------------

@cli.command()
def dashboard():
    """Display business metrics."""
    with Backend() as backend:
        snapshot = DashboardService(backend).snapshot()
    metrics = snapshot.metrics

    click.echo("Dashboard")
    click.echo("=" * 60)
    click.echo(metrics.get_summary())

    if metrics.monthly_revenue:
        click.echo()
        click.echo("Monthly revenue:")
        for month, revenue in metrics.monthly_revenue.items():
            click.echo(f"  {month:<10} €{revenue:.2f}")

    if metrics.club_sales:
        click.echo()
        click.echo("Sales by club:")
        for club, count in metrics.club_sales.items():
            share = count / metrics.total_sales * 100
            click.echo(f"  {club:<24} {count:>4}  ({share:.0f}%)")


@cli.command("test-connection")
def test_connection():
    """Check that the Supabase tables are reachable with the configured key."""
    click.echo("Testing Supabase connection...")
    click.echo()

    failures = 0
    try:
        with Backend() as backend:
            for name, repo in (("inventory", backend.inventory), ("sales", backend.sales),
                               ("expenses", backend.expenses)):
                try:
                    rows = repo.get_all()
                    click.echo(click.style(f"  ✓ {name}: {len(rows)} rows", fg="green"))
                except BaseAppException as e:
                    failures += 1
                    click.echo(click.style(f"  ✗ {name}: {e.message}", fg="red"))
    except Exception as e:
        _fail(f"Error: {str(e)}")

    click.echo()
    if failures:
        click.echo(click.style("⚠ Some tables failed", fg="yellow", bold=True))
        sys.exit(1)
    click.echo(click.style("✓ All tables reachable!", fg="green", bold=True))


@cli.command("config-info")
def config_info():
    """Display current configuration settings."""
    try:
        config = get_config()
    except Exception as e:
        _fail(f"Error loading config: {str(e)}")

    click.echo("Configuration Settings:")
    click.echo("=" * 60)
    click.echo()

    click.echo("Environment:")
    click.echo(f"  Environment:        {config.env.environment}")
    click.echo(f"  Log level:          {config.logging.level}")
    click.echo()

    click.echo("Supabase:")
    click.echo(f"  URL:                {config.env.supabase_url}")
    click.echo(f"  Key:                {config.env.supabase_key[:10]}...")
    click.echo()

    click.echo("Inventory:")
    click.echo(f"  Default cost:       €{config.inventory.default_cost:.2f}")
    click.echo(f"  Default sale price: €{config.inventory.default_sale_price:.2f}")
    click.echo(f"  Default platform:   {config.inventory.default_platform}")
    click.echo(f"  Stock expense:      {config.inventory.record_stock_expense}")
    click.echo(f"  Delete sold units:  {config.inventory.allow_delete_sold}")


def main():
    try:
        cli()
    except ConfigurationError as e:
        _fail(f"Configuration error: {e.message}")


if __name__ == "__main__":
    main()
