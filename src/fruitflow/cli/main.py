"""
FruitFlow CLI

Command-line interface for the FruitFlow marketplace.
Provides commands for accounts, the product catalog, orders, reputation, logistics and escrow.

Usage:
    fruitflow init --db marketplace.db
    fruitflow user signup --username alice --password pw --role customer
    fruitflow user approve --id orchard --as nhom1
    fruitflow product add --as orchard --name Mango --description "Alphonso, tree-ripened" --price 2.5 --unit kg --stock 500
    fruitflow product list --search mango
    fruitflow order place --as alice --product <product_id> --quantity 20
    fruitflow order assess --id <order_id> --as alice --supplier-rating 4
    fruitflow reputation recompute
    fruitflow health
"""

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.errors import FruitFlowError
from fruitflow.kernel.logging import configure_logging, is_production
from fruitflow.products.models import ProductUnit

# Configure logging to stderr (avoids polluting stdout for JSON output)
configure_logging(json_output=is_production(), log_level="INFO")

app = typer.Typer(
    name="fruitflow",
    help="FruitFlow - Fruit trade marketplace with weighted reputations",
    add_completion=False,
)

# Sub-apps
user_app = typer.Typer(help="Account management commands")
product_app = typer.Typer(help="Product catalog commands")
order_app = typer.Typer(help="Order lifecycle commands")
reputation_app = typer.Typer(help="Reputation and suspension commands")
shipping_app = typer.Typer(help="Shipping price and distance commands")
escrow_app = typer.Typer(help="Simulated escrow commands")

app.add_typer(user_app, name="user")
app.add_typer(product_app, name="product")
app.add_typer(order_app, name="order")
app.add_typer(reputation_app, name="reputation")
app.add_typer(shipping_app, name="shipping")
app.add_typer(escrow_app, name="escrow")

# Global state
DEFAULT_DB = Path(os.getenv("FRUITFLOW_DB", ".fruitflow.db"))


def get_fruitflow(db_path: Optional[Path] = None) -> FruitFlow:
    """Get FruitFlow instance"""
    db = db_path or DEFAULT_DB
    if not db.exists():
        typer.echo(f"Error: Database not found: {db}", err=True)
        typer.echo(f"Run 'fruitflow init --db {db}' to initialize", err=True)
        raise typer.Exit(1)
    return FruitFlow(str(db))


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn marketplace and validation errors into a message and exit code 1"""
    try:
        yield
    except (FruitFlowError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _fmt_rating(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "n/a"


# Initialization command


@app.command()
def init(
    db: Annotated[
        Path,
        typer.Option(help="Database path"),
    ] = DEFAULT_DB,
) -> None:
    """Initialize a new FruitFlow database with the default manager"""
    if db.exists():
        typer.echo(f"Error: Database already exists: {db}", err=True)
        raise typer.Exit(1)

    ff = FruitFlow(str(db))
    typer.echo(f"✓ Initialized FruitFlow database: {db}")
    typer.echo(f"  Default manager: {ff.policy.default_manager_username}")


# User commands


@user_app.command("signup")
def user_signup(
    username: Annotated[str, typer.Option("--username", help="Username")],
    password: Annotated[str, typer.Option("--password", help="Mock password")],
    role: Annotated[
        str, typer.Option("--role", help="supplier, transporter or customer")
    ],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Create a new account"""
    ff = get_fruitflow(db)

    with reported_errors():
        user = ff.signup(username, password, role)

    typer.echo(f"✓ Created {user.role.value} account: {user.id}")
    if not user.is_approved:
        typer.echo("  Awaiting manager approval")


@user_app.command("login")
def user_login(
    username: Annotated[str, typer.Option("--username", help="Username")],
    password: Annotated[str, typer.Option("--password", help="Mock password")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Check credentials and the login gate"""
    ff = get_fruitflow(db)

    with reported_errors():
        user = ff.login(username, password)

    typer.echo(f"✓ Welcome back, {user.name} ({user.role.value})")


@user_app.command("approve")
def user_approve(
    user_id: Annotated[str, typer.Option("--id", help="User to approve")],
    actor: Annotated[str, typer.Option("--as", help="Acting manager")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Approve a supplier or transporter (managers only)"""
    ff = get_fruitflow(db)

    with reported_errors():
        user = ff.approve_user(user_id, actor_id=actor)

    typer.echo(f"✓ Approved {user.role.value}: {user.id}")


@user_app.command("add-manager")
def user_add_manager(
    username: Annotated[str, typer.Option("--username", help="New manager username")],
    password: Annotated[str, typer.Option("--password", help="Mock password")],
    actor: Annotated[str, typer.Option("--as", help="Acting manager")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Create another manager account (managers only)"""
    ff = get_fruitflow(db)

    with reported_errors():
        user = ff.add_manager(username, password, actor_id=actor)

    typer.echo(f"✓ Created manager: {user.id}")


@user_app.command("list")
def user_list(
    role: Annotated[
        Optional[str],
        typer.Option("--role", help="Filter by role"),
    ] = None,
    pending: Annotated[
        bool,
        typer.Option("--pending", help="Only accounts awaiting approval"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """List accounts"""
    ff = get_fruitflow(db)

    with reported_errors():
        users = ff.list_pending_approvals() if pending else ff.list_users(role=role)

    if json_output:
        typer.echo(json.dumps([u.public_view() for u in users], indent=2))
        return

    if not users:
        typer.echo("No users")
        return

    typer.echo(f"Users ({len(users)}):")
    for user in users:
        flags = []
        if not user.is_approved:
            flags.append("pending")
        if user.is_suspended:
            flags.append("SUSPENDED")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        typer.echo(f"  {user.id}: {user.role.value}{suffix}")


@user_app.command("profile")
def user_profile(
    actor: Annotated[str, typer.Option("--as", help="Your user id")],
    address: Annotated[
        Optional[str],
        typer.Option("--address", help="Postal address"),
    ] = None,
    ethereum_address: Annotated[
        Optional[str],
        typer.Option("--eth", help="Ethereum wallet address"),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Update your own address and wallet"""
    ff = get_fruitflow(db)

    with reported_errors():
        user = ff.update_profile(
            actor, actor_id=actor, address=address, ethereum_address=ethereum_address
        )

    typer.echo(f"✓ Profile updated: {user.id}")
    typer.echo(f"  Address: {user.address or '-'}")


@user_app.command("rates")
def user_rates(
    actor: Annotated[str, typer.Option("--as", help="Your transporter id")],
    tier1: Annotated[float, typer.Option("--tier1", help="Flat price for 0-100 km")],
    tier2: Annotated[float, typer.Option("--tier2", help="Price per km, 101-500 km")],
    tier3: Annotated[float, typer.Option("--tier3", help="Price per km beyond 500 km")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Set your shipping rates (transporters only)"""
    ff = get_fruitflow(db)

    with reported_errors():
        user = ff.update_shipping_rates(actor, actor, tier1, tier2, tier3)

    typer.echo(f"✓ Shipping rates updated: {user.id}")


# Product commands


@product_app.command("add")
def product_add(
    actor: Annotated[str, typer.Option("--as", help="Listing supplier")],
    name: Annotated[str, typer.Option("--name", help="Product name")],
    description: Annotated[str, typer.Option("--description", help="Description")],
    price: Annotated[float, typer.Option("--price", help="Price per unit")],
    unit: Annotated[
        str,
        typer.Option("--unit", help="kg, box, pallet or item"),
    ] = ProductUnit.ITEM.value,
    stock: Annotated[int, typer.Option("--stock", help="Stock on hand")] = 0,
    category: Annotated[str, typer.Option("--category", help="Category")] = "",
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """List a new product as a supplier"""
    ff = get_fruitflow(db)

    with reported_errors():
        product = ff.add_product(
            actor, name, description, price,
            unit=unit, stock_quantity=stock, category=category,
        )

    typer.echo(f"✓ Listed product: {product.id}")
    typer.echo(f"  {product.name}: {product.price:.2f}/{product.unit.value}, stock {product.stock_quantity}")


@product_app.command("update")
def product_update(
    product_id: Annotated[str, typer.Option("--id", help="Product id")],
    actor: Annotated[str, typer.Option("--as", help="Owning supplier")],
    name: Annotated[Optional[str], typer.Option("--name")] = None,
    description: Annotated[Optional[str], typer.Option("--description")] = None,
    price: Annotated[Optional[float], typer.Option("--price")] = None,
    unit: Annotated[Optional[str], typer.Option("--unit")] = None,
    stock: Annotated[Optional[int], typer.Option("--stock")] = None,
    category: Annotated[Optional[str], typer.Option("--category")] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Edit a listing; options left out stay unchanged"""
    ff = get_fruitflow(db)

    with reported_errors():
        product = ff.update_product(
            product_id, actor, name=name, description=description, price=price,
            unit=unit, stock_quantity=stock, category=category,
        )

    typer.echo(f"✓ Updated product: {product.id}")
    typer.echo(f"  {product.name}: {product.price:.2f}/{product.unit.value}, stock {product.stock_quantity}")


@product_app.command("delete")
def product_delete(
    product_id: Annotated[str, typer.Option("--id", help="Product id")],
    actor: Annotated[str, typer.Option("--as", help="Owning supplier")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Remove a listing"""
    ff = get_fruitflow(db)

    with reported_errors():
        ff.delete_product(product_id, actor)

    typer.echo(f"✓ Deleted product: {product_id}")


@product_app.command("list")
def product_list(
    supplier: Annotated[
        Optional[str],
        typer.Option("--supplier", help="One supplier's listings, including out of stock"),
    ] = None,
    search: Annotated[
        str,
        typer.Option("--search", help="Match name or category in the catalog"),
    ] = "",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Browse the catalog of active suppliers, or one supplier's listings"""
    ff = get_fruitflow(db)

    with reported_errors():
        products = (
            ff.list_products(supplier_id=supplier)
            if supplier is not None
            else ff.search_products(search)
        )

    if json_output:
        typer.echo(json.dumps([p.model_dump(mode="json") for p in products], indent=2))
        return

    if not products:
        typer.echo("No products")
        return

    typer.echo(f"Products ({len(products)}):")
    for p in products:
        stock = f"stock {p.stock_quantity}" if p.in_stock() else "out of stock"
        typer.echo(
            f"  {p.id}: {p.name} {p.price:.2f}/{p.unit.value} "
            f"from {p.supplier_id} [{stock}]"
        )


# Order commands


@order_app.command("place")
def order_place(
    actor: Annotated[str, typer.Option("--as", help="Ordering customer")],
    product: Annotated[str, typer.Option("--product", help="Product id")],
    quantity: Annotated[float, typer.Option("--quantity", help="Quantity")],
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", help="Notes for the supplier"),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Place an order as a customer"""
    ff = get_fruitflow(db)

    with reported_errors():
        order = ff.place_order(actor, product, quantity=quantity, notes=notes)

    typer.echo(f"✓ Placed order: {order.id}")
    typer.echo(f"  {order.quantity:g} {order.unit.value} {order.product_name} from {order.supplier_id}")
    typer.echo(f"  Total: {order.total_amount:.2f} {order.currency}")
    typer.echo(f"  Status: {order.status.value}")


@order_app.command("status")
def order_status(
    order_id: Annotated[str, typer.Option("--id", help="Order id")],
    status: Annotated[str, typer.Option("--status", help="New status")],
    actor: Annotated[str, typer.Option("--as", help="Acting user")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Move an order to a new status"""
    ff = get_fruitflow(db)

    with reported_errors():
        order = ff.update_order_status(order_id, status, actor_id=actor)

    typer.echo(f"✓ Order {order.id} is now {order.status.value}")


@order_app.command("assign")
def order_assign(
    order_id: Annotated[str, typer.Option("--id", help="Order id")],
    transporter: Annotated[str, typer.Option("--transporter", help="Transporter id")],
    actor: Annotated[str, typer.Option("--as", help="Order's supplier")],
    distance_km: Annotated[
        Optional[float],
        typer.Option("--distance-km", help="Route length for the fee estimate"),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Assign a transporter to an order"""
    ff = get_fruitflow(db)

    with reported_errors():
        order = ff.assign_transporter(
            order_id, transporter, actor_id=actor, distance_km=distance_km
        )

    typer.echo(f"✓ Assigned {order.transporter_id} to order {order.id}")
    if order.estimated_transporter_fee is not None:
        typer.echo(f"  Estimated fee: {order.estimated_transporter_fee:.2f}")


@order_app.command("shipment")
def order_shipment(
    order_id: Annotated[str, typer.Option("--id", help="Order id")],
    shipment_status: Annotated[str, typer.Option("--status", help="Shipment status")],
    actor: Annotated[str, typer.Option("--as", help="Assigned transporter")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Report shipment progress"""
    ff = get_fruitflow(db)

    with reported_errors():
        order = ff.update_shipment_status(
            order_id, shipment_status, actor_id=actor
        )

    typer.echo(f"✓ Shipment of order {order.id}: {order.shipment_status.value}")


@order_app.command("assess")
def order_assess(
    order_id: Annotated[str, typer.Option("--id", help="Order id")],
    actor: Annotated[str, typer.Option("--as", help="Order's customer")],
    supplier_rating: Annotated[
        Optional[int],
        typer.Option("--supplier-rating", help="Supplier rating 1-5"),
    ] = None,
    transporter_rating: Annotated[
        Optional[int],
        typer.Option("--transporter-rating", help="Transporter rating 1-5"),
    ] = None,
    supplier_feedback: Annotated[
        Optional[str],
        typer.Option("--supplier-feedback", help="Comments on the supplier"),
    ] = None,
    transporter_feedback: Annotated[
        Optional[str],
        typer.Option("--transporter-feedback", help="Comments on the transporter"),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Rate a completed or disputed order"""
    ff = get_fruitflow(db)

    with reported_errors():
        order = ff.submit_assessment(
            order_id,
            actor_id=actor,
            supplier_rating=supplier_rating,
            transporter_rating=transporter_rating,
            supplier_feedback=supplier_feedback,
            transporter_feedback=transporter_feedback,
        )

    typer.echo(f"✓ Assessment recorded for order {order.id}")
    result = ff.last_recompute
    if result is not None:
        typer.echo(f"  {result.summary()}")


@order_app.command("list")
def order_list(
    customer: Annotated[
        Optional[str],
        typer.Option("--customer", help="Filter by customer"),
    ] = None,
    supplier: Annotated[
        Optional[str],
        typer.Option("--supplier", help="Filter by supplier"),
    ] = None,
    transporter: Annotated[
        Optional[str],
        typer.Option("--transporter", help="Filter by transporter"),
    ] = None,
    status: Annotated[
        Optional[str],
        typer.Option("--status", help="Filter by status"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """List orders"""
    ff = get_fruitflow(db)

    with reported_errors():
        orders = ff.list_orders(
            customer_id=customer,
            supplier_id=supplier,
            transporter_id=transporter,
            status=status,
        )

    if json_output:
        typer.echo(json.dumps([o.model_dump(mode="json") for o in orders], indent=2))
        return

    if not orders:
        typer.echo("No orders")
        return

    typer.echo(f"Orders ({len(orders)}):")
    for order in orders:
        rated = " (assessed)" if order.assessment_submitted else ""
        typer.echo(
            f"  {order.id}: {order.product_name} x{order.quantity:g} "
            f"{order.customer_id} ← {order.supplier_id} [{order.status.value}]{rated}"
        )


# Reputation commands


@reputation_app.command("recompute")
def reputation_recompute(
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Recompute ratings and apply automatic suspensions"""
    ff = get_fruitflow(db)

    result = ff.recompute_reputation()

    typer.echo(f"✓ Recompute completed: {result.recompute_id}")
    typer.echo(f"  Users: {len(result.aggregates)}")
    typer.echo(f"  Writes: {result.report.writes}")
    for user_id in result.newly_suspended:
        typer.echo(f"  🛑 Suspended: {user_id}")
    if result.unavailable_sources:
        typer.echo(
            "  ⚠️  Data source unavailable: " + ", ".join(result.unavailable_sources)
        )
    for user_id, error in result.report.failures.items():
        typer.echo(f"  ⚠️  Could not update {user_id}: {error}")


@reputation_app.command("show")
def reputation_show(
    user_id: Annotated[str, typer.Option("--id", help="User id")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Show a user's stored ratings"""
    ff = get_fruitflow(db)

    with reported_errors():
        rep = ff.reputation(user_id)

    if json_output:
        typer.echo(json.dumps(rep, indent=2))
        return

    typer.echo(f"Reputation for {rep['user_id']} ({rep['role']}):")
    typer.echo(
        f"  Supplier rating: {_fmt_rating(rep['average_supplier_rating'])} "
        f"({rep['supplier_rating_count']} ratings)"
    )
    typer.echo(
        f"  Transporter rating: {_fmt_rating(rep['average_transporter_rating'])} "
        f"({rep['transporter_rating_count']} ratings)"
    )
    if rep["is_suspended"]:
        typer.echo("  🛑 Suspended")


# Shipping commands


@shipping_app.command("quote")
def shipping_quote(
    transporter: Annotated[str, typer.Option("--transporter", help="Transporter id")],
    distance_km: Annotated[float, typer.Option("--distance-km", help="Route length")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Price a route with a transporter's rates"""
    ff = get_fruitflow(db)

    with reported_errors():
        price = ff.quote_shipping(transporter, distance_km)

    typer.echo(f"✓ Shipping price for {distance_km:g} km: {price:.2f}")


@shipping_app.command("distance")
def shipping_distance(
    origin: Annotated[str, typer.Option("--from", help="Origin address")],
    destination: Annotated[str, typer.Option("--to", help="Destination address")],
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Estimate distance and driving time between two addresses"""
    ff = get_fruitflow(db)

    estimate = ff.estimate_distance(origin, destination)

    typer.echo(f"Distance: {estimate.distance_text}")
    typer.echo(f"Duration: {estimate.duration_text}")
    if estimate.note:
        typer.echo(f"Note: {estimate.note}")


# Escrow commands


@escrow_app.command("payout")
def escrow_payout(
    recipient: Annotated[str, typer.Option("--to", help="Recipient wallet address")],
    amount: Annotated[float, typer.Option("--amount", help="Amount")],
    currency: Annotated[str, typer.Option("--currency", help="3-letter code")] = "ETH",
    escrow_address: Annotated[
        str,
        typer.Option("--escrow", help="Escrow wallet address"),
    ] = "0xFruitFlowEscrow",
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Simulate a payout from escrow"""
    ff = get_fruitflow(db)

    with reported_errors():
        result = ff.simulate_payout(recipient, amount, currency, escrow_address)

    typer.echo(f"✓ {result.message}")
    typer.echo(f"  Tx: {result.mock_transaction_hash}")


# Monitoring


@app.command()
def health(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Database path"),
    ] = None,
) -> None:
    """Show marketplace health"""
    ff = get_fruitflow(db)

    with reported_errors():
        summary = ff.health()

    if json_output:
        typer.echo(json.dumps(summary, indent=2, default=str))
        return

    typer.echo("\nFruitFlow Health:")
    typer.echo(f"  Users: {summary['users']}")
    typer.echo(f"  Orders: {summary['orders']}")
    typer.echo(f"  Products: {summary['products']}")
    typer.echo(f"  Suspended users: {summary['suspended_users']}")
    typer.echo(f"  Pending approvals: {summary['pending_approvals']}")
    last = summary["last_recompute"]
    if last:
        typer.echo(f"  Last recompute: {last['recomputed_at']} ({last['outcome']})")
    else:
        typer.echo("  Last recompute: never")


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
