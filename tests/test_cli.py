"""
CLI integration tests

Drives every command group through Typer's CliRunner against a temporary
database.

Fun fact: The first command-line interface (CLI) was created in 1964 for the
Dartmouth Time Sharing System. Ordering mangoes came a bit later.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fruitflow.cli.main import app
from fruitflow.fruitflow import FruitFlow


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db(runner: CliRunner, tmp_path: Path) -> Path:
    """Initialized database with approved supplier, ready transporter, customer and a mango listing"""
    db_path = tmp_path / "cli.db"
    assert runner.invoke(app, ["init", "--db", str(db_path)]).exit_code == 0

    commands = [
        ["user", "signup", "--username", "orchard", "--password", "pw", "--role", "supplier"],
        ["user", "signup", "--username", "truckco", "--password", "pw", "--role", "transporter"],
        ["user", "signup", "--username", "alice", "--password", "pw", "--role", "customer"],
        ["user", "approve", "--id", "orchard", "--as", "nhom1"],
        ["user", "approve", "--id", "truckco", "--as", "nhom1"],
        ["user", "profile", "--as", "truckco", "--eth", "0xTruckCo"],
        ["user", "rates", "--as", "truckco", "--tier1", "50", "--tier2", "1", "--tier3", "0.5"],
        ["product", "add", "--as", "orchard", "--name", "Mango", "--description", "Alphonso, tree-ripened",
         "--price", "2.5", "--unit", "kg", "--stock", "100", "--category", "tropical"],
    ]
    for args in commands:
        result = runner.invoke(app, args + ["--db", str(db_path)])
        assert result.exit_code == 0, result.output
    return db_path


def invoke(runner: CliRunner, db: Path, *args: str):
    return runner.invoke(app, [*args, "--db", str(db)])


def mango_id(db: Path) -> str:
    return FruitFlow(db).list_products(supplier_id="orchard")[0].id


def only_order_id(db: Path) -> str:
    orders = FruitFlow(db).list_orders()
    assert len(orders) == 1
    return orders[0].id


# =============================================================================
# Initialization
# =============================================================================


def test_init_creates_database(runner: CliRunner, tmp_path: Path) -> None:
    db_path = tmp_path / "new.db"

    result = runner.invoke(app, ["init", "--db", str(db_path)])

    assert result.exit_code == 0
    assert "Initialized" in result.output
    assert "Nhom1" in result.output
    assert db_path.exists()


def test_init_refuses_existing_database(runner: CliRunner, db: Path) -> None:
    result = runner.invoke(app, ["init", "--db", str(db)])

    assert result.exit_code == 1


def test_missing_database(runner: CliRunner, tmp_path: Path) -> None:
    result = invoke(runner, tmp_path / "absent.db", "health")

    assert result.exit_code == 1
    assert "Database not found" in result.output


# =============================================================================
# Users
# =============================================================================


def test_login(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "login", "--username", "Nhom1", "--password", "123")

    assert result.exit_code == 0
    assert "Welcome back" in result.output


def test_login_failure_exits_nonzero(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "login", "--username", "alice", "--password", "nope")

    assert result.exit_code == 1
    assert "Invalid username or password" in result.output


def test_signup_pending_supplier(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "signup", "--username", "farm2", "--password", "pw", "--role", "supplier")

    assert result.exit_code == 0
    assert "Awaiting manager approval" in result.output

    pending = invoke(runner, db, "user", "list", "--pending")
    assert "farm2" in pending.output


def test_signup_bad_role(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "signup", "--username", "x", "--password", "pw", "--role", "farmer")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_user_list_json(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "list", "--role", "transporter", "--json")

    assert result.exit_code == 0
    users = json.loads(result.output)
    assert [u["id"] for u in users] == ["truckco"]
    assert "mock_password" not in users[0]


def test_add_manager(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "add-manager", "--username", "deputy", "--password", "pw", "--as", "nhom1")

    assert result.exit_code == 0
    assert "deputy" in result.output


def test_non_manager_cannot_approve(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "user", "approve", "--id", "orchard", "--as", "alice")

    assert result.exit_code == 1
    assert "not allowed" in result.output


# =============================================================================
# Products
# =============================================================================


def test_product_add_and_list(runner: CliRunner, db: Path) -> None:
    added = invoke(runner, db, "product", "add", "--as", "orchard", "--name", "Lemons",
                   "--description", "Unwaxed Amalfi lemons", "--price", "12", "--unit", "box")
    assert added.exit_code == 0, added.output
    assert "Lemons: 12.00/box, stock 0" in added.output

    listed = invoke(runner, db, "product", "list", "--supplier", "orchard")
    assert "Products (2):" in listed.output
    assert "out of stock" in listed.output
    assert "stock 100" in listed.output


def test_product_add_by_customer_refused(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "product", "add", "--as", "alice", "--name", "Figs",
                    "--description", "Black mission figs", "--price", "3")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_product_add_invalid_price(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "product", "add", "--as", "orchard", "--name", "Figs",
                    "--description", "Black mission figs", "--price", "0")

    assert result.exit_code == 1


def test_product_update(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "product", "update", "--id", mango_id(db), "--as", "orchard",
                    "--price", "3", "--stock", "40")

    assert result.exit_code == 0, result.output
    assert "Mango: 3.00/kg, stock 40" in result.output


def test_product_update_by_other_supplier_refused(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "user", "signup", "--username", "rival", "--password", "pw", "--role", "supplier")
    invoke(runner, db, "user", "approve", "--id", "rival", "--as", "nhom1")

    result = invoke(runner, db, "product", "update", "--id", mango_id(db), "--as", "rival", "--price", "0.5")

    assert result.exit_code == 1
    assert FruitFlow(db).list_products(supplier_id="orchard")[0].price == 2.5


def test_product_delete(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "product", "delete", "--id", mango_id(db), "--as", "orchard")

    assert result.exit_code == 0, result.output
    assert "No products" in invoke(runner, db, "product", "list").output


def test_product_search_json(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "product", "list", "--search", "TROPICAL", "--json")

    assert result.exit_code == 0
    products = json.loads(result.output)
    assert [p["name"] for p in products] == ["Mango"]
    assert products[0]["unit"] == "kg"


def test_order_over_stock_refused(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "order", "place", "--as", "alice", "--product", mango_id(db), "--quantity", "101")

    assert result.exit_code == 1
    assert "Not enough stock" in result.output
    assert FruitFlow(db).list_orders() == []


# =============================================================================
# Orders & reputation
# =============================================================================


def test_full_order_flow(runner: CliRunner, db: Path) -> None:
    placed = invoke(runner, db, "order", "place", "--as", "alice", "--product", mango_id(db), "--quantity", "20")
    assert placed.exit_code == 0, placed.output
    assert "Total: 50.00 USD" in placed.output
    order_id = only_order_id(db)

    assigned = invoke(runner, db, "order", "assign", "--id", order_id, "--transporter", "truckco",
                      "--as", "orchard", "--distance-km", "300")
    assert assigned.exit_code == 0, assigned.output
    assert "250.00" in assigned.output

    steps = [
        ["order", "status", "--id", order_id, "--status", "FundedOnChain", "--as", "alice"],
        ["order", "shipment", "--id", order_id, "--status", "Delivered", "--as", "truckco"],
        ["order", "status", "--id", order_id, "--status", "CompletedOnChain", "--as", "alice"],
    ]
    for args in steps:
        result = invoke(runner, db, *args)
        assert result.exit_code == 0, result.output
    assert FruitFlow(db).get_product(mango_id(db)).stock_quantity == 80

    assessed = invoke(runner, db, "order", "assess", "--id", order_id, "--as", "alice",
                      "--supplier-rating", "4", "--transporter-rating", "5")
    assert assessed.exit_code == 0, assessed.output
    assert "Assessment recorded" in assessed.output

    shown = invoke(runner, db, "reputation", "show", "--id", "orchard", "--json")
    rep = json.loads(shown.output)
    assert rep["average_supplier_rating"] == 4.0
    assert rep["supplier_rating_count"] == 1

    listed = invoke(runner, db, "order", "list", "--customer", "alice")
    assert "(assessed)" in listed.output


def test_invalid_transition_reported(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "order", "place", "--as", "alice", "--product", mango_id(db), "--quantity", "1")
    order_id = only_order_id(db)

    result = invoke(runner, db, "order", "status", "--id", order_id, "--status", "CompletedOnChain", "--as", "alice")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_unknown_status_reported(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "order", "place", "--as", "alice", "--product", mango_id(db), "--quantity", "1")
    order_id = only_order_id(db)

    result = invoke(runner, db, "order", "status", "--id", order_id, "--status", "Teleported", "--as", "alice")

    assert result.exit_code == 1


def test_reputation_recompute(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "reputation", "recompute")

    assert result.exit_code == 0
    assert "Recompute completed" in result.output
    assert "Users: 4" in result.output


def test_reputation_show_text(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "reputation", "show", "--id", "orchard")

    assert result.exit_code == 0
    assert "Supplier rating: n/a (0 ratings)" in result.output


# =============================================================================
# Logistics, escrow, health
# =============================================================================


def test_shipping_quote(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "shipping", "quote", "--transporter", "truckco", "--distance-km", "800")

    assert result.exit_code == 0
    assert "600.00" in result.output


def test_shipping_distance_simulated(runner: CliRunner, db: Path, monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    result = invoke(runner, db, "shipping", "distance", "--from", "Valencia", "--to", "Lyon")

    assert result.exit_code == 0
    assert "Simulated" in result.output


def test_escrow_payout(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "escrow", "payout", "--to", "0xTruckCo", "--amount", "12.5")

    assert result.exit_code == 0
    assert "Tx: 0x" in result.output


def test_escrow_payout_invalid_amount(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "escrow", "payout", "--to", "0xTruckCo", "--amount", "0")

    assert result.exit_code == 1


def test_health(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "health")

    assert result.exit_code == 0
    assert "Users: 4" in result.output
    assert "Products: 1" in result.output
    assert "Pending approvals: 0" in result.output
    assert "Last recompute: never" in result.output


def test_health_json(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "reputation", "recompute")

    result = invoke(runner, db, "health", "--json")

    data = json.loads(result.output)
    assert data["users"] == 4
    assert data["last_recompute"]["outcome"] == "success"
