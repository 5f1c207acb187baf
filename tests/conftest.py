"""
Pytest configuration and shared fixtures

Fun fact: The name "conftest" comes from pytest's configuration testing
framework. Files named conftest.py are automatically discovered and their
fixtures are available to all tests in the same directory and subdirectories!
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest

from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.kernel.time import TestTimeProvider


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def store(temp_db: Path) -> SQLiteDocumentStore:
    """Provide a fresh document store for each test"""
    return SQLiteDocumentStore(temp_db)


@pytest.fixture
def test_time() -> TestTimeProvider:
    """
    Provide a controllable time provider for deterministic tests

    Default time: 2025-01-15 12:00:00 UTC, early in the citrus season.
    """
    return TestTimeProvider(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy() -> ReputationPolicy:
    """Provide the default reputation policy"""
    return ReputationPolicy()


@pytest.fixture
def ff(temp_db: Path, test_time: TestTimeProvider) -> FruitFlow:
    """
    Provide a FruitFlow instance with the default manager seeded

    The manager's id is "nhom1".
    """
    return FruitFlow(temp_db, time_provider=test_time)


@pytest.fixture
def marketplace(ff: FruitFlow) -> FruitFlow:
    """
    FruitFlow with an approved supplier, an available transporter and a customer

    Users: "orchard" (supplier), "truckco" (transporter), "alice" (customer).
    orchard lists "Mango" at 2.5/kg with 1000 in stock.
    """
    ff.signup("orchard", "pw", "supplier")
    ff.signup("truckco", "pw", "transporter")
    ff.signup("alice", "pw", "customer")
    ff.approve_user("orchard", actor_id="nhom1")
    ff.approve_user("truckco", actor_id="nhom1")

    ff.update_profile("orchard", actor_id="orchard", address="12 Grove Rd, Valencia")
    ff.update_profile("alice", actor_id="alice", address="4 Market St, Lyon")
    ff.update_profile("truckco", actor_id="truckco", ethereum_address="0xTruckCo")
    ff.update_shipping_rates("truckco", "truckco", 50.0, 1.0, 0.5)
    ff.add_product("orchard", "Mango", "Alphonso, tree-ripened", 2.5, unit="kg",
                   stock_quantity=1000, category="Tropical")
    return ff
