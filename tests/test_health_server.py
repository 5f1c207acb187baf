"""
Tests for health server

Exercises the Flask liveness, readiness and detailed health endpoints.

Fun fact: The concept of "health checks" in distributed systems was pioneered by Amazon
in the early 2000s when building their highly available retail platform. Today, every
cloud-native system uses similar patterns!
"""

from pathlib import Path

import pytest

from fruitflow import health_server
from fruitflow.fruitflow import FruitFlow
from fruitflow.health_server import app, initialize_health_server
from fruitflow.kernel.errors import DataSourceUnavailable


@pytest.fixture
def client():
    """Flask test client"""
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def initialized(ff: FruitFlow, temp_db: Path) -> FruitFlow:
    initialize_health_server(temp_db, ff)
    return ff


def test_liveness(client) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.get_json() == {"status": "alive", "service": "fruitflow"}


def test_readiness(client, initialized: FruitFlow) -> None:
    response = client.get("/health/ready")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ready"
    assert data["user_count"] == 1  # default manager


def test_readiness_without_initialization(client, monkeypatch) -> None:
    monkeypatch.setattr(health_server, "_db_path", None)

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.get_json()["reason"] == "database_path_not_initialized"


def test_readiness_missing_file(client, tmp_path: Path) -> None:
    initialize_health_server(tmp_path / "absent.db")

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.get_json()["reason"] == "database_file_not_found"


def test_readiness_store_unavailable(client, initialized: FruitFlow, monkeypatch) -> None:
    def broken(collection):
        raise DataSourceUnavailable("count", "database is locked")

    monkeypatch.setattr(initialized.store, "count", broken)

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.get_json()["reason"] == "database_operational_error"


def test_readiness_opens_instance_lazily(client, ff: FruitFlow, temp_db: Path) -> None:
    initialize_health_server(temp_db)

    response = client.get("/health/ready")

    assert response.status_code == 200


def test_detailed_health(client, initialized: FruitFlow) -> None:
    initialized.signup("orchard", "pw", "supplier")
    initialized.recompute_reputation()

    response = client.get("/health")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "healthy"
    assert data["marketplace"]["users"] == 2
    assert data["marketplace"]["pending_approvals"] == 1
    assert data["last_recompute"]["outcome"] == "success"


def test_detailed_health_degraded_after_partial_recompute(client, initialized: FruitFlow) -> None:
    initialized.store.set("system", "last_recompute", {"outcome": "degraded"})

    response = client.get("/health")

    assert response.status_code == 503
    assert response.get_json()["status"] == "degraded"


def test_detailed_health_store_unavailable(client, initialized: FruitFlow, monkeypatch) -> None:
    def broken(collection):
        raise DataSourceUnavailable("list", "database is locked")

    monkeypatch.setattr(initialized.store, "list_documents", broken)

    response = client.get("/health")

    assert response.status_code == 503
    assert response.get_json()["database"]["status"] == "unhealthy"
