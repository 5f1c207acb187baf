"""
Health check HTTP server for liveness and readiness probes.

/health/live answers as long as the process runs, /health/ready checks the
document store, and /health adds marketplace counts plus the outcome of the
last reputation recompute.
"""

from pathlib import Path
from typing import Any

from flask import Flask, jsonify

from fruitflow import __version__
from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.errors import DataSourceUnavailable
from fruitflow.kernel.logging import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

SERVICE_NAME = "fruitflow"

# Set by initialize_health_server()
_db_path: Path | None = None
_fruitflow: FruitFlow | None = None


def initialize_health_server(
    db_path: str | Path, fruitflow: FruitFlow | None = None
) -> None:
    """
    Point the health server at a database

    Args:
        db_path: Path to the SQLite database
        fruitflow: Existing instance to reuse; one is opened lazily otherwise
    """
    global _db_path, _fruitflow
    _db_path = Path(db_path)
    _fruitflow = fruitflow
    logger.info("Health server initialized", db_path=str(_db_path))


def _not_ready(reason: str, **extra: Any) -> tuple[Any, int]:
    return jsonify({"status": "not_ready", "reason": reason, **extra}), 503


def _instance() -> FruitFlow:
    global _fruitflow
    if _fruitflow is None:
        assert _db_path is not None
        _fruitflow = FruitFlow(_db_path, seed_manager=False)
    return _fruitflow


@app.route("/health/live", methods=["GET"])
def liveness() -> tuple[Any, int]:
    """Liveness probe"""
    return jsonify({"status": "alive", "service": SERVICE_NAME}), 200


@app.route("/health/ready", methods=["GET"])
def readiness() -> tuple[Any, int]:
    """
    Readiness probe

    503 when the database path is unset, the file is missing, or the
    store cannot be queried.
    """
    if _db_path is None:
        logger.error("Readiness check failed: DB path not initialized")
        return _not_ready("database_path_not_initialized")

    if not _db_path.exists():
        logger.error("Readiness check failed: DB file does not exist", db_path=str(_db_path))
        return _not_ready("database_file_not_found", db_path=str(_db_path))

    try:
        user_count = _instance().store.count("users")
    except DataSourceUnavailable as e:
        logger.error("Readiness check failed: store unavailable", error=str(e))
        return _not_ready("database_operational_error", error=str(e))

    logger.debug("Readiness check passed", user_count=user_count)
    return jsonify({"status": "ready", "database": "accessible", "user_count": user_count}), 200


@app.route("/health", methods=["GET"])
def detailed_health() -> tuple[Any, int]:
    """
    Detailed health check

    Status is "degraded" (503) when the store cannot be read or the last
    recompute ran on partial data.
    """
    health_data: dict[str, Any] = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
    }

    if _db_path is None or not _db_path.exists():
        health_data["database"] = {"status": "not_initialized"}
        health_data["status"] = "degraded"
        return jsonify(health_data), 503

    try:
        summary = _instance().health()
    except DataSourceUnavailable as e:
        logger.error("Database health check failed", error=str(e))
        health_data["database"] = {"status": "unhealthy", "error": str(e)}
        health_data["status"] = "degraded"
        return jsonify(health_data), 503

    health_data["database"] = {"status": "healthy", "path": str(_db_path)}
    health_data["marketplace"] = {
        "users": summary["users"],
        "orders": summary["orders"],
        "suspended_users": summary["suspended_users"],
        "pending_approvals": summary["pending_approvals"],
    }

    last = summary["last_recompute"]
    health_data["last_recompute"] = last
    if last is not None and last.get("outcome") != "success":
        health_data["status"] = "degraded"

    status_code = 200 if health_data["status"] == "healthy" else 503
    return jsonify(health_data), status_code


def run_health_server(port: int = 8080, debug: bool = False) -> None:
    """Run the health check server"""
    logger.info("Starting health check server", port=port)
    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    # python -m fruitflow.health_server
    initialize_health_server("/tmp/fruitflow-test.db")
    run_health_server(port=8080, debug=True)
