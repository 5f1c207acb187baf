"""
Prometheus metrics collection for FruitFlow.

Provides observability into reputation recomputation, suspensions,
logins and the document store.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram, start_http_server

# ============================================================================
# Document Store Metrics
# ============================================================================

documents_written_total = Counter(
    "fruitflow_documents_written_total",
    "Total number of document writes",
    ["collection", "operation"],  # operation: create, set, update, delete
)

data_source_failures_total = Counter(
    "fruitflow_data_source_failures_total",
    "Total number of document store operations that failed",
    ["operation"],
)

# ============================================================================
# Reputation Metrics
# ============================================================================

reputation_recomputations_total = Counter(
    "fruitflow_reputation_recomputations_total",
    "Total number of reputation recomputation passes",
    ["outcome"],  # outcome: success, degraded, failure
)

reputation_recompute_duration_seconds = Histogram(
    "fruitflow_reputation_recompute_duration_seconds",
    "Duration of a reputation recomputation pass",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

users_suspended_total = Counter(
    "fruitflow_users_suspended_total",
    "Total number of automatic suspensions persisted",
    ["role"],
)

suspension_write_failures_total = Counter(
    "fruitflow_suspension_write_failures_total",
    "Total number of suspension flags that could not be persisted",
    ["role"],
)

supplier_average_rating = Gauge(
    "fruitflow_supplier_average_rating",
    "Weighted average rating of a supplier",
    ["supplier_id"],
)

transporter_average_rating = Gauge(
    "fruitflow_transporter_average_rating",
    "Average rating of a transporter",
    ["transporter_id"],
)

# ============================================================================
# Account & Order Metrics
# ============================================================================

logins_total = Counter(
    "fruitflow_logins_total",
    "Total number of login attempts",
    ["outcome"],  # outcome: success, invalid, suspended, not_approved
)

orders_by_status_total = Gauge(
    "fruitflow_orders_by_status_total",
    "Number of orders by status",
    ["status"],
)

operation_duration_seconds = Histogram(
    "fruitflow_operation_duration_seconds",
    "Duration of façade operations in seconds",
    ["operation"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

operations_total = Counter(
    "fruitflow_operations_total",
    "Total number of façade operations",
    ["operation", "status"],  # status: success, failure
)

# ============================================================================
# Helper Functions
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_operation(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to track operation duration and outcome.

    Args:
        operation: Operation name used as metric label
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                operation_duration_seconds.labels(operation=operation).observe(
                    time.perf_counter() - start
                )
                operations_total.labels(operation=operation, status=status).inc()

        return wrapper

    return decorator


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server.

    Args:
        port: Port to listen on (default: 9090)
    """
    start_http_server(port)


def update_rating_gauges(
    supplier_averages: dict[str, float],
    transporter_averages: dict[str, float],
) -> None:
    """Publish the latest averages; users without ratings are not exported."""
    for supplier_id, value in supplier_averages.items():
        supplier_average_rating.labels(supplier_id=supplier_id).set(value)
    for transporter_id, value in transporter_averages.items():
        transporter_average_rating.labels(transporter_id=transporter_id).set(value)


def update_order_status_gauges(status_counts: dict[str, int]) -> None:
    """Publish order counts per status."""
    for status, count in status_counts.items():
        orders_by_status_total.labels(status=status).set(count)
