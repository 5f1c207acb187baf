"""
ReputationEngine - Reputation recompute orchestrator

The engine runs one full recompute pass over the current order and user
snapshots. It is invoked explicitly: from the CLI, after an assessment is
written, or from any scheduler that wants fresh ratings.

Fun fact: Apple growers call the yearly orchard survey "the count". Ours
happens every time a customer leaves a review.
"""

import time
from datetime import datetime

from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.errors import DataSourceUnavailable
from fruitflow.kernel.ids import generate_id
from fruitflow.kernel.logging import LogOperation, get_logger
from fruitflow.kernel.metrics import (
    reputation_recompute_duration_seconds,
    reputation_recomputations_total,
    update_rating_gauges,
)
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.kernel.time import TimeProvider
from fruitflow.reputation.aggregator import compute_reputation_aggregates
from fruitflow.reputation.models import ReputationAggregate
from fruitflow.reputation.persistence import PersistenceReport, persist_reputation
from fruitflow.reputation.purchase_index import load_purchase_index

logger = get_logger(__name__)

ORDERS_COLLECTION = "orders"
USERS_COLLECTION = "users"
SYSTEM_COLLECTION = "system"
LAST_RECOMPUTE_DOC = "last_recompute"


class RecomputeResult:
    """
    Result of a recompute pass

    ``degraded`` is the recoverable-failure signal: some source could not be
    read or some user could not be written. The pass still returns whatever
    it managed to compute.
    """

    def __init__(
        self,
        recompute_id: str,
        recomputed_at: datetime,
        aggregates: dict[str, ReputationAggregate],
        report: PersistenceReport,
        unavailable_sources: list[str],
    ):
        self.recompute_id = recompute_id
        self.recomputed_at = recomputed_at
        self.aggregates = aggregates
        self.report = report
        self.unavailable_sources = unavailable_sources

    @property
    def degraded(self) -> bool:
        return bool(self.unavailable_sources) or self.report.has_failures()

    @property
    def outcome(self) -> str:
        return "degraded" if self.degraded else "success"

    @property
    def newly_suspended(self) -> list[str]:
        return list(self.report.suspended)

    def summary(self) -> str:
        """Human-readable summary of the pass"""
        parts = [
            f"Recompute {self.recompute_id} at {self.recomputed_at}",
            f"Users: {len(self.aggregates)}",
            f"Suspended: {len(self.report.suspended)}",
            f"Writes: {self.report.writes}",
        ]

        if self.unavailable_sources:
            parts.append(
                "⚠️  Data source unavailable: " + ", ".join(self.unavailable_sources)
            )
        if self.report.has_failures():
            parts.append(f"⚠️  {len(self.report.failures)} write failure(s)")

        return " | ".join(parts)

    def to_dict(self) -> dict:
        return {
            "recompute_id": self.recompute_id,
            "recomputed_at": self.recomputed_at.isoformat(),
            "outcome": self.outcome,
            "users": len(self.aggregates),
            "suspended": list(self.report.suspended),
            "writes": self.report.writes,
            "failures": dict(self.report.failures),
            "unavailable_sources": list(self.unavailable_sources),
        }


class ReputationEngine:
    """
    Orchestrates a reputation recompute

    The engine:
    1. Loads all orders and builds the purchase index (fail-open)
    2. Loads assessed orders and users
    3. Computes aggregates and suspension decisions
    4. Persists changed aggregates and fresh suspensions per user
    5. Records the outcome for health checks
    """

    def __init__(
        self,
        store: SQLiteDocumentStore,
        time_provider: TimeProvider,
        policy: ReputationPolicy,
    ):
        self.store = store
        self.time_provider = time_provider
        self.policy = policy

    def recompute(self) -> RecomputeResult:
        """
        Execute a single recompute pass

        Never raises for data-source trouble: unavailable sources are listed
        on the result instead.
        """
        now = self.time_provider.now()
        recompute_id = generate_id()
        unavailable: list[str] = []
        started = time.perf_counter()

        with LogOperation(logger, "reputation_recompute", recompute_id=recompute_id):
            purchase_index, index_degraded = load_purchase_index(
                lambda: self.store.list_documents(ORDERS_COLLECTION)
            )
            if index_degraded:
                unavailable.append("order_history")

            try:
                assessed_orders = self.store.query(
                    ORDERS_COLLECTION, assessment_submitted=True
                )
            except DataSourceUnavailable as e:
                logger.warning("Assessed orders unavailable", reason=e.reason)
                unavailable.append("assessed_orders")
                assessed_orders = []

            try:
                users = self.store.list_documents(USERS_COLLECTION)
            except DataSourceUnavailable as e:
                logger.warning("Users unavailable", reason=e.reason)
                unavailable.append("users")
                users = []

            logger.debug(
                "Loaded recompute snapshot",
                recompute_id=recompute_id,
                customers_indexed=len(purchase_index),
                assessed_orders=len(assessed_orders),
                users=len(users),
            )

            # Stored aggregates stay untouched when assessments cannot be read
            if "assessed_orders" in unavailable:
                aggregates: dict[str, ReputationAggregate] = {}
                report = PersistenceReport()
            else:
                aggregates = compute_reputation_aggregates(
                    assessed_orders, purchase_index, users, self.policy
                )
                report = persist_reputation(self.store, aggregates, users)

            update_rating_gauges(
                {
                    uid: agg.average_supplier_rating
                    for uid, agg in aggregates.items()
                    if agg.average_supplier_rating is not None
                },
                {
                    uid: agg.average_transporter_rating
                    for uid, agg in aggregates.items()
                    if agg.average_transporter_rating is not None
                },
            )

            result = RecomputeResult(
                recompute_id=recompute_id,
                recomputed_at=now,
                aggregates=aggregates,
                report=report,
                unavailable_sources=unavailable,
            )

            self._record_outcome(result)
            reputation_recomputations_total.labels(outcome=result.outcome).inc()
            reputation_recompute_duration_seconds.observe(time.perf_counter() - started)

            logger.info(
                "Reputation recompute completed",
                recompute_id=recompute_id,
                outcome=result.outcome,
                users=len(aggregates),
                suspended=len(report.suspended),
                writes=report.writes,
                failures=len(report.failures),
            )

            return result

    def _record_outcome(self, result: RecomputeResult) -> None:
        try:
            self.store.set(SYSTEM_COLLECTION, LAST_RECOMPUTE_DOC, result.to_dict())
        except DataSourceUnavailable as e:
            logger.warning(
                "Could not record recompute outcome",
                recompute_id=result.recompute_id,
                reason=e.reason,
            )
            if "system" not in result.unavailable_sources:
                result.unavailable_sources.append("system")

    def last_outcome(self) -> dict | None:
        """Outcome of the most recent recorded pass, if any"""
        return self.store.get(SYSTEM_COLLECTION, LAST_RECOMPUTE_DOC)
