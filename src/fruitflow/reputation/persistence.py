"""
Reputation Persistence

Writes recompute results back onto user documents, one user at a time.

Each user gets at most one document update per pass, carrying the changed
aggregate fields and, on a fresh transition, ``is_suspended=True``. Users whose
stored aggregates already match and who are not being suspended get no write
at all, so repeating a pass over the same data is a no-op.

A failed write for one user is logged and reported; the remaining users are
still written. The next pass picks the failed user up again because their
stored flag is still false.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.errors import DocumentStoreError
from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.metrics import (
    suspension_write_failures_total,
    users_suspended_total,
)
from fruitflow.reputation.models import AGGREGATE_FIELDS, ReputationAggregate, as_record

logger = get_logger(__name__)

USERS_COLLECTION = "users"


class PersistenceReport(BaseModel):
    """Outcome of writing one recompute pass"""

    suspended: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    failures: dict[str, str] = Field(
        default_factory=dict, description="user_id → error message"
    )

    @property
    def writes(self) -> int:
        return len(self.updated)

    def has_failures(self) -> bool:
        return bool(self.failures)


def _changed_fields(
    stored: Mapping[str, Any], aggregate: ReputationAggregate
) -> dict[str, Any]:
    new_values = aggregate.user_fields()
    return {
        name: new_values[name]
        for name in AGGREGATE_FIELDS
        if stored.get(name) != new_values[name]
    }


def persist_reputation(
    store: SQLiteDocumentStore,
    aggregates: Mapping[str, ReputationAggregate],
    users: Iterable[Any],
) -> PersistenceReport:
    """
    Persist aggregates and fresh suspensions

    Args:
        store: Document store holding the users collection
        aggregates: Output of compute_reputation_aggregates
        users: The user snapshot the aggregates were computed from

    Returns:
        PersistenceReport listing suspended, updated and failed users
    """
    report = PersistenceReport()

    for item in users:
        stored = as_record(item)
        user_id = stored.get("id")
        aggregate = aggregates.get(user_id) if user_id else None
        if aggregate is None:
            continue

        fields = _changed_fields(stored, aggregate)
        if aggregate.suspend:
            fields["is_suspended"] = True
        if not fields:
            continue

        try:
            store.update(USERS_COLLECTION, user_id, fields)
        except DocumentStoreError as e:
            report.failures[user_id] = str(e)
            if aggregate.suspend:
                suspension_write_failures_total.labels(role=aggregate.role or "unknown").inc()
            logger.error(
                "Failed to persist reputation for user",
                user_id=user_id,
                suspend=aggregate.suspend,
                error=str(e),
            )
            continue

        report.updated.append(user_id)
        if aggregate.suspend:
            report.suspended.append(user_id)
            users_suspended_total.labels(role=aggregate.role or "unknown").inc()
            logger.warning(
                "User automatically suspended",
                user_id=user_id,
                role=aggregate.role,
                supplier_rating_count=aggregate.supplier_rating_count,
                average_supplier_rating=aggregate.average_supplier_rating,
                transporter_rating_count=aggregate.transporter_rating_count,
                average_transporter_rating=aggregate.average_transporter_rating,
            )

    return report
