"""
Reputation - weighted supplier ratings, transporter ratings and auto-suspension
"""

from fruitflow.reputation.aggregator import (
    compute_reputation_aggregates,
    is_numeric_rating,
    should_suspend,
    trust_weight,
)
from fruitflow.reputation.models import PurchaseIndex, ReputationAggregate
from fruitflow.reputation.persistence import PersistenceReport, persist_reputation
from fruitflow.reputation.purchase_index import (
    COUNTABLE_STATUSES,
    compute_purchase_index,
    load_purchase_index,
    purchase_count,
)

__all__ = [
    "COUNTABLE_STATUSES",
    "PersistenceReport",
    "PurchaseIndex",
    "ReputationAggregate",
    "compute_purchase_index",
    "compute_reputation_aggregates",
    "is_numeric_rating",
    "load_purchase_index",
    "persist_reputation",
    "purchase_count",
    "should_suspend",
    "trust_weight",
]
