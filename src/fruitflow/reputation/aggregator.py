"""
Reputation Aggregator

Folds customer assessments into per-user ratings and decides suspensions.

Supplier ratings are weighted by how much business the rating customer has
done with that supplier. Transporter ratings are a plain mean. A user is
suspended once they have enough ratings and their average falls strictly
below the threshold. Nothing here ever lifts a suspension.

This module is pure: it takes snapshots and returns a new result map. Fetching
and persisting live in the recompute engine and reputation.persistence.
"""

import math
from collections.abc import Iterable
from enum import Enum
from typing import Any

from fruitflow.kernel.policy import ReputationPolicy, default_reputation_policy
from fruitflow.reputation.models import PurchaseIndex, ReputationAggregate, as_record
from fruitflow.reputation.purchase_index import purchase_count

# Averages are rounded so float accumulation noise cannot flip a threshold check
RATING_PRECISION = 9


def is_numeric_rating(value: Any) -> bool:
    """
    True for finite int/float ratings

    Booleans, strings, None and NaN are not ratings.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def trust_weight(
    count: int, policy: ReputationPolicy = default_reputation_policy
) -> float:
    """
    Weight of one supplier rating given the customer's purchase count

    With the default policy: 0-1 purchases → 0.05, 2-10 → 0.15, 11+ → 0.80.
    """
    if count >= policy.loyal_purchase_min:
        return policy.weight_loyal
    if count >= policy.repeat_purchase_min:
        return policy.weight_repeat
    return policy.weight_first_time


def _role_value(role: Any) -> Any:
    return role.value if isinstance(role, Enum) else role


def should_suspend(
    aggregate: ReputationAggregate,
    policy: ReputationPolicy = default_reputation_policy,
) -> bool:
    """
    Whether the aggregate crosses the suspension line for the user's role

    Requires at least ``min_ratings_for_suspension`` ratings and an average
    strictly below ``suspension_rating_threshold``.
    """
    if aggregate.role == "supplier":
        count = aggregate.supplier_rating_count
        average = aggregate.average_supplier_rating
    elif aggregate.role == "transporter":
        count = aggregate.transporter_rating_count
        average = aggregate.average_transporter_rating
    else:
        return False

    return (
        count >= policy.min_ratings_for_suspension
        and average is not None
        and average < policy.suspension_rating_threshold
    )


def compute_reputation_aggregates(
    assessed_orders: Iterable[Any],
    purchase_index: PurchaseIndex,
    users: Iterable[Any],
    policy: ReputationPolicy = default_reputation_policy,
) -> dict[str, ReputationAggregate]:
    """
    Compute rating aggregates and suspension decisions for every user

    Args:
        assessed_orders: Orders with ``assessment_submitted`` True. Orders not
            marked as assessed are ignored.
        purchase_index: Output of compute_purchase_index (may be empty)
        users: Current users (documents or User models)
        policy: Weighting and suspension thresholds

    Returns:
        user_id → ReputationAggregate for every user in ``users``

    Example:
        >>> orders = [{"assessment_submitted": True, "customer_id": "c1",
        ...            "supplier_id": "s1", "supplier_rating": 4}]
        >>> result = compute_reputation_aggregates(orders, {}, [{"id": "s1", "role": "supplier"}])
        >>> result["s1"].average_supplier_rating
        4.0
    """
    weighted_sums: dict[str, float] = {}
    total_weights: dict[str, float] = {}
    supplier_counts: dict[str, int] = {}
    transporter_totals: dict[str, float] = {}
    transporter_counts: dict[str, int] = {}

    for item in assessed_orders:
        order = as_record(item)
        if order.get("assessment_submitted") is not True:
            continue

        supplier_id = order.get("supplier_id")
        customer_id = order.get("customer_id")
        supplier_rating = order.get("supplier_rating")
        if supplier_id and customer_id and is_numeric_rating(supplier_rating):
            weight = trust_weight(
                purchase_count(purchase_index, customer_id, supplier_id), policy
            )
            weighted_sums[supplier_id] = weighted_sums.get(supplier_id, 0.0) + supplier_rating * weight
            total_weights[supplier_id] = total_weights.get(supplier_id, 0.0) + weight
            supplier_counts[supplier_id] = supplier_counts.get(supplier_id, 0) + 1

        transporter_id = order.get("transporter_id")
        transporter_rating = order.get("transporter_rating")
        if transporter_id and is_numeric_rating(transporter_rating):
            transporter_totals[transporter_id] = (
                transporter_totals.get(transporter_id, 0.0) + transporter_rating
            )
            transporter_counts[transporter_id] = transporter_counts.get(transporter_id, 0) + 1

    results: dict[str, ReputationAggregate] = {}

    for item in users:
        user = as_record(item)
        user_id = user.get("id")
        if not user_id:
            continue

        s_sum = weighted_sums.get(user_id, 0.0)
        s_weights = total_weights.get(user_id, 0.0)
        t_total = transporter_totals.get(user_id, 0.0)
        t_count = transporter_counts.get(user_id, 0)

        aggregate = ReputationAggregate(
            user_id=user_id,
            role=_role_value(user.get("role")),
            supplier_weighted_rating_sum=s_sum,
            supplier_total_weights=s_weights,
            supplier_rating_count=supplier_counts.get(user_id, 0),
            average_supplier_rating=(
                round(s_sum / s_weights, RATING_PRECISION) if s_weights > 0 else None
            ),
            transporter_rating_sum=t_total,
            transporter_rating_count=t_count,
            average_transporter_rating=(
                round(t_total / t_count, RATING_PRECISION) if t_count > 0 else None
            ),
        )

        already_suspended = bool(user.get("is_suspended", False))
        if not already_suspended and should_suspend(aggregate, policy):
            aggregate.suspend = True

        results[user_id] = aggregate

    return results
