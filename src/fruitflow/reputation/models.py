"""
Reputation Models

Per-user rating aggregates produced by a recompute pass.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

# customer_id -> supplier_id -> number of qualifying orders
PurchaseIndex = dict[str, dict[str, int]]

# Fields on a user document owned by the reputation recompute
AGGREGATE_FIELDS = (
    "supplier_weighted_rating_sum",
    "supplier_total_weights",
    "supplier_rating_count",
    "average_supplier_rating",
    "transporter_rating_count",
    "average_transporter_rating",
)


class ReputationAggregate(BaseModel):
    """
    Rating aggregates for one user

    ``suspend`` is True only when this pass moves the user from active to
    suspended. Users that are already suspended never get ``suspend=True``.
    """

    user_id: str
    role: str | None = None
    supplier_weighted_rating_sum: float = 0.0
    supplier_total_weights: float = 0.0
    supplier_rating_count: int = Field(default=0, ge=0)
    average_supplier_rating: float | None = None
    transporter_rating_sum: float = 0.0
    transporter_rating_count: int = Field(default=0, ge=0)
    average_transporter_rating: float | None = None
    suspend: bool = False

    def user_fields(self) -> dict[str, Any]:
        """Aggregate fields as stored on the user document"""
        data = self.model_dump()
        return {name: data[name] for name in AGGREGATE_FIELDS}


def as_record(item: Any) -> Mapping[str, Any]:
    """
    Normalize an order or user into a plain mapping

    Accepts document dicts as returned by the store and pydantic models.
    Enum values are flattened to their string values.
    """
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    return item
