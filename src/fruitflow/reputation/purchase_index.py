"""
Purchase History Index

Counts how many qualifying orders each customer has placed with each supplier.
The count decides how much a customer's rating of that supplier is trusted.

Fun fact: Regular customers at Roman fruit stalls were called "clientes",
the same word used for a patron's dependants. Loyalty always carried weight.
"""

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from fruitflow.kernel.errors import DataSourceUnavailable
from fruitflow.kernel.logging import get_logger
from fruitflow.orders.models import OrderStatus
from fruitflow.reputation.models import PurchaseIndex, as_record

logger = get_logger(__name__)

# Statuses that count as a purchase, assessed or not
COUNTABLE_STATUSES = frozenset(
    status.value
    for status in (
        OrderStatus.PAID,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED_ON_CHAIN,
        OrderStatus.FUNDED_ON_CHAIN,
        OrderStatus.AWAITING_PAYMENT,
        OrderStatus.AWAITING_ON_CHAIN_FUNDING,
        OrderStatus.AWAITING_ON_CHAIN_CREATION,
        OrderStatus.PENDING,
        OrderStatus.AWAITING_SUPPLIER_CONFIRMATION,
    )
)

EXCLUDED_STATUSES = frozenset(
    {OrderStatus.CANCELLED.value, OrderStatus.DISPUTED_ON_CHAIN.value}
)


def _status_value(status: Any) -> Any:
    return status.value if isinstance(status, Enum) else status


def compute_purchase_index(orders: Iterable[Any]) -> PurchaseIndex:
    """
    Build the customer → supplier → purchase count index

    Every order with both ids present and a countable status adds one,
    whether or not it has been rated. Cancelled and disputed orders never
    count.

    Args:
        orders: All orders (documents or Order models), unfiltered

    Returns:
        Nested dict of counts; pairs with no purchases are absent

    Example:
        >>> compute_purchase_index([
        ...     {"customer_id": "c1", "supplier_id": "s1", "status": "Paid"},
        ...     {"customer_id": "c1", "supplier_id": "s1", "status": "Cancelled"},
        ... ])
        {'c1': {'s1': 1}}
    """
    index: PurchaseIndex = {}

    for item in orders:
        order = as_record(item)
        customer_id = order.get("customer_id")
        supplier_id = order.get("supplier_id")
        if not customer_id or not supplier_id:
            continue

        status = _status_value(order.get("status"))
        if status in EXCLUDED_STATUSES or status not in COUNTABLE_STATUSES:
            continue

        per_supplier = index.setdefault(customer_id, {})
        per_supplier[supplier_id] = per_supplier.get(supplier_id, 0) + 1

    return index


def purchase_count(index: PurchaseIndex, customer_id: str, supplier_id: str) -> int:
    """Number of qualifying orders for the pair, 0 when unknown"""
    return index.get(customer_id, {}).get(supplier_id, 0)


def load_purchase_index(
    fetch_orders: Callable[[], Iterable[Any]],
) -> tuple[PurchaseIndex, bool]:
    """
    Fetch all orders and index them, failing open

    When the order source is unavailable the index is empty, so every
    customer is weighted as a first-time buyer. The second element of the
    returned tuple tells the caller that happened.

    Returns:
        (index, degraded) where degraded is True if the source was unavailable
    """
    try:
        orders = list(fetch_orders())
    except DataSourceUnavailable as e:
        logger.warning(
            "Order history unavailable, weighting all ratings as first-time purchases",
            operation=e.operation,
            reason=e.reason,
        )
        return {}, True

    return compute_purchase_index(orders), False
