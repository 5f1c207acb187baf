"""
Order Invariants

Pure validation for the order state machine and customer assessments.

Fun fact: Bananas are picked green so they survive the journey. Orders here
can't skip ripening stages either.
"""

from fruitflow.accounts.models import User, UserRole
from fruitflow.kernel.errors import (
    AssessmentNotAllowed,
    InvalidRating,
    InvalidStatusTransition,
    PermissionDenied,
)
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.orders.models import (
    ASSESSABLE_STATUSES,
    Order,
    OrderStatus,
    ShipmentStatus,
)

S = OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    # On-chain flow
    S.AWAITING_SUPPLIER_CONFIRMATION: frozenset(
        {S.AWAITING_ON_CHAIN_CREATION, S.AWAITING_TRANSPORTER_ASSIGNMENT, S.CANCELLED}
    ),
    S.AWAITING_TRANSPORTER_ASSIGNMENT: frozenset(
        {S.AWAITING_ON_CHAIN_CREATION, S.AWAITING_ON_CHAIN_FUNDING, S.CANCELLED}
    ),
    S.AWAITING_ON_CHAIN_CREATION: frozenset({S.AWAITING_ON_CHAIN_FUNDING, S.CANCELLED}),
    S.AWAITING_ON_CHAIN_FUNDING: frozenset({S.FUNDED_ON_CHAIN, S.CANCELLED}),
    S.FUNDED_ON_CHAIN: frozenset({S.COMPLETED_ON_CHAIN, S.DISPUTED_ON_CHAIN}),
    # Legacy off-chain flow
    S.PENDING: frozenset({S.AWAITING_PAYMENT, S.PAID, S.CANCELLED}),
    S.AWAITING_PAYMENT: frozenset({S.PAID, S.CANCELLED}),
    S.PAID: frozenset({S.READY_FOR_PICKUP, S.SHIPPED, S.CANCELLED}),
    S.READY_FOR_PICKUP: frozenset({S.SHIPPED, S.CANCELLED}),
    S.SHIPPED: frozenset({S.DELIVERED}),
    S.DELIVERED: frozenset({S.RECEIPT_CONFIRMED}),
    # Terminal
    S.RECEIPT_CONFIRMED: frozenset(),
    S.COMPLETED_ON_CHAIN: frozenset(),
    S.DISPUTED_ON_CHAIN: frozenset(),
    S.CANCELLED: frozenset(),
}

# Statuses from which the transporter may be (re)assigned
ASSIGNABLE_STATUSES = frozenset(
    {
        S.AWAITING_SUPPLIER_CONFIRMATION,
        S.AWAITING_TRANSPORTER_ASSIGNMENT,
        S.AWAITING_ON_CHAIN_CREATION,
    }
)

# Funded orders need the goods delivered before the customer can settle them
SETTLEMENT_STATUSES = frozenset({S.COMPLETED_ON_CHAIN, S.DISPUTED_ON_CHAIN})


def validate_status_transition(order: Order, requested: OrderStatus) -> None:
    """
    Check the order may move to the requested status

    Raises:
        InvalidStatusTransition: If the move is not in ALLOWED_TRANSITIONS,
            or settles an order whose shipment is not delivered yet
    """
    allowed = ALLOWED_TRANSITIONS.get(order.status, frozenset())
    if requested not in allowed:
        raise InvalidStatusTransition(order.id, order.status.value, requested.value)

    if requested in SETTLEMENT_STATUSES and order.transporter_id:
        if order.shipment_status != ShipmentStatus.DELIVERED:
            raise InvalidStatusTransition(
                order.id,
                f"{order.status.value} (shipment: "
                f"{order.shipment_status.value if order.shipment_status else 'none'})",
                requested.value,
            )


def validate_order_party(order: Order, actor: User, action: str) -> None:
    """Actor must be the order's customer, supplier, transporter, or a manager"""
    if actor.role == UserRole.MANAGER:
        return
    if actor.id not in {order.customer_id, order.supplier_id, order.transporter_id}:
        raise PermissionDenied(actor.id, action)


def validate_is_assigned_transporter(order: Order, actor: User) -> None:
    if order.transporter_id is None or order.transporter_id != actor.id:
        raise PermissionDenied(actor.id, f"update shipment of order {order.id}")


def validate_transporter_assignable(order: Order) -> None:
    if order.status not in ASSIGNABLE_STATUSES:
        raise InvalidStatusTransition(
            order.id, order.status.value, S.AWAITING_ON_CHAIN_FUNDING.value
        )


def validate_rating(
    field: str, value: int | float, policy: ReputationPolicy
) -> int:
    """
    Ratings are whole numbers on the policy's scale

    Returns:
        The rating as an int
    """
    if isinstance(value, bool) or not float(value).is_integer():
        raise InvalidRating(field, value, policy.rating_min, policy.rating_max)
    rating = int(value)
    if rating < policy.rating_min or rating > policy.rating_max:
        raise InvalidRating(field, value, policy.rating_min, policy.rating_max)
    return rating


def validate_assessment_allowed(order: Order, actor: User) -> None:
    """
    Only the order's customer, once, after on-chain settlement

    Raises:
        PermissionDenied: Actor is not the order's customer, or is suspended
        AssessmentNotAllowed: Wrong status, or already assessed
    """
    if actor.id != order.customer_id:
        raise PermissionDenied(actor.id, f"assess order {order.id}")
    if actor.is_suspended:
        raise PermissionDenied(actor.id, f"assess order {order.id} while suspended")
    if order.status not in ASSESSABLE_STATUSES:
        raise AssessmentNotAllowed(
            order.id,
            f"status is '{order.status.value}', expected CompletedOnChain or DisputedOnChain",
        )
    if order.assessment_submitted:
        raise AssessmentNotAllowed(order.id, "assessment already submitted")
