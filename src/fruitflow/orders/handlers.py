"""
Order Command Handlers

Turn order commands into document writes with validation through invariants.
Handlers never recompute reputation themselves; the façade triggers a
recompute after an assessment is stored.
"""

from typing import Any

from fruitflow.accounts.invariants import is_available_transporter, validate_not_suspended
from fruitflow.accounts.models import User, UserRole
from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.errors import (
    AssessmentNotAllowed,
    IncompleteShippingRates,
    InvariantViolation,
    OrderNotFound,
    PermissionDenied,
    UserNotFound,
)
from fruitflow.kernel.ids import generate_id
from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.metrics import update_order_status_gauges
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.kernel.time import TimeProvider
from fruitflow.logistics.shipping import calculate_tiered_shipping_price
from fruitflow.orders import commands, invariants
from fruitflow.orders.models import (
    PAYMENT_STATUSES,
    Order,
    OrderStatus,
    OrderUnit,
    ShipmentStatus,
)
from fruitflow.products.handlers import ProductCommandHandlers
from fruitflow.products.invariants import validate_stock_available, validate_supplier_active

logger = get_logger(__name__)

ORDERS_COLLECTION = "orders"
USERS_COLLECTION = "users"


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class OrderCommandHandlers:
    """
    Command handlers for orders

    Stateless apart from the store: each handler loads what it needs,
    validates, then writes a single document.
    """

    def __init__(
        self,
        store: SQLiteDocumentStore,
        time_provider: TimeProvider,
        policy: ReputationPolicy,
        product_handlers: ProductCommandHandlers | None = None,
    ):
        self.store = store
        self.time_provider = time_provider
        self.policy = policy
        self.products = product_handlers or ProductCommandHandlers(store, time_provider)

    # ========================================================================
    # Queries
    # ========================================================================

    def _load_user(self, user_id: str) -> User:
        doc = self.store.get(USERS_COLLECTION, user_id.lower())
        if doc is None:
            raise UserNotFound(user_id)
        return User.model_validate(doc)

    def get_order(self, order_id: str) -> Order:
        doc = self.store.get(ORDERS_COLLECTION, order_id)
        if doc is None:
            raise OrderNotFound(order_id)
        return Order.model_validate(doc)

    def list_orders(
        self,
        customer_id: str | None = None,
        supplier_id: str | None = None,
        transporter_id: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        """Orders matching every given filter, newest first"""
        filters: dict[str, Any] = {}
        if customer_id is not None:
            filters["customer_id"] = customer_id
        if supplier_id is not None:
            filters["supplier_id"] = supplier_id
        if transporter_id is not None:
            filters["transporter_id"] = transporter_id
        if status is not None:
            filters["status"] = status.value

        orders = [
            Order.model_validate(doc)
            for doc in self.store.query(ORDERS_COLLECTION, **filters)
        ]
        return sorted(orders, key=lambda o: o.order_date, reverse=True)

    def status_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in OrderStatus}
        for doc in self.store.list_documents(ORDERS_COLLECTION):
            status = doc.get("status")
            if status in counts:
                counts[status] += 1
        return counts

    def _write(self, order_id: str, fields: dict[str, Any]) -> Order:
        doc = self.store.update(ORDERS_COLLECTION, order_id, fields)
        if "status" in fields:
            update_order_status_gauges(self.status_counts())
        return Order.model_validate(doc)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def handle_place_order(self, command: commands.PlaceOrder, actor_id: str) -> Order:
        """
        Customer orders a catalog product from an approved supplier

        Stock is checked here but only taken once the order is paid.

        Raises:
            PermissionDenied: Actor is not an active customer
            ProductNotFound: No such listing
            InvariantViolation: Supplier is not an approved, active supplier
            InsufficientStock: Quantity exceeds the listing's stock
        """
        customer = self._load_user(actor_id)
        if customer.role != UserRole.CUSTOMER:
            raise PermissionDenied(customer.id, "place orders as a non-customer")
        validate_not_suspended(customer, "place orders")

        product = self.products.get_product(command.product_id)
        supplier = self._load_user(product.supplier_id)
        validate_supplier_active(supplier)
        validate_stock_available(product, command.quantity)

        order = Order(
            id=generate_id(),
            customer_id=customer.id,
            supplier_id=supplier.id,
            product_id=product.id,
            product_name=product.name,
            quantity=command.quantity,
            unit=OrderUnit(product.unit.value),
            price_per_unit=product.price,
            total_amount=command.quantity * product.price,
            currency=command.currency,
            status=OrderStatus.AWAITING_SUPPLIER_CONFIRMATION,
            order_date=self.time_provider.now(),
            notes=_clean_text(command.notes),
            pickup_address=supplier.address or None,
            delivery_address=customer.address or None,
        )
        self.store.create(ORDERS_COLLECTION, order.id, order.model_dump(mode="json"))
        update_order_status_gauges(self.status_counts())

        logger.info(
            "Order placed",
            order_id=order.id,
            customer_id=customer.id,
            supplier_id=supplier.id,
            total_amount=order.total_amount,
        )
        return order

    def handle_update_status(
        self, command: commands.UpdateOrderStatus, actor_id: str
    ) -> Order:
        """
        Move an order along its lifecycle

        Paying (FundedOnChain, or Paid off-chain) takes the ordered quantity
        out of the product's stock.
        """
        actor = self._load_user(actor_id)
        order = self.get_order(command.order_id)
        invariants.validate_order_party(order, actor, f"update order {order.id}")
        validate_not_suspended(actor, "update orders")
        invariants.validate_status_transition(order, command.status)

        updated = self._write(order.id, {"status": command.status.value})
        if command.status in PAYMENT_STATUSES and order.product_id:
            self.products.consume_stock(order.product_id, order.quantity)
        logger.info(
            "Order status changed",
            order_id=order.id,
            from_status=order.status.value,
            to_status=command.status.value,
            actor_id=actor.id,
        )
        return updated

    def handle_assign_transporter(
        self, command: commands.AssignTransporter, actor_id: str
    ) -> Order:
        """
        Supplier picks a transporter; the order then awaits on-chain funding

        Raises:
            IncompleteShippingRates: Transporter has not priced all tiers
            InvariantViolation: Transporter is not available for assignment
        """
        actor = self._load_user(actor_id)
        order = self.get_order(command.order_id)
        if actor.role != UserRole.MANAGER and actor.id != order.supplier_id:
            raise PermissionDenied(actor.id, f"assign a transporter to order {order.id}")
        validate_not_suspended(actor, "assign transporters")
        invariants.validate_transporter_assignable(order)

        transporter = self._load_user(command.transporter_id)
        if transporter.role != UserRole.TRANSPORTER:
            raise InvariantViolation(f"User {transporter.id} is not a transporter")
        if transporter.shipping_rates is None or not transporter.shipping_rates.is_complete():
            raise IncompleteShippingRates(transporter.id)
        if not is_available_transporter(transporter):
            raise InvariantViolation(
                f"Transporter {transporter.id} is not available for assignment"
            )

        fee = None
        if command.distance_km is not None:
            fee = calculate_tiered_shipping_price(
                command.distance_km, transporter.shipping_rates
            )

        fields: dict[str, Any] = {
            "transporter_id": transporter.id,
            "status": OrderStatus.AWAITING_ON_CHAIN_FUNDING.value,
            "shipment_status": ShipmentStatus.READY_FOR_PICKUP.value,
            "estimated_transporter_fee": fee,
        }
        supplier = self._load_user(order.supplier_id)
        customer = self._load_user(order.customer_id)
        fields["pickup_address"] = supplier.address or None
        fields["delivery_address"] = customer.address or None

        updated = self._write(order.id, fields)
        logger.info(
            "Transporter assigned",
            order_id=order.id,
            transporter_id=transporter.id,
            estimated_transporter_fee=fee,
        )
        return updated

    def handle_update_shipment_status(
        self, command: commands.UpdateShipmentStatus, actor_id: str
    ) -> Order:
        """Assigned transporter reports shipment progress"""
        actor = self._load_user(actor_id)
        order = self.get_order(command.order_id)
        invariants.validate_is_assigned_transporter(order, actor)
        validate_not_suspended(actor, "update shipments")
        if order.is_terminal():
            raise InvariantViolation(
                f"Order {order.id} is {order.status.value}; shipment can no longer change"
            )

        updated = self._write(
            order.id, {"shipment_status": command.shipment_status.value}
        )
        logger.info(
            "Shipment status changed",
            order_id=order.id,
            shipment_status=command.shipment_status.value,
        )
        return updated

    # ========================================================================
    # Assessment
    # ========================================================================

    def handle_submit_assessment(
        self, command: commands.SubmitAssessment, actor_id: str
    ) -> Order:
        """
        Customer rates the supplier and, when one was assigned, the transporter

        Raises:
            PermissionDenied: Actor is not the order's customer
            AssessmentNotAllowed: Order not settled, already assessed, or a
                transporter rating was given for an order without transporter
            InvalidRating: Rating not a whole number on the policy scale
        """
        actor = self._load_user(actor_id)
        order = self.get_order(command.order_id)
        invariants.validate_assessment_allowed(order, actor)

        if command.transporter_rating is not None and not order.transporter_id:
            raise AssessmentNotAllowed(order.id, "order has no transporter to rate")

        fields: dict[str, Any] = {
            "assessment_submitted": True,
            "supplier_feedback": _clean_text(command.supplier_feedback),
        }
        if command.supplier_rating is not None:
            fields["supplier_rating"] = invariants.validate_rating(
                "supplier_rating", command.supplier_rating, self.policy
            )
        if order.transporter_id:
            if command.transporter_rating is not None:
                fields["transporter_rating"] = invariants.validate_rating(
                    "transporter_rating", command.transporter_rating, self.policy
                )
            fields["transporter_feedback"] = _clean_text(command.transporter_feedback)

        updated = self._write(order.id, fields)
        logger.info(
            "Assessment submitted",
            order_id=order.id,
            supplier_id=order.supplier_id,
            transporter_id=order.transporter_id,
            supplier_rating=fields.get("supplier_rating"),
            transporter_rating=fields.get("transporter_rating"),
        )
        return updated
