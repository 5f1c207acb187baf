"""
FruitFlow - Main façade class

This is the primary interface for the FruitFlow marketplace. It wires the
document store, the account and order handlers, and the reputation engine
behind a small high-level API.

Example:
    >>> from fruitflow import FruitFlow
    >>> ff = FruitFlow("marketplace.db")
    >>> ff.signup("alice", "pw", "customer")
    >>> ff.signup("orchard", "pw", "supplier")
    >>> ff.approve_user("orchard", actor_id="nhom1")
    >>> mango = ff.add_product("orchard", "Mango", "Alphonso, tree-ripened", 2.5, unit="kg", stock_quantity=500)
    >>> order = ff.place_order("alice", mango.id, quantity=20)
    >>> ff.recompute_reputation()  # Refresh ratings and suspensions
"""

from pathlib import Path
from typing import Any

from fruitflow.accounts.commands import (
    AddManager,
    ApproveUser,
    Login,
    Signup,
    UpdateProfile,
    UpdateShippingRates,
)
from fruitflow.accounts.handlers import AccountCommandHandlers
from fruitflow.accounts.models import ShippingRates, User, UserRole
from fruitflow.escrow.payout import PayoutResult, simulate_payout
from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.engine import RecomputeResult, ReputationEngine
from fruitflow.kernel.errors import DataSourceUnavailable, IncompleteShippingRates
from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.metrics import track_operation
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.kernel.time import RealTimeProvider, TimeProvider
from fruitflow.logistics.distance import DistanceEstimate, calculate_distance
from fruitflow.logistics.shipping import calculate_tiered_shipping_price
from fruitflow.orders.commands import (
    AssignTransporter,
    PlaceOrder,
    SubmitAssessment,
    UpdateOrderStatus,
    UpdateShipmentStatus,
)
from fruitflow.orders.handlers import OrderCommandHandlers
from fruitflow.orders.models import Order, OrderStatus, ShipmentStatus
from fruitflow.products.commands import AddProduct, DeleteProduct, UpdateProduct
from fruitflow.products.handlers import ProductCommandHandlers
from fruitflow.products.models import Product, ProductUnit

logger = get_logger(__name__)


class FruitFlow:
    """
    FruitFlow marketplace façade

    Provides a unified API for:
    - Accounts (signup, login, approval, profiles, shipping rates)
    - Product catalog (supplier listings, stock)
    - Orders (placement, lifecycle, transporter assignment, assessment)
    - Reputation recompute and auto-suspension
    - Shipping quotes, distance estimates and simulated payouts
    """

    def __init__(
        self,
        sqlite_path: str | Path,
        policy: ReputationPolicy | None = None,
        time_provider: TimeProvider | None = None,
        seed_manager: bool = True,
    ) -> None:
        """
        Initialize FruitFlow

        Args:
            sqlite_path: Path to SQLite database
            policy: Reputation policy (uses defaults if None)
            time_provider: Time provider (uses real time if None)
            seed_manager: Create/repair the default manager account on startup
        """
        self.sqlite_path = Path(sqlite_path)
        self.policy = policy or ReputationPolicy()
        self.time_provider = time_provider or RealTimeProvider()

        self.store = SQLiteDocumentStore(self.sqlite_path)
        self.account_handlers = AccountCommandHandlers(
            self.store, self.time_provider, self.policy
        )
        self.product_handlers = ProductCommandHandlers(self.store, self.time_provider)
        self.order_handlers = OrderCommandHandlers(
            self.store, self.time_provider, self.policy, self.product_handlers
        )
        self.reputation_engine = ReputationEngine(
            self.store, self.time_provider, self.policy
        )
        self.last_recompute: RecomputeResult | None = None

        if seed_manager:
            self.account_handlers.seed_default_manager()

    # Account operations

    def signup(self, username: str, password: str, role: UserRole | str) -> User:
        """
        Create a supplier, transporter or customer account

        Customers are approved immediately; suppliers and transporters wait
        for a manager.
        """
        command = Signup(username=username, password=password, role=UserRole(role))
        return self.account_handlers.handle_signup(command)

    @track_operation("login")
    def login(self, username: str, password: str) -> User:
        """
        Authenticate a user

        Raises:
            InvalidCredentials, AccountSuspended, AccountNotApproved
        """
        return self.account_handlers.handle_login(
            Login(username=username, password=password)
        )

    def approve_user(self, user_id: str, actor_id: str) -> User:
        return self.account_handlers.handle_approve_user(
            ApproveUser(user_id=user_id), actor_id
        )

    def add_manager(self, username: str, password: str, actor_id: str) -> User:
        return self.account_handlers.handle_add_manager(
            AddManager(username=username, password=password), actor_id
        )

    def update_profile(
        self,
        user_id: str,
        actor_id: str,
        address: str | None = None,
        ethereum_address: str | None = None,
    ) -> User:
        command = UpdateProfile(
            user_id=user_id, address=address, ethereum_address=ethereum_address
        )
        return self.account_handlers.handle_update_profile(command, actor_id)

    def update_shipping_rates(
        self,
        user_id: str,
        actor_id: str,
        tier1_flat_price: float,
        tier2_price_per_km: float,
        tier3_price_per_km: float,
    ) -> User:
        rates = ShippingRates(
            tier1_flat_price=tier1_flat_price,
            tier2_price_per_km=tier2_price_per_km,
            tier3_price_per_km=tier3_price_per_km,
        )
        return self.account_handlers.handle_update_shipping_rates(
            UpdateShippingRates(user_id=user_id, rates=rates), actor_id
        )

    def get_user(self, user_id: str) -> User:
        return self.account_handlers.get_user(user_id)

    def list_users(self, role: UserRole | str | None = None) -> list[User]:
        return self.account_handlers.list_users(
            role=UserRole(role) if role is not None else None
        )

    def list_pending_approvals(self) -> list[User]:
        return self.account_handlers.list_pending_approvals()

    def list_available_transporters(self) -> list[User]:
        return self.account_handlers.list_available_transporters()

    # Product catalog operations

    def add_product(
        self,
        supplier_id: str,
        name: str,
        description: str,
        price: float,
        unit: ProductUnit | str = ProductUnit.ITEM,
        stock_quantity: int = 0,
        category: str = "",
        image_url: str = "",
    ) -> Product:
        """List a product as an approved supplier"""
        command = AddProduct(
            name=name,
            description=description,
            price=price,
            unit=ProductUnit(unit),
            stock_quantity=stock_quantity,
            category=category,
            image_url=image_url,
        )
        return self.product_handlers.handle_add_product(command, supplier_id)

    def update_product(self, product_id: str, actor_id: str, **changes: Any) -> Product:
        """
        Edit one's own listing

        Accepts name, description, price, unit, stock_quantity, category
        and image_url; anything not given stays as is.
        """
        command = UpdateProduct(product_id=product_id, **changes)
        return self.product_handlers.handle_update_product(command, actor_id)

    def delete_product(self, product_id: str, actor_id: str) -> None:
        self.product_handlers.handle_delete_product(
            DeleteProduct(product_id=product_id), actor_id
        )

    def get_product(self, product_id: str) -> Product:
        return self.product_handlers.get_product(product_id)

    def list_products(self, supplier_id: str | None = None) -> list[Product]:
        return self.product_handlers.list_products(supplier_id)

    def search_products(self, term: str = "") -> list[Product]:
        """Products from active suppliers whose name or category matches"""
        return self.product_handlers.search_products(term)

    # Order operations

    def place_order(
        self,
        customer_id: str,
        product_id: str,
        quantity: float,
        currency: str = "USD",
        notes: str | None = None,
    ) -> Order:
        """
        Order a catalog product as a customer

        Returns:
            The new order, awaiting supplier confirmation

        Raises:
            InsufficientStock: If quantity exceeds the listing's stock
        """
        command = PlaceOrder(
            product_id=product_id,
            quantity=quantity,
            currency=currency,
            notes=notes,
        )
        return self.order_handlers.handle_place_order(command, customer_id)

    def update_order_status(
        self, order_id: str, status: OrderStatus | str, actor_id: str
    ) -> Order:
        command = UpdateOrderStatus(order_id=order_id, status=OrderStatus(status))
        return self.order_handlers.handle_update_status(command, actor_id)

    def assign_transporter(
        self,
        order_id: str,
        transporter_id: str,
        actor_id: str,
        distance_km: float | None = None,
    ) -> Order:
        command = AssignTransporter(
            order_id=order_id, transporter_id=transporter_id, distance_km=distance_km
        )
        return self.order_handlers.handle_assign_transporter(command, actor_id)

    def update_shipment_status(
        self, order_id: str, shipment_status: ShipmentStatus | str, actor_id: str
    ) -> Order:
        command = UpdateShipmentStatus(
            order_id=order_id, shipment_status=ShipmentStatus(shipment_status)
        )
        return self.order_handlers.handle_update_shipment_status(command, actor_id)

    @track_operation("submit_assessment")
    def submit_assessment(
        self,
        order_id: str,
        actor_id: str,
        supplier_rating: int | float | None = None,
        transporter_rating: int | float | None = None,
        supplier_feedback: str | None = None,
        transporter_feedback: str | None = None,
    ) -> Order:
        """
        Rate a settled order, then recompute reputations

        The recompute outcome is kept on ``last_recompute``; a degraded
        recompute does not undo the stored assessment.
        """
        command = SubmitAssessment(
            order_id=order_id,
            supplier_rating=supplier_rating,
            supplier_feedback=supplier_feedback,
            transporter_rating=transporter_rating,
            transporter_feedback=transporter_feedback,
        )
        order = self.order_handlers.handle_submit_assessment(command, actor_id)
        self.recompute_reputation()
        return order

    def get_order(self, order_id: str) -> Order:
        return self.order_handlers.get_order(order_id)

    def list_orders(
        self,
        customer_id: str | None = None,
        supplier_id: str | None = None,
        transporter_id: str | None = None,
        status: OrderStatus | str | None = None,
    ) -> list[Order]:
        return self.order_handlers.list_orders(
            customer_id=customer_id,
            supplier_id=supplier_id,
            transporter_id=transporter_id,
            status=OrderStatus(status) if status is not None else None,
        )

    # Reputation operations

    @track_operation("recompute_reputation")
    def recompute_reputation(self) -> RecomputeResult:
        """
        Recompute all ratings and apply fresh suspensions

        Returns:
            RecomputeResult; check ``degraded`` for recoverable failures
        """
        self.last_recompute = self.reputation_engine.recompute()
        return self.last_recompute

    def reputation(self, user_id: str) -> dict[str, Any]:
        """Stored reputation fields for one user"""
        user = self.get_user(user_id)
        return {
            "user_id": user.id,
            "role": user.role.value,
            "is_suspended": user.is_suspended,
            "average_supplier_rating": user.average_supplier_rating,
            "supplier_rating_count": user.supplier_rating_count,
            "supplier_weighted_rating_sum": user.supplier_weighted_rating_sum,
            "supplier_total_weights": user.supplier_total_weights,
            "average_transporter_rating": user.average_transporter_rating,
            "transporter_rating_count": user.transporter_rating_count,
        }

    # Logistics & escrow operations

    def quote_shipping(self, transporter_id: str, distance_km: float) -> float:
        """
        Price a route with a transporter's rates

        Raises:
            IncompleteShippingRates: If the transporter's rates are not all set
        """
        transporter = self.get_user(transporter_id)
        price = calculate_tiered_shipping_price(distance_km, transporter.shipping_rates)
        if price is None:
            raise IncompleteShippingRates(transporter.id)
        return price

    def estimate_distance(
        self, origin: str, destination: str, api_key: str | None = None
    ) -> DistanceEstimate:
        return calculate_distance(origin, destination, api_key)

    def simulate_payout(
        self,
        recipient_address: str,
        amount: float,
        currency: str,
        escrow_address: str,
    ) -> PayoutResult:
        return simulate_payout(
            recipient_address,
            amount,
            currency,
            escrow_address,
            now=self.time_provider.now(),
        )

    # Monitoring operations

    def health(self) -> dict[str, Any]:
        """
        Marketplace health summary

        Raises:
            DataSourceUnavailable: If the store cannot be read
        """
        users = self.store.list_documents("users")
        return {
            "users": len(users),
            "orders": self.store.count("orders"),
            "products": self.store.count("products"),
            "suspended_users": sum(1 for u in users if u.get("is_suspended")),
            "pending_approvals": len(self.list_pending_approvals()),
            "last_recompute": self.reputation_engine.last_outcome(),
        }

    def is_store_available(self) -> bool:
        try:
            self.store.count("users")
        except DataSourceUnavailable:
            return False
        return True

    def get_policy(self) -> ReputationPolicy:
        """Get current reputation policy"""
        return self.policy
