"""
Custom exceptions for FruitFlow

Well-defined error hierarchy enables precise error handling and
clear error messages for operators and the CLI.

Fun fact: The first recorded fruit trade dispute on file is a Babylonian clay
tablet complaining about a shipment of dates. We raise exceptions instead.
"""


class FruitFlowError(Exception):
    """Base exception for all FruitFlow errors"""

    pass


class DocumentStoreError(FruitFlowError):
    """Base class for document store errors"""

    pass


class DataSourceUnavailable(DocumentStoreError):
    """
    Raised when the document store cannot be read or written

    Recoverable: callers surface it to an operator and carry on with the
    best data they have instead of exiting.
    """

    def __init__(self, operation: str, reason: str = "") -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Document store unavailable during {operation}"
            + (f": {reason}" if reason else "")
        )


class DocumentNotFound(DocumentStoreError):
    """Raised when a document update targets a missing document"""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document {collection}/{doc_id} not found")


class DocumentAlreadyExists(DocumentStoreError):
    """Raised when creating a document whose id is already taken"""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document {collection}/{doc_id} already exists")


class InvariantViolation(FruitFlowError):
    """
    Raised when a marketplace rule would be violated

    Examples: rating outside 1-5, assessing an order twice,
    an order moving backwards in its lifecycle.
    """

    pass


# Account Errors


class AccountError(FruitFlowError):
    """Base class for account and session errors"""

    pass


class UserNotFound(AccountError):
    """Raised when a user does not exist"""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class UsernameTaken(AccountError):
    """Raised when signing up with a username that already exists"""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username {username} already taken")


class InvalidCredentials(AccountError):
    """Raised on unknown username or wrong password"""

    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class AccountSuspended(AccountError):
    """Raised when a suspended user tries to log in"""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(
            f"Account {user_id} has been suspended due to low ratings. "
            "Please contact support."
        )


class AccountNotApproved(AccountError):
    """Raised when a supplier or transporter logs in before manager approval"""

    def __init__(self, user_id: str, role: str) -> None:
        self.user_id = user_id
        self.role = role
        super().__init__(f"Account {user_id} as a {role} is awaiting manager approval")


class PermissionDenied(AccountError):
    """Raised when an actor may not perform an action"""

    def __init__(self, actor_id: str | None, action: str) -> None:
        self.actor_id = actor_id
        self.action = action
        super().__init__(f"Actor {actor_id} is not allowed to {action}")


# Order Errors


class OrderError(FruitFlowError):
    """Base class for order errors"""

    pass


class OrderNotFound(OrderError):
    """Raised when an order does not exist"""

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class InvalidStatusTransition(InvariantViolation):
    """Raised when an order status change is not allowed"""

    def __init__(self, order_id: str, current: str, requested: str) -> None:
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Order {order_id} cannot move from '{current}' to '{requested}'"
        )


class AssessmentNotAllowed(InvariantViolation):
    """Raised when an order cannot be assessed in its current state"""

    def __init__(self, order_id: str, reason: str) -> None:
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"Order {order_id} cannot be assessed: {reason}")


class InvalidRating(InvariantViolation):
    """Raised when a submitted rating is outside the allowed scale"""

    def __init__(self, field: str, value: object, low: int, high: int) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field} must be an integer between {low} and {high}, got {value!r}")


# Product Catalog Errors


class ProductError(FruitFlowError):
    """Base class for product catalog errors"""

    pass


class ProductNotFound(ProductError):
    """Raised when a product does not exist"""

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(InvariantViolation):
    """Raised when an order asks for more than the supplier has in stock"""

    def __init__(self, product_id: str, requested: float, available: int, unit: str) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for product {product_id}: "
            f"requested {requested:g}, available {available} {unit}"
        )


# Logistics & Escrow Errors


class LogisticsError(FruitFlowError):
    """Base class for shipping and distance errors"""

    pass


class IncompleteShippingRates(LogisticsError):
    """Raised when a transporter has not set all three rate tiers"""

    def __init__(self, transporter_id: str) -> None:
        self.transporter_id = transporter_id
        super().__init__(f"Transporter {transporter_id} has incomplete shipping rates")


class PayoutError(FruitFlowError):
    """Raised when a simulated escrow payout request is invalid"""

    pass
