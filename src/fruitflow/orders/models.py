"""
Order Domain Models

Orders between a customer and a supplier, optionally carried by a transporter,
plus the post-delivery assessment the customer leaves behind.

Fun fact: The word "invoice" comes from the French "envoy" (something sent).
Our orders mostly get sent through a state machine first.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class OrderStatus(str, Enum):
    """
    Order lifecycle states

    On-chain flow:
    Awaiting Supplier Confirmation → AwaitingOnChainCreation → AwaitingOnChainFunding
        → FundedOnChain → CompletedOnChain | DisputedOnChain

    Legacy off-chain flow:
    Pending → Awaiting Payment → Paid → Shipped → Delivered → Receipt Confirmed

    Cancelled is reachable from any non-terminal state.
    """

    PENDING = "Pending"
    AWAITING_SUPPLIER_CONFIRMATION = "Awaiting Supplier Confirmation"
    AWAITING_TRANSPORTER_ASSIGNMENT = "Awaiting Transporter Assignment"
    AWAITING_PAYMENT = "Awaiting Payment"
    PAID = "Paid"
    READY_FOR_PICKUP = "Ready for Pickup"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    RECEIPT_CONFIRMED = "Receipt Confirmed"
    CANCELLED = "Cancelled"
    AWAITING_ON_CHAIN_CREATION = "AwaitingOnChainCreation"
    AWAITING_ON_CHAIN_FUNDING = "AwaitingOnChainFunding"
    FUNDED_ON_CHAIN = "FundedOnChain"
    COMPLETED_ON_CHAIN = "CompletedOnChain"
    DISPUTED_ON_CHAIN = "DisputedOnChain"


class ShipmentStatus(str, Enum):
    """Transporter-side progress of a shipment"""

    READY_FOR_PICKUP = "Ready for Pickup"
    IN_TRANSIT = "In Transit"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    DELIVERY_FAILED = "Delivery Failed"
    SHIPMENT_CANCELLED = "Shipment Cancelled"


class OrderUnit(str, Enum):
    KG = "kg"
    TON = "ton"
    BOX = "box"
    PALLET = "pallet"
    ITEM = "item"


class Order(BaseModel):
    """
    A fruit trade order

    Ratings are only present once the customer has submitted an assessment.
    """

    id: str = Field(..., description="Order identifier")
    customer_id: str = Field(..., description="Ordering customer")
    supplier_id: str = Field(..., description="Supplying supplier")
    transporter_id: str | None = Field(default=None, description="Assigned transporter")
    product_id: str | None = Field(default=None, description="Catalog listing ordered")
    product_name: str = Field(..., description="Product name when ordered")
    quantity: float = Field(..., gt=0)
    unit: OrderUnit = Field(default=OrderUnit.KG)
    price_per_unit: float = Field(..., ge=0)
    total_amount: float = Field(..., ge=0)
    currency: str = Field(default="USD")
    status: OrderStatus = Field(default=OrderStatus.AWAITING_SUPPLIER_CONFIRMATION)
    shipment_status: ShipmentStatus | None = Field(default=None)
    order_date: datetime = Field(..., description="When the order was placed")
    notes: str | None = Field(default=None)
    pickup_address: str | None = Field(default=None)
    delivery_address: str | None = Field(default=None)
    estimated_transporter_fee: float | None = Field(default=None, ge=0)
    assessment_submitted: bool = Field(default=False)
    supplier_rating: float | None = Field(default=None)
    supplier_feedback: str | None = Field(default=None)
    transporter_rating: float | None = Field(default=None)
    transporter_feedback: str | None = Field(default=None)

    @field_validator("product_name")
    @classmethod
    def validate_product_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Product name cannot be empty")
        return v.strip()

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if len(v) != 3:
            raise ValueError("Currency must be a 3-letter code")
        return v.upper()

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.CANCELLED,
        OrderStatus.COMPLETED_ON_CHAIN,
        OrderStatus.DISPUTED_ON_CHAIN,
        OrderStatus.RECEIPT_CONFIRMED,
    }
)

# Orders in these states may be rated by their customer
ASSESSABLE_STATUSES = frozenset(
    {OrderStatus.COMPLETED_ON_CHAIN, OrderStatus.DISPUTED_ON_CHAIN}
)

# Entering one of these means the customer paid; stock leaves the listing
PAYMENT_STATUSES = frozenset({OrderStatus.FUNDED_ON_CHAIN, OrderStatus.PAID})
