"""
Orders Module

Fruit trade orders from placement through on-chain settlement, and the
customer assessments that feed supplier and transporter reputations.
"""

from fruitflow.orders.commands import (
    AssignTransporter,
    PlaceOrder,
    SubmitAssessment,
    UpdateOrderStatus,
    UpdateShipmentStatus,
)
from fruitflow.orders.models import Order, OrderStatus, OrderUnit, ShipmentStatus

__all__ = [
    # Commands
    "AssignTransporter",
    "PlaceOrder",
    "SubmitAssessment",
    "UpdateOrderStatus",
    "UpdateShipmentStatus",
    # Models
    "Order",
    "OrderStatus",
    "OrderUnit",
    "ShipmentStatus",
]
