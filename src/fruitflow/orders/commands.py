"""
Order Commands

Commands express intentions to create or move orders through their lifecycle.
"""

from pydantic import BaseModel, Field

from fruitflow.orders.models import OrderStatus, ShipmentStatus


class PlaceOrder(BaseModel):
    """
    Customer orders a quantity of a supplier's catalog product

    Supplier, name, unit and price come from the listing; the total is
    quantity × price. New orders wait for the supplier.
    """

    product_id: str = Field(..., description="Catalog product to order")
    quantity: float = Field(..., gt=0)
    currency: str = Field(default="USD")
    notes: str | None = Field(default=None)


class UpdateOrderStatus(BaseModel):
    order_id: str
    status: OrderStatus


class AssignTransporter(BaseModel):
    """
    Supplier assigns a transporter and the order moves to on-chain funding

    ``distance_km`` prices the shipment from the transporter's rates when given.
    """

    order_id: str
    transporter_id: str
    distance_km: float | None = Field(default=None, ge=0)


class UpdateShipmentStatus(BaseModel):
    order_id: str
    shipment_status: ShipmentStatus


class SubmitAssessment(BaseModel):
    """
    Customer rates a finished order

    Ratings arrive as given by the caller; the handler checks the scale.
    """

    order_id: str
    supplier_rating: int | float | None = None
    supplier_feedback: str | None = None
    transporter_rating: int | float | None = None
    transporter_feedback: str | None = None
