"""
Account Domain Models

Marketplace participants: suppliers, transporters, customers and managers.
Reputation fields are maintained by the reputation recompute, never by the
user themselves.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    """
    Marketplace roles

    SUPPLIER and TRANSPORTER need manager approval before they can log in.
    CUSTOMER accounts are active immediately. MANAGER accounts are seeded or
    created by another manager, never through signup.
    """

    SUPPLIER = "supplier"
    TRANSPORTER = "transporter"
    CUSTOMER = "customer"
    MANAGER = "manager"


APPROVAL_REQUIRED_ROLES = frozenset({UserRole.SUPPLIER, UserRole.TRANSPORTER})


class ShippingRates(BaseModel):
    """
    Transporter price list

    tier1 is a flat price for the first 100 km, tier2 and tier3 are per-km
    prices for 101-500 km and beyond 500 km.
    """

    tier1_flat_price: float | None = Field(
        default=None, ge=0, description="Flat price for 0-100 km"
    )
    tier2_price_per_km: float | None = Field(
        default=None, ge=0, description="Price per km for 101-500 km"
    )
    tier3_price_per_km: float | None = Field(
        default=None, ge=0, description="Price per km beyond 500 km"
    )

    def is_complete(self) -> bool:
        return (
            self.tier1_flat_price is not None
            and self.tier2_price_per_km is not None
            and self.tier3_price_per_km is not None
        )


class User(BaseModel):
    """
    A marketplace account

    ``id`` is the lower-cased username, so usernames are unique
    case-insensitively.
    """

    id: str = Field(..., description="Document id (lower-cased username)")
    name: str = Field(..., description="Username as typed at signup")
    role: UserRole
    mock_password: str = Field(..., description="Plaintext mock password")
    is_approved: bool = Field(default=False)
    is_suspended: bool = Field(default=False)
    address: str = Field(default="")
    ethereum_address: str = Field(default="")
    shipping_rates: ShippingRates | None = Field(default=None)
    created_at: datetime | None = Field(default=None)

    # Maintained by the reputation recompute
    supplier_weighted_rating_sum: float = Field(default=0.0)
    supplier_total_weights: float = Field(default=0.0)
    supplier_rating_count: int = Field(default=0, ge=0)
    average_supplier_rating: float | None = Field(default=None)
    transporter_rating_count: int = Field(default=0, ge=0)
    average_transporter_rating: float | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()

    def requires_approval(self) -> bool:
        return self.role in APPROVAL_REQUIRED_ROLES

    def public_view(self) -> dict:
        """Document without the mock password, for display"""
        return self.model_dump(mode="json", exclude={"mock_password"})
