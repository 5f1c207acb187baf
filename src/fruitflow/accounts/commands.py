"""
Account Commands

Commands express intentions to create or modify accounts.
Validation of who may do what happens in handlers via invariants.
"""

from pydantic import BaseModel, Field, field_validator

from fruitflow.accounts.models import ShippingRates, UserRole


class _Credentials(BaseModel):
    username: str = Field(..., description="Username (case-insensitive)")
    password: str = Field(..., description="Mock password")

    @field_validator("username", "password")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Username and password are required")
        return v.strip()


class Signup(_Credentials):
    """
    Create a new account

    Customers are active at once; suppliers and transporters wait for a
    manager. Manager accounts cannot be created this way.
    """

    role: UserRole


class Login(_Credentials):
    """Authenticate with username and mock password"""

    pass


class AddManager(_Credentials):
    """Create a new manager account (managers only)"""

    pass


class ApproveUser(BaseModel):
    user_id: str = Field(..., description="Supplier or transporter to approve")


class UpdateProfile(BaseModel):
    """Update one's own address and wallet; omitted fields stay unchanged"""

    user_id: str
    address: str | None = None
    ethereum_address: str | None = None


class UpdateShippingRates(BaseModel):
    """Replace a transporter's own price list"""

    user_id: str
    rates: ShippingRates
