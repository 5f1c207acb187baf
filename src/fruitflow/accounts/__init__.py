"""
Accounts Module

Signup, login, approval and self-service profile management for suppliers,
transporters, customers and managers.

Fun fact: The oldest surviving merchant register, from 13th-century Genoa,
lists fruit sellers by name and guarantor. Usernames came later.
"""

from fruitflow.accounts.commands import (
    AddManager,
    ApproveUser,
    Login,
    Signup,
    UpdateProfile,
    UpdateShippingRates,
)
from fruitflow.accounts.models import ShippingRates, User, UserRole

__all__ = [
    # Commands
    "AddManager",
    "ApproveUser",
    "Login",
    "Signup",
    "UpdateProfile",
    "UpdateShippingRates",
    # Models
    "ShippingRates",
    "User",
    "UserRole",
]
