"""
Account Invariants

Pure validation functions for the session/role gate and account permissions.

Fun fact: Guild halls checked a trader's seal before letting them into the
market square. Same gate, with fewer wax stains.
"""

from fruitflow.accounts.models import User, UserRole
from fruitflow.kernel.errors import (
    AccountNotApproved,
    AccountSuspended,
    InvalidCredentials,
    PermissionDenied,
)


def validate_signup_role(role: UserRole) -> None:
    """Manager accounts are seeded or created by managers, never signed up"""
    if role == UserRole.MANAGER:
        raise PermissionDenied(None, "sign up as manager")


def validate_password(user: User, password_attempt: str) -> None:
    if user.mock_password != password_attempt:
        raise InvalidCredentials()


def validate_login_allowed(user: User) -> None:
    """
    Role gate applied after the password check

    Suspension blocks every role. Suppliers and transporters also need
    manager approval.
    """
    if user.is_suspended:
        raise AccountSuspended(user.id)
    if user.requires_approval() and not user.is_approved:
        raise AccountNotApproved(user.id, user.role.value)


def validate_is_manager(actor: User | None, action: str) -> None:
    if actor is None or actor.role != UserRole.MANAGER:
        raise PermissionDenied(actor.id if actor else None, action)


def validate_is_self(actor_id: str | None, user_id: str, action: str) -> None:
    if actor_id is None or actor_id != user_id:
        raise PermissionDenied(actor_id, action)


def validate_not_suspended(actor: User, action: str) -> None:
    if actor.is_suspended:
        raise PermissionDenied(actor.id, f"{action} while suspended")


def is_available_transporter(user: User) -> bool:
    """
    Transporter can be assigned to an order

    Approved, not suspended, a complete price list and a wallet for payouts.
    """
    return (
        user.role == UserRole.TRANSPORTER
        and user.is_approved
        and not user.is_suspended
        and user.shipping_rates is not None
        and user.shipping_rates.is_complete()
        and bool(user.ethereum_address)
    )
