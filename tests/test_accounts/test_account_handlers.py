"""
Tests for account handlers: signup, login gate, approval and self-service

Fun fact: The default manager "Nhom1" is Vietnamese for "Group 1", the team
that first ran this marketplace.
"""

import pytest
from pydantic import ValidationError

from fruitflow.accounts.commands import Login
from fruitflow.accounts.models import UserRole
from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.errors import (
    AccountNotApproved,
    AccountSuspended,
    InvalidCredentials,
    PermissionDenied,
    UsernameTaken,
    UserNotFound,
)


# =============================================================================
# Seeding
# =============================================================================


def test_default_manager_is_seeded(ff: FruitFlow) -> None:
    manager = ff.get_user("nhom1")

    assert manager.role == UserRole.MANAGER
    assert manager.name == "Nhom1"
    assert manager.is_approved
    assert manager.ethereum_address == "0xManagerEthAddressPlaceholder"


def test_seeding_repairs_manager_credentials(ff: FruitFlow) -> None:
    ff.store.update("users", "nhom1", {"mock_password": "changed", "address": ""})

    ff.account_handlers.seed_default_manager()

    manager = ff.get_user("nhom1")
    assert manager.mock_password == "123"
    assert manager.address == "1 Management Plaza, Admin City, AC 10001"


def test_seeding_is_idempotent(ff: FruitFlow) -> None:
    before = ff.store.get("users", "nhom1")

    ff.account_handlers.seed_default_manager()

    assert ff.store.get("users", "nhom1") == before


# =============================================================================
# Signup
# =============================================================================


def test_customer_signup_is_active_immediately(ff: FruitFlow) -> None:
    user = ff.signup("Alice", "pw", "customer")

    assert user.id == "alice"
    assert user.name == "Alice"
    assert user.is_approved
    assert not user.is_suspended


def test_supplier_signup_awaits_approval(ff: FruitFlow) -> None:
    user = ff.signup("orchard", "pw", "supplier")

    assert not user.is_approved
    assert [u.id for u in ff.list_pending_approvals()] == ["orchard"]


def test_transporter_starts_with_zero_rates(ff: FruitFlow) -> None:
    user = ff.signup("truckco", "pw", "transporter")

    assert user.shipping_rates is not None
    assert user.shipping_rates.tier1_flat_price == 0.0
    assert user.shipping_rates.is_complete()


def test_manager_signup_refused(ff: FruitFlow) -> None:
    with pytest.raises(PermissionDenied):
        ff.signup("boss", "pw", "manager")


def test_username_unique_case_insensitively(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    with pytest.raises(UsernameTaken):
        ff.signup("ALICE", "other", "supplier")


def test_blank_credentials_rejected(ff: FruitFlow) -> None:
    with pytest.raises(ValidationError):
        ff.signup("   ", "pw", "customer")


def test_unknown_role_rejected(ff: FruitFlow) -> None:
    with pytest.raises(ValueError):
        ff.signup("alice", "pw", "farmer")


# =============================================================================
# Login gate
# =============================================================================


def test_login_success(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    assert ff.login("alice", "pw").id == "alice"


def test_login_by_name_ignores_case(ff: FruitFlow) -> None:
    assert ff.login("NHOM1", "123").role == UserRole.MANAGER


def test_login_wrong_password(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    with pytest.raises(InvalidCredentials):
        ff.login("alice", "wrong")


def test_login_unknown_user(ff: FruitFlow) -> None:
    with pytest.raises(InvalidCredentials):
        ff.login("ghost", "pw")


@pytest.mark.parametrize("role", ["supplier", "transporter"])
def test_unapproved_roles_cannot_log_in(ff: FruitFlow, role: str) -> None:
    ff.signup("pending", "pw", role)

    with pytest.raises(AccountNotApproved):
        ff.login("pending", "pw")

    ff.approve_user("pending", actor_id="nhom1")
    assert ff.login("pending", "pw").is_approved


@pytest.mark.parametrize("role", ["supplier", "transporter", "customer"])
def test_suspended_users_cannot_log_in(ff: FruitFlow, role: str) -> None:
    ff.signup("someone", "pw", role)
    ff.store.update("users", "someone", {"is_approved": True, "is_suspended": True})

    with pytest.raises(AccountSuspended):
        ff.login("someone", "pw")


def test_suspension_checked_before_approval(ff: FruitFlow) -> None:
    ff.signup("orchard", "pw", "supplier")
    ff.store.update("users", "orchard", {"is_suspended": True})

    with pytest.raises(AccountSuspended):
        ff.account_handlers.handle_login(Login(username="orchard", password="pw"))


def test_login_returns_latest_reputation(ff: FruitFlow) -> None:
    ff.signup("orchard", "pw", "supplier")
    ff.approve_user("orchard", actor_id="nhom1")
    ff.store.update("users", "orchard", {"average_supplier_rating": 4.2, "supplier_rating_count": 3})

    user = ff.login("orchard", "pw")

    assert user.average_supplier_rating == 4.2
    assert user.supplier_rating_count == 3


# =============================================================================
# Manager actions
# =============================================================================


def test_only_managers_approve(ff: FruitFlow) -> None:
    ff.signup("orchard", "pw", "supplier")
    ff.signup("alice", "pw", "customer")

    with pytest.raises(PermissionDenied):
        ff.approve_user("orchard", actor_id="alice")


def test_approve_unknown_user(ff: FruitFlow) -> None:
    with pytest.raises(UserNotFound):
        ff.approve_user("ghost", actor_id="nhom1")


def test_add_manager(ff: FruitFlow) -> None:
    manager = ff.add_manager("Deputy", "pw", actor_id="nhom1")

    assert manager.role == UserRole.MANAGER
    assert manager.is_approved
    assert manager.ethereum_address.startswith("0xNewManager")
    assert ff.login("deputy", "pw").id == "deputy"


def test_add_manager_requires_manager(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    with pytest.raises(PermissionDenied):
        ff.add_manager("sneaky", "pw", actor_id="alice")


def test_add_manager_username_taken(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    with pytest.raises(UsernameTaken):
        ff.add_manager("alice", "pw", actor_id="nhom1")


# =============================================================================
# Self-service
# =============================================================================


def test_update_own_profile_trims_values(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    user = ff.update_profile("alice", actor_id="alice", address="  4 Market St  ", ethereum_address=" 0xA ")

    assert user.address == "4 Market St"
    assert user.ethereum_address == "0xA"


def test_update_profile_without_fields_writes_nothing(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")
    before = ff.store.get("users", "alice")

    ff.update_profile("alice", actor_id="alice")

    assert ff.store.get("users", "alice") == before


def test_cannot_update_someone_elses_profile(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")
    ff.signup("bob", "pw", "customer")

    with pytest.raises(PermissionDenied):
        ff.update_profile("alice", actor_id="bob", address="Somewhere")


def test_transporter_updates_own_rates(ff: FruitFlow) -> None:
    ff.signup("truckco", "pw", "transporter")

    user = ff.update_shipping_rates("truckco", "truckco", 50.0, 1.2, 0.8)

    assert user.shipping_rates.tier2_price_per_km == 1.2


def test_only_transporters_have_rates(ff: FruitFlow) -> None:
    ff.signup("alice", "pw", "customer")

    with pytest.raises(PermissionDenied):
        ff.update_shipping_rates("alice", "alice", 1.0, 1.0, 1.0)


def test_negative_rates_rejected(ff: FruitFlow) -> None:
    ff.signup("truckco", "pw", "transporter")

    with pytest.raises(ValidationError):
        ff.update_shipping_rates("truckco", "truckco", -1.0, 1.0, 1.0)


def test_available_transporters(marketplace: FruitFlow) -> None:
    marketplace.signup("slowco", "pw", "transporter")  # unapproved, no wallet

    assert [u.id for u in marketplace.list_available_transporters()] == ["truckco"]


def test_list_users_by_role(marketplace: FruitFlow) -> None:
    assert [u.id for u in marketplace.list_users(role="supplier")] == ["orchard"]
    assert len(marketplace.list_users()) == 4


def test_public_view_hides_password(marketplace: FruitFlow) -> None:
    view = marketplace.get_user("alice").public_view()

    assert "mock_password" not in view
    assert view["role"] == "customer"
