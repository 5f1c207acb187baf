"""
Account Command Handlers

Turn account commands into document writes, validating through invariants
first.

Fun fact: "Bona fide" buyers at Venetian fruit auctions had to be vouched for
by an existing merchant. Our managers do the vouching now.
"""

from typing import Any

from fruitflow.accounts import commands, invariants
from fruitflow.accounts.models import ShippingRates, User, UserRole
from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.errors import (
    AccountError,
    AccountNotApproved,
    AccountSuspended,
    DocumentAlreadyExists,
    InvalidCredentials,
    PermissionDenied,
    UsernameTaken,
    UserNotFound,
)
from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.metrics import logins_total
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.kernel.time import TimeProvider

logger = get_logger(__name__)

USERS_COLLECTION = "users"

NEW_MANAGER_ADDRESS = "1 Admin Way, Suite M, Management City"


def _user_from_doc(doc: dict[str, Any]) -> User:
    return User.model_validate(doc)


def _user_to_doc(user: User) -> dict[str, Any]:
    return user.model_dump(mode="json")


class AccountCommandHandlers:
    """
    Command handlers for accounts

    Handlers read and write the users collection directly. Each write is a
    single document operation.
    """

    def __init__(
        self,
        store: SQLiteDocumentStore,
        time_provider: TimeProvider,
        policy: ReputationPolicy,
    ):
        """
        Initialize handlers

        Args:
            store: Document store holding the users collection
            time_provider: Source of current time
            policy: Marketplace policy (default manager credentials)
        """
        self.store = store
        self.time_provider = time_provider
        self.policy = policy

    # ========================================================================
    # Queries
    # ========================================================================

    def get_user(self, user_id: str) -> User:
        doc = self.store.get(USERS_COLLECTION, user_id.lower())
        if doc is None:
            raise UserNotFound(user_id)
        return _user_from_doc(doc)

    def find_user(self, username: str) -> User | None:
        """Find by document id first, then by case-insensitive name"""
        key = username.strip().lower()
        doc = self.store.get(USERS_COLLECTION, key)
        if doc is not None:
            return _user_from_doc(doc)
        for candidate in self.store.list_documents(USERS_COLLECTION):
            if str(candidate.get("name", "")).lower() == key:
                return _user_from_doc(candidate)
        return None

    def list_users(
        self,
        role: UserRole | None = None,
        approved: bool | None = None,
    ) -> list[User]:
        users = [_user_from_doc(doc) for doc in self.store.list_documents(USERS_COLLECTION)]
        if role is not None:
            users = [u for u in users if u.role == role]
        if approved is not None:
            users = [u for u in users if u.is_approved == approved]
        return users

    def list_pending_approvals(self) -> list[User]:
        """Suppliers and transporters waiting for a manager"""
        return [
            u for u in self.list_users(approved=False) if u.requires_approval()
        ]

    def list_available_transporters(self) -> list[User]:
        return [
            u
            for u in self.list_users(role=UserRole.TRANSPORTER)
            if invariants.is_available_transporter(u)
        ]

    # ========================================================================
    # Seeding
    # ========================================================================

    def seed_default_manager(self) -> User:
        """
        Create the default manager, or repair its credentials

        Idempotent: an intact manager document is left alone.
        """
        policy = self.policy
        doc_id = policy.default_manager_username.lower()
        existing = self.store.get(USERS_COLLECTION, doc_id)

        if existing is None:
            manager = User(
                id=doc_id,
                name=policy.default_manager_username,
                role=UserRole.MANAGER,
                mock_password=policy.default_manager_password,
                is_approved=True,
                is_suspended=False,
                address=policy.default_manager_address,
                ethereum_address=policy.default_manager_ethereum_address,
                created_at=self.time_provider.now(),
            )
            self.store.set(USERS_COLLECTION, doc_id, _user_to_doc(manager))
            logger.info("Default manager seeded", user_id=doc_id)
            return manager

        updates: dict[str, Any] = {}
        if existing.get("mock_password") != policy.default_manager_password:
            updates["mock_password"] = policy.default_manager_password
        if not existing.get("address"):
            updates["address"] = policy.default_manager_address
        if not existing.get("ethereum_address"):
            updates["ethereum_address"] = policy.default_manager_ethereum_address
        if existing.get("is_suspended") is None:
            updates["is_suspended"] = False

        if updates:
            existing = self.store.update(USERS_COLLECTION, doc_id, updates)
            logger.info(
                "Default manager repaired",
                user_id=doc_id,
                fields=sorted(updates),
            )
        return _user_from_doc(existing)

    # ========================================================================
    # Signup & Login
    # ========================================================================

    def handle_signup(self, command: commands.Signup) -> User:
        """
        Register a new supplier, transporter or customer

        Raises:
            PermissionDenied: If the role is manager
            UsernameTaken: If the lower-cased username is already in use
        """
        invariants.validate_signup_role(command.role)

        doc_id = command.username.lower()
        user = User(
            id=doc_id,
            name=command.username,
            role=command.role,
            mock_password=command.password,
            is_approved=command.role == UserRole.CUSTOMER,
            is_suspended=False,
            shipping_rates=(
                ShippingRates(
                    tier1_flat_price=0.0,
                    tier2_price_per_km=0.0,
                    tier3_price_per_km=0.0,
                )
                if command.role == UserRole.TRANSPORTER
                else None
            ),
            created_at=self.time_provider.now(),
        )

        try:
            self.store.create(USERS_COLLECTION, doc_id, _user_to_doc(user))
        except DocumentAlreadyExists as e:
            raise UsernameTaken(command.username) from e

        logger.info(
            "User signed up",
            user_id=doc_id,
            role=command.role.value,
            awaiting_approval=not user.is_approved,
        )
        return user

    def handle_login(self, command: commands.Login) -> User:
        """
        Authenticate and apply the role gate

        Returns:
            The stored user, including the latest reputation fields

        Raises:
            InvalidCredentials: Unknown username or wrong password
            AccountSuspended: User is suspended
            AccountNotApproved: Supplier/transporter awaiting approval
        """
        user = self.find_user(command.username)
        try:
            if user is None:
                raise InvalidCredentials()
            invariants.validate_password(user, command.password)
            invariants.validate_login_allowed(user)
        except AccountError as e:
            if isinstance(e, AccountSuspended):
                outcome = "suspended"
            elif isinstance(e, AccountNotApproved):
                outcome = "not_approved"
            else:
                outcome = "invalid"
            logins_total.labels(outcome=outcome).inc()
            logger.info("Login refused", username=command.username, outcome=outcome)
            raise

        logins_total.labels(outcome="success").inc()
        logger.info("Login succeeded", user_id=user.id, role=user.role.value)
        return user

    # ========================================================================
    # Manager actions
    # ========================================================================

    def handle_approve_user(self, command: commands.ApproveUser, actor_id: str) -> User:
        actor = self.get_user(actor_id)
        invariants.validate_is_manager(actor, "approve users")

        target = self.get_user(command.user_id)
        doc = self.store.update(USERS_COLLECTION, target.id, {"is_approved": True})
        logger.info("User approved", user_id=target.id, approved_by=actor.id)
        return _user_from_doc(doc)

    def handle_add_manager(self, command: commands.AddManager, actor_id: str) -> User:
        actor = self.get_user(actor_id)
        invariants.validate_is_manager(actor, "create manager accounts")

        now = self.time_provider.now()
        doc_id = command.username.lower()
        manager = User(
            id=doc_id,
            name=command.username,
            role=UserRole.MANAGER,
            mock_password=command.password,
            is_approved=True,
            is_suspended=False,
            address=NEW_MANAGER_ADDRESS,
            ethereum_address=f"0xNewManager{int(now.timestamp() * 1000):x}",
            created_at=now,
        )

        try:
            self.store.create(USERS_COLLECTION, doc_id, _user_to_doc(manager))
        except DocumentAlreadyExists as e:
            raise UsernameTaken(command.username) from e

        logger.info("Manager created", user_id=doc_id, created_by=actor.id)
        return manager

    # ========================================================================
    # Self-service
    # ========================================================================

    def handle_update_profile(self, command: commands.UpdateProfile, actor_id: str) -> User:
        """
        Update one's own address and/or wallet address

        Values are trimmed. When neither field is given nothing is written.
        """
        invariants.validate_is_self(actor_id, command.user_id, "update another user's profile")
        user = self.get_user(command.user_id)

        updates: dict[str, Any] = {}
        if command.address is not None:
            updates["address"] = command.address.strip()
        if command.ethereum_address is not None:
            updates["ethereum_address"] = command.ethereum_address.strip()
        if not updates:
            return user

        doc = self.store.update(USERS_COLLECTION, user.id, updates)
        logger.info("Profile updated", user_id=user.id, fields=sorted(updates))
        return _user_from_doc(doc)

    def handle_update_shipping_rates(
        self, command: commands.UpdateShippingRates, actor_id: str
    ) -> User:
        """Replace a transporter's own shipping rates"""
        invariants.validate_is_self(actor_id, command.user_id, "update another user's rates")
        user = self.get_user(command.user_id)
        if user.role != UserRole.TRANSPORTER:
            raise PermissionDenied(actor_id, "set shipping rates as a non-transporter")

        doc = self.store.update(
            USERS_COLLECTION,
            user.id,
            {"shipping_rates": command.rates.model_dump(mode="json")},
        )
        logger.info("Shipping rates updated", user_id=user.id)
        return _user_from_doc(doc)
