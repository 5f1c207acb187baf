"""
Product Invariants

Who may touch a listing, and whether an order fits the stock on hand.
"""

from fruitflow.accounts.models import User, UserRole
from fruitflow.kernel.errors import InsufficientStock, InvariantViolation, PermissionDenied
from fruitflow.products.models import Product


def validate_can_list_products(actor: User) -> None:
    """Only approved suppliers that are not suspended manage listings"""
    if actor.role != UserRole.SUPPLIER:
        raise PermissionDenied(actor.id, "manage product listings as a non-supplier")
    if not actor.is_approved:
        raise PermissionDenied(actor.id, "manage product listings before approval")
    if actor.is_suspended:
        raise PermissionDenied(actor.id, "manage product listings while suspended")


def validate_product_owner(product: Product, actor: User) -> None:
    if product.supplier_id != actor.id:
        raise PermissionDenied(actor.id, f"change product {product.id} of another supplier")


def validate_supplier_active(supplier: User) -> None:
    if (
        supplier.role != UserRole.SUPPLIER
        or not supplier.is_approved
        or supplier.is_suspended
    ):
        raise InvariantViolation(f"User {supplier.id} is not an approved, active supplier")


def validate_stock_available(product: Product, quantity: float) -> None:
    if quantity > product.stock_quantity:
        raise InsufficientStock(
            product.id, quantity, product.stock_quantity, product.unit.value
        )
