"""
Test Helper Functions - Builders

Builders for order, user and product documents as they sit in the store,
so tests can describe a marketplace in a few lines.

Fun fact: The Builder pattern was formalized by the Gang of Four in 1994.
Here it mostly builds fruit.
"""

from itertools import count
from typing import Any

from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.document_store import SQLiteDocumentStore

_order_ids = count(1)


def make_order(
    customer_id: str | None = "c1",
    supplier_id: str | None = "s1",
    status: str = "CompletedOnChain",
    transporter_id: str | None = None,
    assessment_submitted: bool = False,
    supplier_rating: Any = None,
    transporter_rating: Any = None,
    order_id: str | None = None,
) -> dict[str, Any]:
    """
    Builder for order documents

    Only the fields the reputation pass reads are filled in.
    """
    return {
        "id": order_id or f"o{next(_order_ids)}",
        "customer_id": customer_id,
        "supplier_id": supplier_id,
        "transporter_id": transporter_id,
        "status": status,
        "assessment_submitted": assessment_submitted,
        "supplier_rating": supplier_rating,
        "transporter_rating": transporter_rating,
    }


def make_rated_order(
    customer_id: str = "c1",
    supplier_id: str | None = "s1",
    supplier_rating: Any = None,
    transporter_id: str | None = None,
    transporter_rating: Any = None,
    status: str = "CompletedOnChain",
) -> dict[str, Any]:
    """Builder for an order that carries a submitted assessment"""
    return make_order(
        customer_id=customer_id,
        supplier_id=supplier_id,
        status=status,
        transporter_id=transporter_id,
        assessment_submitted=True,
        supplier_rating=supplier_rating,
        transporter_rating=transporter_rating,
    )


def make_user(
    user_id: str,
    role: str,
    is_suspended: bool = False,
    is_approved: bool = True,
    **extra: Any,
) -> dict[str, Any]:
    """Builder for user documents"""
    return {
        "id": user_id,
        "name": user_id,
        "role": role,
        "mock_password": "pw",
        "is_approved": is_approved,
        "is_suspended": is_suspended,
        **extra,
    }


def make_product(
    product_id: str,
    supplier_id: str,
    name: str = "Kiwi",
    price: float = 1.0,
    stock_quantity: int = 10,
    **extra: Any,
) -> dict[str, Any]:
    """Builder for product documents"""
    return {
        "id": product_id,
        "supplier_id": supplier_id,
        "name": name,
        "description": f"Fresh {name.lower()} by the crate",
        "price": price,
        "unit": "kg",
        "stock_quantity": stock_quantity,
        "category": "",
        "image_url": "",
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
        **extra,
    }


def listing_id(ff: FruitFlow, supplier_id: str = "orchard") -> str:
    """Id of a supplier's most recent listing"""
    return ff.list_products(supplier_id=supplier_id)[0].id


def purchases(
    customer_id: str, supplier_id: str, n: int, status: str = "Paid"
) -> list[dict[str, Any]]:
    """n unrated orders between a customer and supplier"""
    return [make_order(customer_id, supplier_id, status=status) for _ in range(n)]


def seed(store: SQLiteDocumentStore, collection: str, docs: list[dict[str, Any]]) -> None:
    """Write documents straight into the store"""
    for doc in docs:
        store.set(collection, doc["id"], doc)
