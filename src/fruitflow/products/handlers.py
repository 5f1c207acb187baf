"""
Product Command Handlers

Listings are plain documents in the ``products`` collection. Stock only
goes down when an order is paid, through ``consume_stock``, which reads and
writes the listing under one store lock.
"""

import math

from fruitflow.accounts.models import User, UserRole
from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.errors import DocumentNotFound, ProductNotFound, UserNotFound
from fruitflow.kernel.ids import generate_id
from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.time import TimeProvider
from fruitflow.products import commands, invariants
from fruitflow.products.models import Product

logger = get_logger(__name__)

PRODUCTS_COLLECTION = "products"
USERS_COLLECTION = "users"


class ProductCommandHandlers:
    def __init__(self, store: SQLiteDocumentStore, time_provider: TimeProvider):
        self.store = store
        self.time_provider = time_provider

    # ========================================================================
    # Queries
    # ========================================================================

    def _load_user(self, user_id: str) -> User:
        doc = self.store.get(USERS_COLLECTION, user_id.lower())
        if doc is None:
            raise UserNotFound(user_id)
        return User.model_validate(doc)

    def get_product(self, product_id: str) -> Product:
        doc = self.store.get(PRODUCTS_COLLECTION, product_id)
        if doc is None:
            raise ProductNotFound(product_id)
        return Product.model_validate(doc)

    def list_products(self, supplier_id: str | None = None) -> list[Product]:
        """A supplier's listings (or all of them), newest first"""
        docs = (
            self.store.query(PRODUCTS_COLLECTION, supplier_id=supplier_id.lower())
            if supplier_id is not None
            else self.store.list_documents(PRODUCTS_COLLECTION)
        )
        products = [Product.model_validate(doc) for doc in docs]
        return sorted(products, key=lambda p: p.created_at, reverse=True)

    def search_products(self, term: str = "") -> list[Product]:
        """
        Catalog as customers see it

        Only listings of approved, unsuspended suppliers are shown, grouped
        by supplier name and then sorted by product name. A search term
        matches the product name or category.
        """
        suppliers = {
            doc["id"]: doc
            for doc in self.store.query(USERS_COLLECTION, role=UserRole.SUPPLIER.value)
            if doc.get("is_approved") and not doc.get("is_suspended")
        }
        products = [
            product
            for product in self.list_products()
            if product.supplier_id in suppliers and (not term or product.matches(term))
        ]
        return sorted(
            products,
            key=lambda p: (suppliers[p.supplier_id].get("name", "").lower(), p.name.lower()),
        )

    # ========================================================================
    # Listing management
    # ========================================================================

    def handle_add_product(self, command: commands.AddProduct, actor_id: str) -> Product:
        supplier = self._load_user(actor_id)
        invariants.validate_can_list_products(supplier)

        now = self.time_provider.now()
        product = Product(
            id=generate_id(),
            supplier_id=supplier.id,
            created_at=now,
            updated_at=now,
            **command.model_dump(),
        )
        self.store.create(PRODUCTS_COLLECTION, product.id, product.model_dump(mode="json"))

        logger.info(
            "Product listed",
            product_id=product.id,
            supplier_id=supplier.id,
            price=product.price,
            stock_quantity=product.stock_quantity,
        )
        return product

    def handle_update_product(self, command: commands.UpdateProduct, actor_id: str) -> Product:
        supplier = self._load_user(actor_id)
        invariants.validate_can_list_products(supplier)
        product = self.get_product(command.product_id)
        invariants.validate_product_owner(product, supplier)

        changes = command.changes()
        if not changes:
            return product
        changes["updated_at"] = self.time_provider.now().isoformat()

        doc = self.store.update(PRODUCTS_COLLECTION, product.id, changes)
        logger.info("Product updated", product_id=product.id, fields=sorted(changes))
        return Product.model_validate(doc)

    def handle_delete_product(self, command: commands.DeleteProduct, actor_id: str) -> None:
        supplier = self._load_user(actor_id)
        invariants.validate_can_list_products(supplier)
        product = self.get_product(command.product_id)
        invariants.validate_product_owner(product, supplier)

        self.store.delete(PRODUCTS_COLLECTION, product.id)
        logger.info("Product deleted", product_id=product.id, supplier_id=supplier.id)

    # ========================================================================
    # Stock
    # ========================================================================

    def consume_stock(self, product_id: str, quantity: float) -> Product | None:
        """
        Take a paid order's quantity out of stock, never below zero

        Fractional quantities round up to whole stock units. Returns None
        when the listing was deleted after the order was placed.
        """
        taken = math.ceil(quantity)

        def take(doc: dict) -> dict:
            return {
                "stock_quantity": max(0, int(doc.get("stock_quantity") or 0) - taken),
                "updated_at": self.time_provider.now().isoformat(),
            }

        try:
            doc = self.store.transform(PRODUCTS_COLLECTION, product_id, take)
        except DocumentNotFound:
            logger.warning(
                "Paid order references a deleted product; stock unchanged",
                product_id=product_id,
                quantity=quantity,
            )
            return None

        logger.info(
            "Stock reduced",
            product_id=product_id,
            quantity=taken,
            stock_quantity=doc["stock_quantity"],
        )
        return Product.model_validate(doc)
