"""
Products Module

Supplier product listings with price, unit and stock on hand.
"""

from fruitflow.products.commands import AddProduct, DeleteProduct, UpdateProduct
from fruitflow.products.models import Product, ProductUnit

__all__ = [
    # Commands
    "AddProduct",
    "DeleteProduct",
    "UpdateProduct",
    # Models
    "Product",
    "ProductUnit",
]
