"""
Product Catalog Models

Each supplier lists the fruit it sells with a unit price and the stock on
hand. Orders copy the name, price and unit from the listing when placed.

Fun fact: A "pallet" of oranges weighs about a tonne, which is why nobody
orders them by the item.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ProductUnit(str, Enum):
    KG = "kg"
    BOX = "box"
    PALLET = "pallet"
    ITEM = "item"


class Product(BaseModel):
    """A supplier's product listing"""

    id: str = Field(..., description="Product identifier")
    supplier_id: str = Field(..., description="Listing supplier")
    name: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    price: float = Field(..., gt=0, description="Price per unit")
    unit: ProductUnit = Field(default=ProductUnit.ITEM)
    stock_quantity: int = Field(default=0, ge=0)
    category: str = Field(default="")
    image_url: str = Field(default="")
    created_at: datetime
    updated_at: datetime

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    def matches(self, term: str) -> bool:
        """Case-insensitive match on name or category"""
        needle = term.strip().lower()
        return needle in self.name.lower() or needle in self.category.lower()
