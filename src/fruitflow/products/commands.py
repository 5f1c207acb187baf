"""
Product Commands

A supplier adds, edits and removes its own listings.
"""

from pydantic import BaseModel, Field, field_validator

from fruitflow.products.models import ProductUnit


def _validate_image_url(v: str | None) -> str | None:
    if v is None or v == "":
        return v
    if not v.startswith(("http://", "https://")):
        raise ValueError("Image URL must be an http(s) URL")
    return v


class AddProduct(BaseModel):
    """List a new product; stock defaults to zero"""

    name: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    price: float = Field(..., gt=0)
    unit: ProductUnit = ProductUnit.ITEM
    stock_quantity: int = Field(default=0, ge=0)
    category: str = ""
    image_url: str = ""

    @field_validator("name", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        return _validate_image_url(v)


class UpdateProduct(BaseModel):
    """Edit a listing; omitted fields stay unchanged"""

    product_id: str
    name: str | None = Field(default=None, min_length=3)
    description: str | None = Field(default=None, min_length=10)
    price: float | None = Field(default=None, gt=0)
    unit: ProductUnit | None = None
    stock_quantity: int | None = Field(default=None, ge=0)
    category: str | None = None
    image_url: str | None = None

    @field_validator("name", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if isinstance(v, str) else v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        return _validate_image_url(v)

    def changes(self) -> dict:
        return self.model_dump(mode="json", exclude={"product_id"}, exclude_none=True)


class DeleteProduct(BaseModel):
    product_id: str
