# storefront/schemas/product.py
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


def _clean_sizes(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    seen: list[str] = []
    for raw in v:
        size = raw.strip()
        if size and size not in seen:
            seen.append(size)
    return seen


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    Images are uploaded separately via POST /products/{id}/images.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    category_id: int
    seller_id: int | None = None
    sizes: list[str] = Field(default_factory=list)
    color: str | None = Field(default=None, max_length=50)

    @field_validator("title", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("sizes")
    @classmethod
    def normalize_sizes(cls, v: list[str]) -> list[str]:
        return _clean_sizes(v)


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, min_length=1, max_length=100)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock: int | None = Field(default=None, ge=0)
    category_id: int | None = None
    sizes: list[str] | None = None
    color: str | None = Field(default=None, max_length=50)

    @field_validator("title", "description")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("sizes")
    @classmethod
    def normalize_sizes(cls, v: list[str] | None) -> list[str] | None:
        return _clean_sizes(v)


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: int
    title: str
    description: str
    price: float
    stock: int
    category_id: int
    seller_id: int | None = None
    images: list[str]
    sizes: list[str]
    color: str | None = None
    created_at: datetime


class ProductCard(SQLModel):
    """
    Compact product for search results and recommendations.
    """

    id: int
    title: str
    price: float
    image: str | None = None
