# storefront/schemas/cart.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.

    quantity is range-checked by the cart itself (400 on < 1).
    """

    model_config = ConfigDict(extra="forbid")

    product_id: int
    quantity: int = 1
    size: str | None = Field(default=None, max_length=20)

    @field_validator("size")
    @classmethod
    def normalize_size(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart line.

    0 removes the line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(ge=0)


class CartLineRead(SQLModel):
    """
    Read model for a single cart line, including line_total.

    `handle` is what PATCH/DELETE /cart/items/{handle} expect.
    """

    handle: str
    product_id: int
    quantity: int
    size: str | None = None
    title: str
    price: float
    image: str | None = None
    line_total: float
    added_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartLineRead]
    total_products: int
    total_price: float


class CartCount(SQLModel):
    total_products: int
