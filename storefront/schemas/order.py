# storefront/schemas/order.py
import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.models.order import OrderStatus, PaymentMethod, PaymentStatus


def _strip_or_none(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class ShippingAddress(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=30)
    address: str = Field(min_length=1, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)

    @field_validator("name", "phone", "address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class OrderCreate(SQLModel):
    """
    Payload for checking out the current cart.

    User provides:
      - payment_method
      - shipping address (optional)
      - customer notes (optional)

    Backend derives:
      - user_id from token
      - items, subtotal and total from the cart lines
      - status = 'pending', payment_status = 'pending'
    """

    model_config = ConfigDict(extra="forbid")

    payment_method: PaymentMethod
    shipping_address: ShippingAddress | None = None
    customer_notes: str | None = Field(default=None, max_length=500)

    @field_validator("customer_notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class OrderItemRead(SQLModel):
    id: int
    product_id: int
    product_name: str
    size: str | None = None
    price: float
    quantity: int
    image: str | None = None
    line_total: float


class OrderRead(SQLModel):
    """
    Order without its lines (list views).
    """

    id: int
    order_number: str
    user_id: uuid.UUID
    subtotal: float
    shipping: float
    total: float
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    shipping_address: dict[str, Any] | None = None
    customer_notes: str | None = None
    item_count: int
    created_at: datetime
    updated_at: datetime


class OrderWithItemsRead(OrderRead):
    items: list[OrderItemRead]


class OrderStatusUpdate(SQLModel):
    """
    Staff payload. At least one of the two fields must be given.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
