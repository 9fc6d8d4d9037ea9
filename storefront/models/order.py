# storefront/models/order.py
import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    BANK = "bank"
    MOBILE = "mobile"
    PAYPAL = "paypal"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Order(SQLModel, table=True):
    """
    Customer order placed from the cart.

    Money columns are fixed at checkout:
      - subtotal: sum of the cart lines' snapshot prices
      - shipping: flat fee (ORDER_SHIPPING_FEE), 0 for an empty subtotal
      - total = subtotal + shipping
    """

    __tablename__ = "orders"

    id: int | None = Field(default=None, primary_key=True)

    order_number: str = Field(
        unique=True,
        index=True,
        description="Human-facing reference, e.g. ORD-1718000000000-042",
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
        ondelete="CASCADE",
    )

    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    shipping: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    total: Decimal = Field(max_digits=10, decimal_places=2)

    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    payment_method: PaymentMethod
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)

    shipping_address: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )
    customer_notes: str | None = None

    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )


class OrderItem(SQLModel, table=True):
    """
    One line of an order, copied from a cart line at checkout.

    product_id is kept without a foreign key: the order must survive the
    product being deleted from the catalog.
    """

    __tablename__ = "order_items"

    id: int | None = Field(default=None, primary_key=True)

    order_id: int = Field(
        foreign_key="orders.id",
        index=True,
        ondelete="CASCADE",
    )

    product_id: int = Field(index=True)
    product_name: str
    size: str | None = None
    price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Unit price at time of order",
    )
    quantity: int = Field(gt=0)
    image: str | None = None
