# storefront/models/cart.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

# Version of a freshly inserted cart row
INITIAL_CART_VERSION = 1


class Cart(SQLModel, table=True):
    """
    Persisted shopping cart. One row per user.

    `items` holds the ordered line records produced by
    CartAggregate.to_payload(); totals are stored alongside so the row
    is readable on its own, but they are always recomputed on load.

    `version` is bumped on every save. Writers compare-and-swap on it
    (see CartRepository.save) so concurrent requests for the same user
    cannot lose each other's updates.
    """

    __tablename__ = "carts"

    id: int | None = Field(default=None, primary_key=True)

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        unique=True,
        index=True,
        ondelete="CASCADE",
    )

    items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    total_products: int = Field(default=0, ge=0)

    total_price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
    )

    version: int = Field(default=INITIAL_CART_VERSION)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
