# storefront/models/product.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(SQLModel, table=True):
    """
    Product category shown on the storefront.
    """

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(
        max_length=100,
        unique=True,
        index=True,
    )

    image_url: str | None = Field(
        default=None,
        description="Public URL of the category image in Storage",
    )

    created_at: datetime = Field(default_factory=_utcnow)


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    `images` keeps public Storage URLs in display order; the first one
    is what the cart snapshots. `sizes` lists the variants a shopper
    may pick (empty = no size selector).
    """

    __tablename__ = "products"

    id: int | None = Field(default=None, primary_key=True)

    title: str = Field(
        max_length=50,
        index=True,
    )

    description: str = Field(max_length=100)

    price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Unit price",
    )

    stock: int = Field(
        default=0,
        description="Units currently in stock",
    )

    category_id: int = Field(
        foreign_key="categories.id",
        index=True,
    )

    seller_id: int | None = None

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    sizes: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    color: str | None = Field(default=None, max_length=50)

    created_at: datetime = Field(default_factory=_utcnow)

    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )
