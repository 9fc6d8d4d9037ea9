# storefront/domain/cart.py
"""
Cart aggregate: a user's line items and the totals derived from them.

Pure in-memory logic. No session, no logging, no I/O. The hosting
service loads the aggregate, calls exactly one mutator, and persists
the result under its own per-user serialization (see CartService).

Totals are kept in Decimal so that `total_price` always equals
Σ price * quantity exactly.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")


class CartError(Exception):
    """Base class for cart validation failures."""


class InvalidQuantity(CartError):
    """Quantity is not a positive integer."""


class InvalidProductSnapshot(CartError):
    """Product data is missing the fields a line item needs."""


def _to_money(value: Any) -> Decimal:
    """
    Convert a price to a 2-place Decimal.

    Floats go through str() so 19.99 stays 19.99 instead of its
    binary approximation.
    """
    if isinstance(value, bool):
        raise InvalidProductSnapshot("price must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        money = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidProductSnapshot(f"invalid price: {value!r}")
    if not money.is_finite() or money < 0:
        raise InvalidProductSnapshot("price must be a non-negative number")
    return money.quantize(CENT)


def _snapshot_field(product: Any, name: str) -> Any:
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


def _check_quantity(quantity: Any) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity("quantity must be an integer")
    return quantity


def _new_handle() -> str:
    return uuid.uuid4().hex


@dataclass
class CartLine:
    """
    One (product, size) entry in a cart.

    title / price / image are a snapshot taken when the line was
    created and are not refreshed if the catalog changes later.
    """

    product_id: int
    quantity: int
    title: str
    price: Decimal
    size: str | None = None
    image: str | None = None
    handle: str = field(default_factory=_new_handle)
    added_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def matches(self, product_id: int, size: str | None) -> bool:
        return self.product_id == product_id and self.size == size

    def to_payload(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "size": self.size,
            "title": self.title,
            "price": str(self.price),
            "image": self.image,
            "handle": self.handle,
            "added_at": self.added_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CartLine":
        added_at = data.get("added_at")
        return cls(
            product_id=data["product_id"],
            quantity=int(data["quantity"]),
            size=data.get("size"),
            title=data.get("title") or "",
            price=_to_money(data["price"]),
            image=data.get("image"),
            handle=data.get("handle") or _new_handle(),
            added_at=(
                datetime.fromisoformat(added_at)
                if added_at
                else datetime.now(timezone.utc)
            ),
        )


@dataclass
class CartAggregate:
    """
    Ordered line items for one user plus derived totals.

    Every mutator recomputes totals before returning, so after any call:
      total_products == sum(line.quantity)
      total_price    == sum(line.price * line.quantity)
    """

    user_id: Any
    items: list[CartLine] = field(default_factory=list)
    total_products: int = 0
    total_price: Decimal = field(default_factory=lambda: Decimal("0.00"))

    def __post_init__(self) -> None:
        self._recompute_totals()

    # ---- internal helpers ----

    def _recompute_totals(self) -> None:
        self.total_products = sum(line.quantity for line in self.items)
        self.total_price = sum(
            (line.line_total for line in self.items), Decimal("0.00")
        ).quantize(CENT)

    def _find_mergeable(self, product_id: int, size: str | None) -> CartLine | None:
        for line in self.items:
            if line.matches(product_id, size):
                return line
        return None

    # ---- reads ----

    def find(self, handle: str) -> CartLine | None:
        for line in self.items:
            if line.handle == handle:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.items

    # ---- mutators ----

    def add_item(
        self,
        product: Any,
        quantity: int = 1,
        size: str | None = None,
    ) -> CartLine:
        """
        Add `quantity` units of `product` in `size`.

        `product` is anything exposing id, title, price and images
        (a dict or an object such as the Product row).

        Merges into an existing line with the same (product_id, size)
        instead of creating a duplicate.

        Raises:
            InvalidQuantity: quantity is not an integer >= 1.
            InvalidProductSnapshot: id or price missing / invalid.
        """
        quantity = _check_quantity(quantity)
        if quantity < 1:
            raise InvalidQuantity("quantity must be at least 1")

        product_id = _snapshot_field(product, "id")
        if product_id is None:
            raise InvalidProductSnapshot("product id is required")
        raw_price = _snapshot_field(product, "price")
        if raw_price is None:
            raise InvalidProductSnapshot("product price is required")
        price = _to_money(raw_price)

        existing = self._find_mergeable(product_id, size)
        if existing is not None:
            existing.quantity += quantity
            self._recompute_totals()
            return existing

        images = _snapshot_field(product, "images") or []
        line = CartLine(
            product_id=product_id,
            quantity=quantity,
            size=size,
            title=_snapshot_field(product, "title") or "",
            price=price,
            image=images[0] if images else None,
        )
        self.items.append(line)
        self._recompute_totals()
        return line

    def remove_item(self, handle: str) -> None:
        """Drop every line with this handle. Unknown handle is a no-op."""
        self.items = [line for line in self.items if line.handle != handle]
        self._recompute_totals()

    def update_quantity(self, handle: str, quantity: int) -> None:
        """
        Overwrite the quantity of the line addressed by `handle`.

        quantity <= 0 removes the line. Unknown handle is a no-op.
        """
        quantity = _check_quantity(quantity)
        line = self.find(handle)
        if line is None:
            return
        if quantity <= 0:
            self.remove_item(handle)
            return
        line.quantity = quantity
        self._recompute_totals()

    def clear(self) -> None:
        self.items = []
        self._recompute_totals()

    # ---- persisted representation ----

    def to_payload(self) -> dict[str, Any]:
        return {
            "items": [line.to_payload() for line in self.items],
            "total_products": self.total_products,
            "total_price": str(self.total_price),
        }

    @classmethod
    def from_payload(cls, user_id: Any, payload: dict[str, Any] | None) -> "CartAggregate":
        """
        Rebuild an aggregate from the dict produced by `to_payload()`.

        Only `items` is read; totals are recomputed from the lines, stored
        totals are not trusted.
        """
        items = (payload or {}).get("items") or []
        return cls(
            user_id=user_id,
            items=[CartLine.from_payload(raw) for raw in items],
        )
