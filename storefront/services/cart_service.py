# storefront/services/cart_service.py
import logging
import uuid
from typing import Callable

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.domain.cart import CartAggregate
from storefront.models.cart import INITIAL_CART_VERSION
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository, StaleCartError
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartCount,
    CartItemCreate,
    CartItemUpdate,
    CartLineRead,
    CartSummary,
)

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - load the user's cart, apply one CartAggregate operation, persist it
      - retry the whole cycle when a concurrent write wins the version check
      - validate product existence, size choice, and stock before adding
      - create the cart row lazily on first add
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        max_attempts: int = 3,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.max_attempts = max(1, max_attempts)

    # ---- internal helpers ----

    def _get_product(self, session: Session, product_id: int) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    @staticmethod
    def _check_size(product: Product, size: str | None) -> None:
        if product.sizes:
            if size is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Please select a size",
                )
            if size not in product.sizes:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Please choose one of: " + ", ".join(product.sizes),
                )
        elif size is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This product has no size options",
            )

    @staticmethod
    def _quantity_in_cart(
        aggregate: CartAggregate, product_id: int, skip_handle: str | None = None
    ) -> int:
        # stock is per product, so every size counts against it
        return sum(
            line.quantity
            for line in aggregate.items
            if line.product_id == product_id and line.handle != skip_handle
        )

    @staticmethod
    def _ensure_stock(product: Product, wanted: int) -> None:
        if wanted > product.stock:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Not enough stock available",
            )

    @staticmethod
    def _summary(aggregate: CartAggregate) -> CartSummary:
        return CartSummary(
            items=[
                CartLineRead(
                    handle=line.handle,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    size=line.size,
                    title=line.title,
                    price=float(line.price),
                    image=line.image,
                    line_total=float(line.line_total),
                    added_at=line.added_at,
                )
                for line in aggregate.items
            ],
            total_products=aggregate.total_products,
            total_price=float(aggregate.total_price),
        )

    def _mutate(
        self,
        session: Session,
        user_id: uuid.UUID,
        mutation: Callable[[CartAggregate], None],
        create_if_missing: bool = False,
    ) -> CartSummary:
        """
        Load -> mutate -> compare-and-swap save, retried on conflict.

        `mutation` runs against a freshly loaded aggregate on every
        attempt; it may raise (validation) before anything is written.
        """
        for attempt in range(1, self.max_attempts + 1):
            cart = self.cart_repo.get_for_user(session, user_id)
            if cart is None and not create_if_missing:
                return self._summary(CartAggregate(user_id=user_id))

            if cart is None:
                aggregate = CartAggregate(user_id=user_id)
                expected_version = INITIAL_CART_VERSION
            else:
                aggregate = self.cart_repo.to_aggregate(cart)
                expected_version = cart.version

            mutation(aggregate)

            if cart is None:
                cart = self.cart_repo.create_for_user(session, user_id)
                logger.info("Created cart %s for user %s", cart.id, user_id)

            try:
                self.cart_repo.save(session, cart, aggregate, expected_version)
            except StaleCartError:
                logger.warning(
                    "Cart for user %s changed concurrently (attempt %d/%d)",
                    user_id,
                    attempt,
                    self.max_attempts,
                )
                continue

            return self._summary(aggregate)

        raise StaleCartError(
            "Cart was modified by another request, please retry"
        )

    # ---- public operations ----

    def get_cart_summary(self, session: Session, user_id: uuid.UUID) -> CartSummary:
        """
        Return the cart summary. A user without a cart gets an empty one
        (no row is created for reads).
        """
        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            return self._summary(CartAggregate(user_id=user_id))
        return self._summary(self.cart_repo.to_aggregate(cart))

    def get_count(self, session: Session, user_id: uuid.UUID) -> CartCount:
        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            return CartCount(total_products=0)
        return CartCount(
            total_products=self.cart_repo.to_aggregate(cart).total_products
        )

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product to the user's cart.

        Rules:
          - product must exist (404)
          - size must be one the product offers (400)
          - all lines of this product (any size) + new quantity <= stock (400)
          - price/title/image are snapshotted from the product now
        """
        product = self._get_product(session, payload.product_id)
        self._check_size(product, payload.size)

        def apply(aggregate: CartAggregate) -> None:
            in_cart = self._quantity_in_cart(aggregate, product.id)
            self._ensure_stock(product, in_cart + payload.quantity)
            aggregate.add_item(product, payload.quantity, payload.size)

        return self._mutate(session, user_id, apply, create_if_missing=True)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        handle: str,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Set the quantity of one cart line.

        - quantity 0 removes the line
        - unknown handle is a no-op
        - new quantity + the product's other lines above stock => 400
        """

        def apply(aggregate: CartAggregate) -> None:
            line = aggregate.find(handle)
            if line is None:
                return
            product = self.product_repo.get_by_id(session, line.product_id)
            if product is not None and payload.quantity > 0:
                others = self._quantity_in_cart(
                    aggregate, product.id, skip_handle=handle
                )
                self._ensure_stock(product, others + payload.quantity)
            aggregate.update_quantity(handle, payload.quantity)

        return self._mutate(session, user_id, apply)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        handle: str,
    ) -> CartSummary:
        """
        Remove a cart line. Removing a line that is not there is not an error.
        """
        return self._mutate(
            session, user_id, lambda aggregate: aggregate.remove_item(handle)
        )

    def clear_cart(self, session: Session, user_id: uuid.UUID) -> CartSummary:
        """
        Clear all items from the cart and return an empty summary.
        """
        return self._mutate(session, user_id, lambda aggregate: aggregate.clear())

    def delete_cart(self, session: Session, user_id: uuid.UUID) -> None:
        """
        Drop the cart row entirely; used when the owning user is deleted.
        """
        self.cart_repo.delete_for_user(session, user_id)
