# storefront/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.domain.cart import CartAggregate
from storefront.models.cart import Cart


class StaleCartError(Exception):
    """The cart row changed since it was loaded (version mismatch)."""


class CartRepository:
    """
    Data access layer for Cart.

    - Pure DB operations, no HTTP, no business rules.
    - Writes are compare-and-swap on Cart.version.
    """

    def get_for_user(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def create_for_user(self, session: Session, user_id: uuid.UUID) -> Cart:
        """
        Insert an empty cart for `user_id`.

        If another request created it first, the unique constraint on
        user_id fires and the existing row is returned instead.
        """
        cart = Cart(user_id=user_id, items=[])
        session.add(cart)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            existing = self.get_for_user(session, user_id)
            if existing is None:
                raise
            return existing
        session.refresh(cart)
        return cart

    def to_aggregate(self, cart: Cart) -> CartAggregate:
        return CartAggregate.from_payload(cart.user_id, {"items": cart.items})

    def save(
        self,
        session: Session,
        cart: Cart,
        aggregate: CartAggregate,
        expected_version: int,
        commit: bool = True,
    ) -> Cart:
        """
        Persist `aggregate` into `cart` if nobody else wrote it meanwhile.

        With commit=False the update joins the caller's transaction (used
        by checkout); on a version mismatch that transaction is rolled back.

        Raises:
            StaleCartError: the row's version is no longer `expected_version`.
        """
        payload = aggregate.to_payload()
        stmt = (
            update(Cart)
            .where(Cart.id == cart.id, Cart.version == expected_version)
            .values(
                items=payload["items"],
                total_products=aggregate.total_products,
                total_price=aggregate.total_price,
                version=expected_version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        if result.rowcount != 1:
            session.rollback()
            raise StaleCartError(f"cart {cart.id} changed concurrently")
        if commit:
            session.commit()
            session.refresh(cart)
        return cart

    def delete_for_user(self, session: Session, user_id: uuid.UUID) -> None:
        cart = self.get_for_user(session, user_id)
        if cart is not None:
            session.delete(cart)
            session.commit()
