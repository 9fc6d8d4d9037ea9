# storefront/repositories/order_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, col, select

from storefront.models.order import Order, OrderItem, OrderStatus


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits in the create helpers; checkout is a multi-step
        transaction and the service calls session.commit().
    """

    # ---- Orders ----

    def _filtered(
        self,
        stmt,
        status: OrderStatus | None,
        search: str | None,
    ):
        if status is not None:
            stmt = stmt.where(Order.status == status)
        if search:
            stmt = stmt.where(col(Order.order_number).ilike(f"%{search}%"))
        return stmt

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 10,
        status: OrderStatus | None = None,
        search: str | None = None,
    ) -> list[Order]:
        stmt = self._filtered(
            select(Order).where(Order.user_id == user_id), status, search
        )
        stmt = (
            stmt.order_by(col(Order.created_at).desc(), col(Order.id).desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def list_all(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        status: OrderStatus | None = None,
        search: str | None = None,
    ) -> list[Order]:
        stmt = self._filtered(select(Order), status, search)
        stmt = (
            stmt.order_by(col(Order.created_at).desc(), col(Order.id).desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def get_by_id(self, session: Session, order_id: int) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    # ---- Order items ----

    def list_items(self, session: Session, order_id: int) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        return session.exec(stmt).all()

    def create_items(self, session: Session, items: list[OrderItem]) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items

    def item_counts(self, session: Session, order_ids: list[int]) -> dict[int, int]:
        """Number of lines per order, for list views."""
        if not order_ids:
            return {}
        stmt = (
            select(OrderItem.order_id, func.count(OrderItem.id))
            .where(col(OrderItem.order_id).in_(order_ids))
            .group_by(OrderItem.order_id)
        )
        return {order_id: count for order_id, count in session.exec(stmt).all()}
