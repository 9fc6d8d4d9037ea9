# storefront/repositories/stats_repo.py
import uuid
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, col, select

from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.user import Role, User


class StatsRepository:
    """
    Read-only aggregated queries for the dashboards.

    Revenue figures leave out cancelled orders.
    """

    def count_customers(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User).where(User.role == Role.CLIENT)
        return int(session.exec(stmt).one() or 0)

    def revenue(
        self,
        session: Session,
        statuses: set[OrderStatus] | None = None,
        user_id: uuid.UUID | None = None,
    ) -> Decimal:
        """
        Sum of order totals, restricted to `statuses` when given and to
        non-cancelled orders otherwise.
        """
        stmt = select(func.coalesce(func.sum(Order.total), 0))
        if statuses:
            stmt = stmt.where(col(Order.status).in_(list(statuses)))
        else:
            stmt = stmt.where(Order.status != OrderStatus.CANCELLED)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        return Decimal(str(session.exec(stmt).one() or 0))

    def status_counts(
        self, session: Session, user_id: uuid.UUID | None = None
    ) -> dict[OrderStatus, int]:
        stmt = select(Order.status, func.count()).group_by(Order.status)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        return {row_status: int(n) for row_status, n in session.exec(stmt).all()}

    def top_products(self, session: Session, limit: int = 5) -> list[tuple]:
        """
        (product_id, product_name, quantity, revenue) by units sold.
        """
        qty_sum = func.sum(OrderItem.quantity)
        revenue_sum = func.sum(OrderItem.quantity * OrderItem.price)

        stmt = (
            select(
                OrderItem.product_id,
                func.max(OrderItem.product_name),
                qty_sum.label("total_quantity"),
                revenue_sum.label("total_revenue"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.status != OrderStatus.CANCELLED)
            .group_by(OrderItem.product_id)
            .order_by(qty_sum.desc(), OrderItem.product_id)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def latest_orders(self, session: Session, limit: int = 10) -> list[tuple]:
        """
        Latest orders (any status) with the customer's name and email.
        """
        stmt = (
            select(Order, User.name, User.email)
            .join(User, User.id == Order.user_id)
            .order_by(col(Order.created_at).desc(), col(Order.id).desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())
