# storefront/services/stats_service.py
import uuid
from decimal import Decimal

from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.models.order import OrderStatus
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.stats import (
    AdminDashboardStats,
    ClientDashboard,
    LatestOrderSummary,
    LowStockProduct,
    TopProduct,
)
from storefront.services.order_service import OrderService

settings = get_settings()

# Orders counted as money actually spent by a client
SPENT_STATUSES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}


def _by_status(counts: dict[OrderStatus, int]) -> dict[str, int]:
    return {s.value: counts.get(s, 0) for s in OrderStatus}


class StatsService:
    """
    Orchestrates aggregated dashboard statistics.
    """

    def __init__(
        self,
        repo: StatsRepository,
        product_repo: ProductRepository,
        cart_repo: CartRepository,
        order_service: OrderService,
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.cart_repo = cart_repo
        self.order_service = order_service

    def get_admin_dashboard_stats(
        self,
        session: Session,
        top_n_products: int = 5,
        latest_n_orders: int = 10,
    ) -> AdminDashboardStats:
        counts = self.repo.status_counts(session)
        total_orders = sum(counts.values())
        paying_orders = total_orders - counts.get(OrderStatus.CANCELLED, 0)
        total_revenue = self.repo.revenue(session)
        average = total_revenue / paying_orders if paying_orders else Decimal("0")

        top_products = [
            TopProduct(
                product_id=product_id,
                product_name=name,
                total_quantity=int(quantity or 0),
                total_revenue=float(revenue or 0),
            )
            for product_id, name, quantity, revenue in self.repo.top_products(
                session, limit=top_n_products
            )
        ]

        low_stock = [
            LowStockProduct(id=p.id, title=p.title, stock=p.stock)
            for p in self.product_repo.low_stock(session, settings.LOW_STOCK_THRESHOLD)
        ]

        latest_orders = [
            LatestOrderSummary(
                id=order.id,
                order_number=order.order_number,
                created_at=order.created_at,
                user_id=order.user_id,
                customer_name=name,
                customer_email=email,
                total=float(order.total),
                status=order.status,
            )
            for order, name, email in self.repo.latest_orders(
                session, limit=latest_n_orders
            )
        ]

        return AdminDashboardStats(
            total_customers=self.repo.count_customers(session),
            total_orders=total_orders,
            total_revenue=float(total_revenue),
            average_order_value=round(float(average), 2),
            orders_by_status=_by_status(counts),
            top_products=top_products,
            low_stock=low_stock,
            latest_orders=latest_orders,
        )

    def get_client_dashboard(
        self,
        session: Session,
        user_id: uuid.UUID,
        recent_n_orders: int = 5,
    ) -> ClientDashboard:
        cart = self.cart_repo.get_for_user(session, user_id)
        cart_count = self.cart_repo.to_aggregate(cart).total_products if cart else 0
        counts = self.repo.status_counts(session, user_id=user_id)

        return ClientDashboard(
            total_orders=sum(counts.values()),
            total_spent=float(
                self.repo.revenue(session, statuses=SPENT_STATUSES, user_id=user_id)
            ),
            orders_by_status=_by_status(counts),
            cart_count=cart_count,
            recent_orders=self.order_service.list_user_orders(
                session, user_id, limit=recent_n_orders
            ),
        )
