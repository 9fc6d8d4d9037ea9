# storefront/schemas/stats.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from storefront.models.order import OrderStatus
from storefront.schemas.order import OrderRead


class TopProduct(SQLModel):
    """
    Aggregated sales for one product across non-cancelled orders.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: int
    product_name: str
    total_quantity: int
    total_revenue: float


class LowStockProduct(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    title: str
    stock: int


class LatestOrderSummary(SQLModel):
    """
    Lightweight info for the last N orders.
    """

    model_config = ConfigDict(extra="forbid")

    id: int
    order_number: str
    created_at: datetime
    user_id: uuid.UUID
    customer_name: str
    customer_email: str
    total: float
    status: OrderStatus


class AdminDashboardStats(SQLModel):
    """
    Full payload for the admin dashboard.
    """

    model_config = ConfigDict(extra="forbid")

    total_customers: int
    total_orders: int
    total_revenue: float
    average_order_value: float
    orders_by_status: dict[str, int]
    top_products: list[TopProduct]
    low_stock: list[LowStockProduct]
    latest_orders: list[LatestOrderSummary]


class ClientDashboard(SQLModel):
    """
    Landing data for a signed-in client.

    total_spent counts shipped and delivered orders only.
    """

    model_config = ConfigDict(extra="forbid")

    total_orders: int
    total_spent: float
    orders_by_status: dict[str, int]
    cart_count: int
    recent_orders: list[OrderRead]
