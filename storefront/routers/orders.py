# storefront/routers/orders.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import require_client, require_staff
from storefront.database import get_session
from storefront.models.order import OrderStatus
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.order import (
    OrderCreate,
    OrderRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from storefront.schemas.stats import ClientDashboard
from storefront.services.order_service import OrderService
from storefront.services.stats_service import StatsService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = OrderService(order_repo, cart_repo, product_repo)
stats_service = StatsService(StatsRepository(), product_repo, cart_repo, service)


# -------- Client endpoints --------


@router.post(
    "/checkout",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Create an order from the current user's cart and empty the cart.

    Auth:
      - Only role='client' can checkout.
    """
    return service.checkout(session, current_user.id, payload)


@router.get("/me", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, description="Order number substring"),
):
    """
    The authenticated client's orders, newest first (without items).
    """
    return service.list_user_orders(
        session, current_user.id, skip, limit, status_filter, search
    )


@router.get("/me/dashboard", response_model=ClientDashboard)
def my_dashboard(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Order counts, money spent, cart badge and recent orders.
    """
    return stats_service.get_client_dashboard(session, current_user.id)


@router.get("/me/{order_id}", response_model=OrderWithItemsRead)
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    return service.get_user_order(session, current_user.id, order_id)


@router.post("/me/{order_id}/cancel", response_model=OrderWithItemsRead)
def cancel_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Cancel a pending or confirmed order; its units go back to stock.
    """
    return service.cancel_user_order(session, current_user.id, order_id)


# -------- Staff endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
    dependencies=[Depends(require_staff)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    search: str | None = None,
):
    """
    List all orders (admin / sales agent).
    """
    return service.list_all_orders(session, skip, limit, status_filter, search)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_staff)],
)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
):
    return service.get_order(session, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_staff)],
)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order and/or payment status (admin / sales agent).

      pending   -> confirmed, cancelled

      confirmed -> shipped, cancelled

      shipped   -> delivered

    """
    return service.update_status(session, order_id, payload)
