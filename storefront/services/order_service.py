# storefront/services/order_service.py
import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
)

logger = logging.getLogger(__name__)
settings = get_settings()

# Staff status changes; delivered and cancelled are final
ALLOWED_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# A client may cancel only before the order ships
CLIENT_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.CONFIRMED}


def generate_order_number() -> str:
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"ORD-{millis}-{uuid.uuid4().hex[:6].upper()}"


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create order from cart (snapshot lines, take stock, clear cart)
      - Client order history, single order, cancellation
      - Staff listing and status updates with a small state machine
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # -------- Checkout --------

    def checkout(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: OrderCreate,
    ) -> OrderWithItemsRead:
        """
        Convert the current user's cart into an Order.

        Steps:
          1. Load the cart; 400 if missing or empty.
          2. Check every product still exists and has enough stock for
             all of its lines together.
          3. Create the Order and one OrderItem per cart line, priced
             from the line snapshot.
          4. Take stock with a conditional update per product.
          5. Empty the cart through the versioned save.
          6. Commit everything at once.

        A concurrent cart edit makes step 5 raise StaleCartError (409)
        and nothing is written.
        """
        cart = self.cart_repo.get_for_user(session, user_id)
        aggregate = self.cart_repo.to_aggregate(cart) if cart else None
        if aggregate is None or aggregate.is_empty:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )
        expected_version = cart.version

        wanted: dict[int, int] = defaultdict(int)
        titles: dict[int, str] = {}
        for line in aggregate.items:
            wanted[line.product_id] += line.quantity
            titles.setdefault(line.product_id, line.title)

        errors: list[dict[str, str]] = []
        for product_id, quantity in wanted.items():
            product = self.product_repo.get_by_id(session, product_id)
            if product is None:
                errors.append(
                    {
                        "product_id": str(product_id),
                        "reason": f'Product "{titles[product_id]}" is no longer available',
                    }
                )
            elif product.stock < quantity:
                errors.append(
                    {
                        "product_id": str(product_id),
                        "reason": f"Insufficient stock (have {product.stock}, requested {quantity})",
                    }
                )

        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Cart validation failed", "items": errors},
            )

        subtotal = aggregate.total_price
        shipping = settings.ORDER_SHIPPING_FEE if subtotal > 0 else Decimal("0.00")

        order = self.order_repo.create_order(
            session,
            Order(
                order_number=generate_order_number(),
                user_id=user_id,
                subtotal=subtotal,
                shipping=shipping,
                total=subtotal + shipping,
                payment_method=payload.payment_method,
                shipping_address=(
                    payload.shipping_address.model_dump()
                    if payload.shipping_address
                    else None
                ),
                customer_notes=payload.customer_notes,
            ),
        )

        items = self.order_repo.create_items(
            session,
            [
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    product_name=line.title,
                    size=line.size,
                    price=line.price,
                    quantity=line.quantity,
                    image=line.image,
                )
                for line in aggregate.items
            ],
        )

        for product_id, quantity in wanted.items():
            if not self.product_repo.take_stock(session, product_id, quantity):
                # Another checkout took the stock since the check above
                session.rollback()
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f'Insufficient stock for "{titles[product_id]}"',
                )

        aggregate.clear()
        self.cart_repo.save(session, cart, aggregate, expected_version, commit=False)

        session.commit()
        session.refresh(order)
        logger.info(
            "Order %s placed by user %s (%d lines, total %s)",
            order.order_number,
            user_id,
            len(items),
            order.total,
        )
        return self._with_items(order, items)

    # -------- Client operations --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 10,
        status_filter: OrderStatus | None = None,
        search: str | None = None,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_for_user(
            session, user_id, skip, limit, status=status_filter, search=search
        )
        return self._summaries(session, orders)

    def _get_owned(
        self, session: Session, user_id: uuid.UUID, order_id: int
    ) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        # Someone else's order is reported as missing
        if not order or order.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return order

    def get_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: int,
    ) -> OrderWithItemsRead:
        order = self._get_owned(session, user_id, order_id)
        return self._with_items(order, self.order_repo.list_items(session, order.id))

    def cancel_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Cancel one of the caller's orders and put its units back in stock.

        Only pending or confirmed orders can be cancelled (400 otherwise).
        """
        order = self._get_owned(session, user_id, order_id)
        if order.status not in CLIENT_CANCELLABLE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Order cannot be cancelled at this stage",
            )
        items = self._cancel(session, order)
        return self._with_items(order, items)

    # -------- Staff operations --------

    def list_all_orders(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        status_filter: OrderStatus | None = None,
        search: str | None = None,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_all(
            session, skip, limit, status=status_filter, search=search
        )
        return self._summaries(session, orders)

    def get_order(self, session: Session, order_id: int) -> OrderWithItemsRead:
        order = self._get_any(session, order_id)
        return self._with_items(order, self.order_repo.list_items(session, order.id))

    def update_status(
        self,
        session: Session,
        order_id: int,
        payload: OrderStatusUpdate,
    ) -> OrderWithItemsRead:
        """
        Staff update of order and/or payment status.

          pending   -> confirmed, cancelled
          confirmed -> shipped, cancelled
          shipped   -> delivered
          delivered, cancelled -> (final)

        Cancelling returns the units to stock. Payment status can be set
        to any value.
        """
        if payload.status is None and payload.payment_status is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No valid fields to update",
            )

        order = self._get_any(session, order_id)
        current = order.status
        new = payload.status

        if new is not None and new != current and new not in ALLOWED_TRANSITIONS[current]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition: {current.value} -> {new.value}",
            )

        if payload.payment_status is not None:
            order.payment_status = payload.payment_status

        if new == OrderStatus.CANCELLED and current != OrderStatus.CANCELLED:
            items = self._cancel(session, order)
        else:
            if new is not None:
                order.status = new
            order = self.order_repo.update_order(session, order)
            items = self.order_repo.list_items(session, order.id)

        logger.info("Order %s is now %s", order.order_number, order.status.value)
        return self._with_items(order, items)

    # -------- Helpers --------

    def _get_any(self, session: Session, order_id: int) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return order

    def _cancel(self, session: Session, order: Order) -> list[OrderItem]:
        items = self.order_repo.list_items(session, order.id)
        for item in items:
            self.product_repo.return_stock(session, item.product_id, item.quantity)
        order.status = OrderStatus.CANCELLED
        self.order_repo.update_order(session, order)
        logger.info("Order %s cancelled, stock returned", order.order_number)
        return items

    def _summaries(self, session: Session, orders: list[Order]) -> list[OrderRead]:
        counts = self.order_repo.item_counts(session, [o.id for o in orders])
        return [self._to_read(o, counts.get(o.id, 0)) for o in orders]

    @staticmethod
    def _to_read(order: Order, item_count: int) -> OrderRead:
        return OrderRead(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            subtotal=float(order.subtotal),
            shipping=float(order.shipping),
            total=float(order.total),
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            shipping_address=order.shipping_address,
            customer_notes=order.customer_notes,
            item_count=item_count,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def _with_items(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        summary = self._to_read(order, len(items))
        return OrderWithItemsRead(
            **summary.model_dump(),
            items=[
                OrderItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    product_name=it.product_name,
                    size=it.size,
                    price=float(it.price),
                    quantity=it.quantity,
                    image=it.image,
                    line_total=float(it.price * it.quantity),
                )
                for it in items
            ],
        )
