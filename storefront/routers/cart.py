# storefront/routers/cart.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import require_client
from storefront.core.config import get_settings
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartCount,
    CartItemCreate,
    CartItemUpdate,
    CartSummary,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(
    cart_repo,
    product_repo,
    max_attempts=get_settings().CART_SAVE_RETRIES,
)


@router.get("", response_model=CartSummary)
def get_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Get current user's cart summary.

    Auth:
      - Only role='client' can access; staff get 403.
    """
    return service.get_cart_summary(session, current_user.id)


@router.get("/count", response_model=CartCount)
def get_cart_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Number of units in the cart (for the header badge).
    """
    return service.get_count(session, current_user.id)


@router.post("", response_model=CartSummary)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Add product to the current user's cart.

    Adding the same product and size again increases that line's quantity.
    """
    return service.add_to_cart(session, current_user.id, payload)


@router.patch("/items/{handle}", response_model=CartSummary)
def update_cart_item(
    handle: str,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Set the quantity of a cart line (0 removes it).
    """
    return service.update_quantity(
        session=session,
        user_id=current_user.id,
        handle=handle,
        payload=payload,
    )


@router.delete("/items/{handle}", response_model=CartSummary)
def remove_cart_item(
    handle: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Remove a line from the cart. Unknown handles are ignored.
    """
    return service.remove_item(session, current_user.id, handle)


@router.delete("", response_model=CartSummary)
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_client),
):
    """
    Clear the entire cart.
    """
    return service.clear_cart(session, current_user.id)
