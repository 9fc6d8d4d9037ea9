# storefront/routers/users.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import require_auth, require_admin
from storefront.database import get_session
from storefront.models.user import Role, User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import (
    UserActiveUpdate,
    UserRead,
    UserRoleUpdate,
    UserUpdate,
)
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

service = UserService(UserRepository(), CartRepository())


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    The profile row is auto-created on the first authenticated request.
    """
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).
    """
    return service.update_me(session, current_user, payload)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    role: Role | None = None,
):
    """
    List users (admin only), optionally filtered by role.
    """
    return service.list_users(session, skip, limit, role)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_user(session, user_id)


@router.patch("/{user_id}/role", response_model=UserRead)
def change_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Update a user's role (admin only).

    Allowed roles: client, admin, sales_agent.
    """
    return service.update_role(session, admin, user_id, payload)


@router.patch("/{user_id}/active", response_model=UserRead)
def change_active(
    user_id: uuid.UUID,
    payload: UserActiveUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Activate or deactivate an account (admin only).
    """
    return service.set_active(session, admin, user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Delete a user and their cart (admin only).
    """
    service.delete_user(session, admin, user_id)
    return None
