# storefront/services/user_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.models.user import Role, User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import UserActiveUpdate, UserRoleUpdate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for User.

    Responsibilities:
      - profile edits (no email / role change through /me)
      - admin role management and activation
      - remove the user's cart together with the user
    """

    def __init__(self, repo: UserRepository, cart_repo: CartRepository):
        self.repo = repo
        self.cart_repo = cart_repo

    # ----- Self profile -----

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """Partial update of the caller's own profile."""
        if payload.name is not None:
            current_user.name = payload.name

        if "mailing_address" in payload.model_fields_set:
            current_user.mailing_address = payload.mailing_address

        if payload.newsletter is not None:
            current_user.newsletter = payload.newsletter

        return self.repo.update(session, current_user)

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: Role | None = None,
    ) -> list[User]:
        return self.repo.list_users(session, skip=skip, limit=limit, role=role)

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    @staticmethod
    def _forbid_self(acting_admin: User, user: User, action: str) -> None:
        if user.id == acting_admin.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"You cannot {action} your own account",
            )

    def update_role(
        self,
        session: Session,
        acting_admin: User,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        """
        Change a user's role. Admins cannot change their own role, which
        also guarantees at least one admin remains.
        """
        user = self.get_user(session, user_id)
        self._forbid_self(acting_admin, user, "change the role of")
        user.role = payload.role
        user = self.repo.update(session, user)
        logger.info("User %s is now %s", user.id, user.role.value)
        return user

    def set_active(
        self,
        session: Session,
        acting_admin: User,
        user_id: uuid.UUID,
        payload: UserActiveUpdate,
    ) -> User:
        user = self.get_user(session, user_id)
        self._forbid_self(acting_admin, user, "deactivate")
        user.is_active = payload.is_active
        return self.repo.update(session, user)

    def delete_user(
        self,
        session: Session,
        acting_admin: User,
        user_id: uuid.UUID,
    ) -> None:
        """Delete a user and their cart."""
        user = self.get_user(session, user_id)
        self._forbid_self(acting_admin, user, "delete")
        self.cart_repo.delete_for_user(session, user.id)
        self.repo.delete(session, user)
        logger.info("Deleted user %s", user_id)
