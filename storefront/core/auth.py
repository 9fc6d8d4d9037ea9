# storefront/core/auth.py
import logging
import uuid
from typing import Any, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session, select

from storefront.core.config import get_settings
from storefront.database import get_session
from storefront.models.user import Role, User

settings = get_settings()
logger = logging.getLogger(__name__)

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token (JWT) issued by Supabase Auth.

    Supabase handles email/password, Google and Facebook sign-in; every
    flow ends with the same kind of token, so this is the only check
    the backend needs.

    Verification:
      - signature (SUPABASE_JWT_SECRET / SUPABASE_JWT_ALG)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _default_name_from_email(email: str) -> str:
    if "@" in email:
        return email.split("@", 1)[0]
    return email


def _profile_from_claims(sub: uuid.UUID, email: str, payload: dict[str, Any]) -> User:
    """
    Build a first-time profile from token claims.

    OAuth sign-ins carry full_name / avatar_url in user_metadata.
    """
    metadata = payload.get("user_metadata") or {}
    name = metadata.get("full_name") or metadata.get("name")
    return User(
        id=sub,
        email=email.lower(),
        name=(name or _default_name_from_email(email))[:100],
        avatar_url=metadata.get("avatar_url"),
        role=Role.CLIENT,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the current user from the bearer JWT.

    Flow:
      1. No Authorization header => guest => None.
      2. Decode JWT => 'sub' (UUID) and 'email'.
      3. Load the profile row; auto-provision it as a client if missing.
      4. Reject deactivated accounts.

    Raises:
        HTTPException(401): malformed token or missing claims.
        HTTPException(403): account deactivated.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email",
        )

    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    user = session.exec(select(User).where(User.id == sub_uuid)).first()

    # Default role = client (staff must be promoted by an admin).
    if user is None:
        user = _profile_from_claims(sub_uuid, email, payload)
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Provisioned profile for user %s", user.id)

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): guest request.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Please log in.",
        )
    return user


def require_roles(*roles: Role) -> Callable[[User], User]:
    """
    Build a dependency that only lets the given roles through.

        @router.post("", dependencies=[Depends(require_roles(Role.ADMIN))])
    """
    allowed = frozenset(roles)

    def checker(user: User = Depends(require_auth)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Required roles: "
                + ", ".join(r.value for r in roles),
            )
        return user

    return checker


def require_admin(user: User = Depends(require_auth)) -> User:
    """
    Enforce admin role.

    Raises:
        HTTPException(403): if role is not admin.
    """
    if user.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return user


def require_client(user: User = Depends(require_auth)) -> User:
    """
    Enforce that only customers (role='client') can access a route.

    Used for cart endpoints. Staff accounts get 403.
    """
    if user.role != Role.CLIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Client privileges required.",
        )
    return user


# Catalog management: admins and sales agents
require_staff = require_roles(Role.ADMIN, Role.SALES_AGENT)
