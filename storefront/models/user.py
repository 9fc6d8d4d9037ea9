# storefront/models/user.py
import enum
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Role(str, enum.Enum):
    """
    Application roles.

    A guest is represented by the absence of a token, not by a role.
    """

    CLIENT = "client"
    ADMIN = "admin"
    SALES_AGENT = "sales_agent"


class User(SQLModel, table=True):
    """
    Persistent user profile.

    Identity:
      - id: MUST match the identity provider's user id (UUID from JWT "sub")

    Password hashes and OAuth links (Google / Facebook) live with the
    identity provider. We only mirror identity, profile fields, and
    application role.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches the identity provider user id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from the identity provider",
    )

    name: str = Field(
        max_length=100,
        description="Display name; first part of email by default",
    )

    role: Role = Field(
        default=Role.CLIENT,
        index=True,
        description="Application role: client | admin | sales_agent",
    )

    is_active: bool = Field(
        default=True,
        description="Deactivated users are rejected by the auth dependency",
    )

    avatar_url: str | None = None
    mailing_address: str | None = Field(default=None, max_length=255)
    newsletter: bool = False

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
