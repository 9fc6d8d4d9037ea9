"""
Shared fixtures.

The app reads its settings at import time, so the environment is filled
in before anything from `storefront` is imported.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from storefront.core.config import get_settings
from storefront.database import get_session
from storefront.main import app
from storefront.models.product import Category, Product
from storefront.models.user import Role, User
from storefront.repositories.user_repo import UserRepository
from storefront.services import category_service, product_service

PUBLIC_PREFIX = "https://test-project.supabase.co/storage/v1/object/public/assets/"


class FakeStorage:
    """
    Stand-in for Supabase Storage: remembers uploads and deletions.
    """

    def __init__(self):
        self.uploaded: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def upload(self, path: str, file_bytes: bytes, content_type: str) -> str:
        self.uploaded[path] = file_bytes
        return PUBLIC_PREFIX + path

    def delete(self, url: str) -> None:
        self.deleted.append(url)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def storage(monkeypatch) -> FakeStorage:
    fake = FakeStorage()
    monkeypatch.setattr(product_service, "upload_to_storage", fake.upload)
    monkeypatch.setattr(category_service, "upload_to_storage", fake.upload)
    monkeypatch.setattr(product_service, "delete_public_url", fake.delete)
    return fake


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(sub: str, email: str, **claims) -> str:
    payload = {
        "sub": sub,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        **claims,
    }
    settings = get_settings()
    return jwt.encode(
        payload, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG
    )


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(str(user.id), user.email)}"}


@pytest.fixture
def make_user(db):
    repo = UserRepository()

    def _make(role: Role = Role.CLIENT, is_active: bool = True, name: str = "Test") -> User:
        user_id = uuid.uuid4()
        return repo.create(
            db,
            User(
                id=user_id,
                email=f"{user_id.hex[:8]}@example.com",
                name=name,
                role=role,
                is_active=is_active,
            ),
        )

    return _make


@pytest.fixture
def client_user(make_user) -> User:
    return make_user(Role.CLIENT)


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(Role.ADMIN)


@pytest.fixture
def make_category(db):
    def _make(name: str = "Shirts") -> Category:
        category = Category(name=name)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture
def make_product(db, make_category):
    def _make(**overrides) -> Product:
        if "category_id" not in overrides:
            overrides["category_id"] = make_category(f"cat-{uuid.uuid4().hex[:6]}").id
        fields = {
            "title": "Shirt",
            "description": "Cotton shirt",
            "price": Decimal("20000.00"),
            "stock": 10,
            "images": ["a.jpg"],
            "sizes": [],
        }
        fields.update(overrides)
        product = Product(**fields)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make
