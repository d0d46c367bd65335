"""Pytest fixtures for the booking service tests."""

import os

# settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

import diaglab.data.models  # noqa: F401
from diaglab.api.deps import get_lock_service
from diaglab.data.database import Base, SessionLocal, engine
from diaglab.data.models import ProductModel, SessionModel, UserModel
from diaglab.main import create_app


class InMemoryLockService:
    """Same contract as LockService, without Redis."""

    def __init__(self):
        self.locks = {}

    @staticmethod
    def cart_key(user_id):
        return f"cart:{user_id}:lock"

    def acquire_cart_lock(self, user_id, owner, ttl):
        key = self.cart_key(user_id)
        if key in self.locks:
            return False
        self.locks[key] = owner
        return True

    def release_cart_lock(self, user_id, owner):
        key = self.cart_key(user_id)
        if self.locks.get(key) == owner:
            del self.locks[key]
            return True
        return False


def future_date(days=3) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def today_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d")


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def lock_service():
    return InMemoryLockService()


@pytest.fixture
def client(lock_service):
    app = create_app()
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    return TestClient(app)


def create_user(db, name="Test Patient", expires_in=timedelta(days=1)):
    user = UserModel(id=str(uuid.uuid4()), name=name, email=f"{uuid.uuid4().hex}@example.com")
    token = uuid.uuid4().hex
    db.add(user)
    db.add(
        SessionModel(
            id=str(uuid.uuid4()),
            user_id=user.id,
            token=token,
            expires_at=datetime.now(timezone.utc) + expires_in,
        )
    )
    db.commit()
    return user.id, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient(db_session):
    """(user_id, headers) for the main test user."""
    return create_user(db_session)


@pytest.fixture
def auth_headers(patient):
    return patient[1]


@pytest.fixture
def other_headers(db_session):
    return create_user(db_session, name="Other Patient")[1]


@pytest.fixture
def make_product(db_session):
    def _make(name="Complete Blood Count", price=300.0, original_price=400.0, **extra):
        product = ProductModel(
            name=name,
            category=extra.pop("category", "test"),
            price=price,
            original_price=original_price,
            discount_percentage=extra.pop("discount_percentage", 0),
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product.id

    return _make
