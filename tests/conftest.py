import os
import sys
import pytest
from unittest.mock import MagicMock

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Тестовая БД в памяти, подменяем до импорта app
import storefront.infrastructure.db as database
from storefront.infrastructure.models import Base

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)
database.engine = test_engine
database.SessionLocal = TestingSessionLocal

from storefront.main import app
from storefront.domain.entities import Role
from storefront.infrastructure.repositories import UserRepository
from storefront.infrastructure.security import PasswordHasher, create_access_token
from storefront.interfaces.http.routers.auth import get_limiter


# Отключаем rate limiting в тестах
def override_get_limiter():
    mock_limiter = MagicMock()
    def noop_limit(*args, **kwargs):
        def decorator(func):
            return func
        return decorator
    mock_limiter.limit = noop_limit
    return mock_limiter

app.dependency_overrides[get_limiter] = override_get_limiter


@pytest.fixture(autouse=True)
def redis_store(monkeypatch):
    """Redis в памяти для чёрного списка токенов"""
    store = {}
    client = MagicMock()
    client.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)
    client.exists.side_effect = lambda key: int(key in store)
    monkeypatch.setattr("storefront.infrastructure.cache.get_redis", lambda: client)
    return store


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=test_engine)
    database.init_db()
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session):
    yield TestClient(app)


@pytest.fixture
def make_user(db_session):
    """Создаёт пользователя напрямую в БД, возвращает (user, token)"""
    hasher = PasswordHasher()

    def _make(email="user@example.com", role=Role.CLIENT, password="password123", name="Test User"):
        user = UserRepository(db_session).create(name, email, hasher.hash(password), role)
        return user, create_access_token(user)
    return _make


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
