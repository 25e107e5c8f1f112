from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from libs.auth.dependencies import create_token, get_current_user
from libs.auth.models import AuthUser
from libs.common.config import Settings, get_settings
from libs.db.kv_store import MemoryKeyValueStore
from services.merch_service.engine import MerchEngine


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest_asyncio.fixture
async def merch_engine(kv_store, settings, clock) -> MerchEngine:
    """Engine over an in-memory store with default fee/routing/markup rules."""
    return await MerchEngine.open(kv_store, settings=settings, clock=clock)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


def make_user(
    user_id: str = "buyer-1",
    *,
    tier: str = "user",
    role: str = "authenticated",
    email: str = "buyer@example.com",
    name: str = "Test Buyer",
) -> AuthUser:
    return AuthUser(sub=user_id, tier=tier, role=role, email=email, name=name)


def make_admin_user() -> AuthUser:
    return make_user("admin-1", role="service_role", email="admin@example.com")


def bearer(user: AuthUser) -> dict[str, str]:
    """Authorization header carrying a signed token for ``user``."""
    token = create_token(
        user.user_id,
        role=user.role,
        tier=user.tier,
        email=user.email,
        name=user.name,
    )
    return {"Authorization": f"Bearer {token}"}


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily replace the authenticated user for ``app``."""
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def merch_app(merch_engine):
    from services.merch_service.app.main import create_app

    return create_app(merch_engine)


@pytest_asyncio.fixture
async def merch_client(merch_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=merch_app), base_url="http://test"
    ) as ac:
        yield ac
