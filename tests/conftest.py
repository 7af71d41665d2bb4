"""Shared test fixtures."""

import os

# Settings() requires a secret at import time; tests sign their own tokens with it.
os.environ.setdefault("JWT_SECRET", "test-secret")

from collections.abc import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from src.wl_common.database import get_db_session  # noqa: E402
from src.wl_gateway.api.router import get_identity_client  # noqa: E402
from src.wl_wallet.api.dependencies import get_wallet_service  # noqa: E402
from src.wl_wallet.application.service import WalletApplicationService  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeIdentityClient,
    FakeRateCache,
    FakeRateSource,
    InMemoryWalletRepository,
)


@pytest.fixture
def repo() -> InMemoryWalletRepository:
    return InMemoryWalletRepository()


@pytest.fixture
def rate_cache() -> FakeRateCache:
    return FakeRateCache()


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource(
        rates={"EUR": 1.0, "USD": 1.1, "RUB": 100.0},
        pair_rates={("EUR", "USD"): 0.9, ("USD", "EUR"): 1.1, ("EUR", "RUB"): 0.01},
    )


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def wallet_service(
    repo: InMemoryWalletRepository,
    rate_cache: FakeRateCache,
    rate_source: FakeRateSource,
) -> WalletApplicationService:
    return WalletApplicationService(
        cache=rate_cache, rate_source=rate_source, repo=repo, rates_ttl_seconds=30
    )


@pytest.fixture
def identity() -> FakeIdentityClient:
    return FakeIdentityClient()


@pytest.fixture
async def client(
    wallet_service: WalletApplicationService,
    identity: FakeIdentityClient,
    db: AsyncMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the FastAPI app, wired to in-memory fakes."""

    async def _db() -> AsyncGenerator[AsyncMock, None]:
        yield db

    app.dependency_overrides[get_wallet_service] = lambda: wallet_service
    app.dependency_overrides[get_identity_client] = lambda: identity
    app.dependency_overrides[get_db_session] = _db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
