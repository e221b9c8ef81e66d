"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database built from the ORM metadata, an
ASGI client against the real application with the session, health prober
and credential verifier swapped for test doubles, and JWTs minted with the
same secret the service verifies against.
"""
import os
from collections.abc import AsyncGenerator
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio
from cryptography.fernet import Fernet
from fastapi import Depends
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Test environment setup, before the application reads its settings
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ["SEED_ON_STARTUP"] = "false"

from package_manager.core.config import settings  # noqa: E402
from package_manager.core.database import get_db  # noqa: E402
from package_manager.main import app  # noqa: E402
from package_manager.models import Base  # noqa: E402
from package_manager.services.catalog_seeder import CatalogSeeder  # noqa: E402
from package_manager.services.health_prober import HealthProber, get_health_prober  # noqa: E402
from package_manager.services.integration_verifier import (  # noqa: E402
    IntegrationVerifier,
    get_integration_verifier,
)


# =============================================================================
# Upstream doubles
# =============================================================================

class UpstreamStub:
    """
    Programmable stand-in for an HTTP upstream, served through httpx.MockTransport.

    Either answers with `status_code` / `json_body` / `text_body`, or raises
    `error` to simulate a transport failure. Every request is recorded.
    """

    def __init__(self):
        self.status_code = 200
        self.json_body: Optional[Any] = {"status": "ok"}
        self.text_body: Optional[str] = None
        self.error: Optional[Exception] = None
        self.requests: list[httpx.Request] = []

    def unreachable(self, message: str = "Connection refused") -> None:
        self.error = httpx.ConnectError(message)

    def respond(self, status_code: int, json_body: Optional[Any] = None, text_body: Optional[str] = None) -> None:
        self.error = None
        self.status_code = status_code
        self.json_body = json_body
        self.text_body = text_body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text_body is not None:
            return httpx.Response(self.status_code, text=self.text_body)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def package_service():
    """Health endpoint of installed package services."""
    return UpstreamStub()


@pytest.fixture
def provider():
    """Third-party provider API hit by credential tests."""
    return UpstreamStub()


@pytest.fixture
def prober(package_service):
    return HealthProber(transport=package_service.transport)


# =============================================================================
# Database fixtures
# =============================================================================

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory) -> None:
    """Built-in catalog in place, as after startup."""
    async with session_factory() as session:
        await CatalogSeeder(session).seed()


# =============================================================================
# Auth fixtures
# =============================================================================

def make_token(role: str, email: str = "admin@example.com", user_id: str = "user-1") -> str:
    return jwt.encode(
        {"userId": user_id, "email": email, "role": role},
        settings.secret_key,
        algorithm=settings.algorithm,
    )


def auth_headers(role: str, email: str = "admin@example.com") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(role, email)}"}


@pytest.fixture
def platform_admin_headers():
    return auth_headers("platform_admin", "root@example.com")


@pytest.fixture
def admin_headers():
    return auth_headers("admin", "admin@example.com")


@pytest.fixture
def viewer_headers():
    return auth_headers("viewer", "viewer@example.com")


# =============================================================================
# Application client
# =============================================================================

@pytest_asyncio.fixture
async def client(session_factory, package_service, provider) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_get_health_prober():
        return HealthProber(transport=package_service.transport)

    def override_get_integration_verifier(session: AsyncSession = Depends(get_db)):
        return IntegrationVerifier(session, transport=provider.transport)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_health_prober] = override_get_health_prober
    app.dependency_overrides[get_integration_verifier] = override_get_integration_verifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
