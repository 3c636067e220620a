"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
Every fixture builds on an InMemoryIdentityStore and a low-cost argon2
configuration so the suite runs without a database and in reasonable time.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from api.app import create_app
from api.config import APISettings
from api.dependencies import ServiceContainer
from modules.auth.gateway import AuthGateway
from modules.auth.models import Identity
from modules.auth.passwords import PasswordHasher
from modules.auth.provisioning import ProvisioningService
from modules.auth.service import AuthService
from modules.auth.sessions import SessionManager
from modules.auth.tokens import TokenService
from shared.config import Settings
from shared.store import USERS_TABLE, InMemoryIdentityStore


# Only for tests; long enough to pass the minimum secret length check
TEST_JWT_SECRET = "test-secret-key-for-testing-only-0123456789"
TEST_DID_DOMAIN = "syr.example"
STRONG_PASSWORD = "Secur3Pass!"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at the real current time, so issued JWTs stay valid."""
    return FakeClock(datetime.now(timezone.utc))


@pytest.fixture
def store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Argon2id with minimal cost for speed."""
    return PasswordHasher(memory_cost=1024, time_cost=1, parallelism=1)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(SecretStr(TEST_JWT_SECRET))


@pytest.fixture
def sessions(store, clock) -> SessionManager:
    return SessionManager(store, ttl=timedelta(days=7), clock=clock)


@pytest.fixture
def provisioning(store, hasher, tokens, sessions, clock) -> ProvisioningService:
    return ProvisioningService(
        store=store,
        hasher=hasher,
        tokens=tokens,
        sessions=sessions,
        did_domain=TEST_DID_DOMAIN,
        clock=clock,
    )


@pytest.fixture
def gateway(store, tokens, sessions) -> AuthGateway:
    return AuthGateway(store, tokens, sessions)


@pytest.fixture
def auth_service(provisioning, sessions, gateway) -> AuthService:
    return AuthService(provisioning, sessions, gateway)


@pytest.fixture
def add_user(store, hasher, clock):
    """Insert a user row directly, bypassing provisioning (no profile, no session)."""

    async def _add(username: str = "bob", password: str = STRONG_PASSWORD) -> Identity:
        now = clock()
        record = await store.create(
            USERS_TABLE,
            {
                "username": username,
                "password_hash": hasher.hash(password),
                "did": f"did:web:{TEST_DID_DOMAIN}:users:{username}",
                "role": "USER",
                "created_at": now,
                "updated_at": now,
            },
        )
        return Identity.model_validate(record)

    return _add


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        store_backend="memory",
        jwt_secret=SecretStr(TEST_JWT_SECRET),
        did_web_domain=TEST_DID_DOMAIN,
        session_sweep_interval_seconds=0,
    )


@pytest.fixture
def container(app_settings, store, hasher) -> ServiceContainer:
    return ServiceContainer(app_settings, store=store, hasher=hasher, run_sweeper=False)


@pytest.fixture
def client(container):
    """TestClient with the lifespan running, so the container is started."""
    app = create_app(container, APISettings(_env_file=None))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registration() -> dict:
    return {
        "username": "alice",
        "password": STRONG_PASSWORD,
        "display_name": "Alice",
    }
