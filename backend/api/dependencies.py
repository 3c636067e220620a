"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together the identity
core. The container is built by the application factory, started and
stopped by the application lifespan, and stored on app.state. Nothing
here is a lazily created global: the store handle exists exactly between
startup() and shutdown().
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import Request

from modules.auth.gateway import AuthGateway
from modules.auth.interfaces import IAuthService
from modules.auth.passwords import PasswordHasher
from modules.auth.provisioning import ProvisioningService
from modules.auth.service import AuthService
from modules.auth.sessions import SessionManager, SessionSweeper
from modules.auth.tokens import TokenService
from shared.config import Settings
from shared.database import SupabaseIdentityStore, connect_supabase_store
from shared.store import IIdentityStore, InMemoryIdentityStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    Services are built in startup() in dependency order:
    store -> hasher -> tokens -> sessions -> provisioning -> gateway -> auth.

    A store may be passed in (tests pass an InMemoryIdentityStore);
    otherwise one is created from settings.store_backend.
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[IIdentityStore] = None,
        hasher: Optional[PasswordHasher] = None,
        run_sweeper: bool = True,
    ) -> None:
        self.settings = settings
        self._store = store
        self._owns_store = store is None
        self._hasher = hasher
        self._run_sweeper = run_sweeper
        self._tokens: Optional[TokenService] = None
        self._sessions: Optional[SessionManager] = None
        self._provisioning: Optional[ProvisioningService] = None
        self._gateway: Optional[AuthGateway] = None
        self._auth: Optional[AuthService] = None
        self._sweeper: Optional[SessionSweeper] = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def _open_store(self) -> IIdentityStore:
        if self.settings.store_backend == "memory":
            logger.warning("Using in-memory identity store; data is lost on restart")
            return InMemoryIdentityStore()
        return await connect_supabase_store(self.settings)

    async def startup(self) -> None:
        """Open the store and build every service."""
        if self._started:
            return

        settings = self.settings
        if self._store is None:
            self._store = await self._open_store()

        hasher = self._hasher or PasswordHasher(
            memory_cost=settings.argon2_memory_cost,
            time_cost=settings.argon2_time_cost,
            parallelism=settings.argon2_parallelism,
        )
        self._hasher = hasher
        self._tokens = TokenService(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            algorithm=settings.jwt_algorithm,
        )
        self._sessions = SessionManager(
            self._store,
            ttl=timedelta(days=settings.session_ttl_days),
        )
        self._provisioning = ProvisioningService(
            store=self._store,
            hasher=hasher,
            tokens=self._tokens,
            sessions=self._sessions,
            did_domain=settings.did_web_domain,
            token_ttl=timedelta(seconds=settings.jwt_expires_in),
        )
        self._gateway = AuthGateway(self._store, self._tokens, self._sessions)
        self._auth = AuthService(self._provisioning, self._sessions, self._gateway)

        if self._run_sweeper and settings.session_sweep_interval_seconds > 0:
            self._sweeper = SessionSweeper(
                self._sessions, settings.session_sweep_interval_seconds
            )
            self._sweeper.start()

        self._started = True

    async def shutdown(self) -> None:
        """Stop background work and close the store if this container opened it."""
        if self._sweeper is not None:
            await self._sweeper.stop()
            self._sweeper = None
        if self._owns_store and isinstance(self._store, SupabaseIdentityStore):
            await self._store.close()
        if self._owns_store:
            self._store = None
        self._started = False

    def _require(self, service):
        if not self._started or service is None:
            raise RuntimeError("ServiceContainer is not started")
        return service

    @property
    def store(self) -> IIdentityStore:
        return self._require(self._store)

    @property
    def tokens(self) -> TokenService:
        return self._require(self._tokens)

    @property
    def sessions(self) -> SessionManager:
        return self._require(self._sessions)

    @property
    def provisioning(self) -> ProvisioningService:
        return self._require(self._provisioning)

    @property
    def gateway(self) -> AuthGateway:
        return self._require(self._gateway)

    @property
    def auth(self) -> IAuthService:
        """Get the auth service instance."""
        return self._require(self._auth)


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency for the application's service container."""
    return request.app.state.container


def get_auth_service(request: Request) -> IAuthService:
    """FastAPI dependency for auth service."""
    return get_container(request).auth


def get_settings_dependency(request: Request) -> Settings:
    """FastAPI dependency for the identity-core settings."""
    return get_container(request).settings
