"""
Server-side session lifecycle.

A session is ACTIVE while now < expires_at, EXPIRED once that no longer
holds (the row still exists), and REVOKED once the row is deleted. Expiry
is a pure function of the stored expires_at and the clock, so lazy
per-row eviction (validate) and the bulk sweep (sweep_expired) can run
concurrently and always converge on deletion.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from shared.store import IIdentityStore

from .models import Identity, Session
from .queries import (
    delete_expired_sessions,
    delete_sessions_for_user,
    find_session_by_token,
    session_repository,
    user_repository,
)

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=7)
SESSION_TOKEN_BYTES = 32  # 256 bits, 64 hex chars


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_token() -> str:
    """Random 256-bit token from the OS CSPRNG, hex encoded."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


class SessionManager:
    """Creates, validates, revokes and sweeps session records."""

    def __init__(
        self,
        store: IIdentityStore,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sessions = session_repository(store)
        self._users = user_repository(store)
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def create(self, user_id: str) -> Session:
        """Persist a new session for user_id expiring after the configured TTL."""
        now = self._clock()
        return await self._sessions.create(
            {
                "user_id": user_id,
                "token": generate_session_token(),
                "expires_at": now + self._ttl,
                "created_at": now,
            }
        )

    async def _evict_if_expired(self, session: Optional[Session]) -> Optional[Session]:
        if session is None:
            return None
        if not session.is_active(self._clock()):
            await self._sessions.delete(session.id)
            logger.debug("Evicted expired session %s", session.id)
            return None
        return session

    async def get_active(self, session_id: str) -> Optional[Session]:
        """Return the session if it exists and is active; expired rows are deleted."""
        return await self._evict_if_expired(await self._sessions.find_by_id(session_id))

    async def _owner(self, session: Optional[Session]) -> Optional[Identity]:
        if session is None:
            return None
        user = await self._users.find_by_id(session.user_id)
        if user is None:
            # owner is gone, the session can never authorize anything again
            await self._sessions.delete(session.id)
            return None
        return user

    async def validate(self, session_id: str) -> Optional[Identity]:
        """
        Resolve a session id to its owning identity.

        Returns:
            The identity if the session is active, otherwise None. Expired
            sessions are deleted as a side effect.
        """
        return await self._owner(await self.get_active(session_id))

    async def validate_token(self, token: str) -> Optional[Identity]:
        """Same as validate(), looking the session up by its raw random token."""
        session = await find_session_by_token(self._sessions, token)
        return await self._owner(await self._evict_if_expired(session))

    async def revoke(self, session_id: str) -> None:
        """Delete a session. Revoking a missing session is not an error."""
        await self._sessions.delete(session_id)

    async def revoke_all(self, user_id: str) -> int:
        """Delete every session of a user. Returns how many were removed."""
        return await delete_sessions_for_user(self._sessions, user_id)

    async def sweep_expired(self) -> int:
        """Bulk-delete every session whose expires_at has passed."""
        removed = await delete_expired_sessions(self._sessions, self._clock())
        if removed:
            logger.info("Swept %d expired session(s)", removed)
        return removed


class SessionSweeper:
    """
    Periodically runs SessionManager.sweep_expired in the background.

    Lazy eviction bounds staleness for sessions that are still used; the
    sweeper bounds storage growth for sessions nobody presents again.
    """

    def __init__(self, sessions: SessionManager, interval_seconds: float) -> None:
        self._sessions = sessions
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        try:
            return await self._sessions.sweep_expired()
        except Exception:
            logger.exception("Session sweep failed; retrying on next tick")
            return 0

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._loop(), name="session-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
