"""
Identity provisioning: registration, login, logout and profile creation.

Registration writes three rows (user, profile, session). PostgREST has
no multi-statement transactions, so every row written is recorded and
deleted again, newest first, if a later step fails or the request is
cancelled. A rejected registration never leaves a profile or session
behind.

All exclusivity is delegated to the store's unique constraints:
- users.username decides which of two concurrent registrations wins
- profiles.user_id decides which of two concurrent profile creations wins
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from shared.exceptions import InvalidCredentialsError, SyrError
from shared.store import IIdentityStore, UniqueViolationError

from .exceptions import (
    ProfileNotFoundError,
    ProvisioningError,
    UserNotFoundError,
    UsernameTakenError,
)
from .models import (
    Identity,
    LoginResult,
    Profile,
    ProfileUpdate,
    RegistrationResult,
    Role,
    Session,
    TokenClaims,
)
from .passwords import PasswordHasher
from .queries import (
    find_profile_by_user_id,
    find_user_by_username,
    profile_repository,
    user_repository,
    username_exists,
)
from .sessions import SessionManager
from .tokens import TokenService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_did(username: str, domain: str) -> str:
    """Deterministic did:web identifier for a user."""
    return f"did:web:{domain}:users:{username}"


class ProvisioningService:
    """Orchestrates creation of {user, profile, session, token}."""

    def __init__(
        self,
        store: IIdentityStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        sessions: SessionManager,
        did_domain: str,
        token_ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = user_repository(store)
        self._profiles = profile_repository(store)
        self._hasher = hasher
        self._tokens = tokens
        self._sessions = sessions
        self._did_domain = did_domain
        self._token_ttl = token_ttl or sessions.ttl
        self._clock = clock

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _issue_token(self, user: Identity, session: Session) -> str:
        claims = TokenClaims(
            user_id=user.id,
            username=user.username,
            role=user.role,
            session_id=session.id,
        )
        return await asyncio.to_thread(self._tokens.issue, claims, self._token_ttl)

    async def _rollback(self, undo: list[tuple[str, Callable[[], Awaitable[None]]]]) -> None:
        for label, action in reversed(undo):
            try:
                await action()
            except Exception:
                logger.exception("Rollback failed to delete %s; row is orphaned", label)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    async def register(
        self,
        username: str,
        password: str,
        display_name: str,
        email: Optional[str] = None,
    ) -> RegistrationResult:
        """
        Create a user with its profile and a first session.

        Raises:
            UsernameTakenError: If the username is taken (pre-check or race)
            ProvisioningError: If a step failed; rows already written were removed
        """
        # Advisory only; the unique index on users.username is the real arbiter
        if await username_exists(self._users, username):
            raise UsernameTakenError(username)

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        now = self._clock()

        # Pre-assigned so a committed insert is undone even after cancellation
        user_id = str(uuid.uuid4())
        undo: list[tuple[str, Callable[[], Awaitable[None]]]] = [
            (f"users/{user_id}", lambda: self._users.delete(user_id)),
        ]
        step = "user"
        try:
            try:
                user = await self._users.create(
                    {
                        "id": user_id,
                        "username": username,
                        "password_hash": password_hash,
                        "email": email,
                        "did": generate_did(username, self._did_domain),
                        "role": Role.USER.value,
                        "created_at": now,
                        "updated_at": now,
                    }
                )
            except UniqueViolationError as e:
                logger.info("Registration lost username race for %s", username)
                raise UsernameTakenError(username) from e

            step = "profile"
            profile = await self._profiles.create(
                {
                    "user_id": user.id,
                    "display_name": display_name,
                    "metadata": {},
                    "created_at": now,
                    "updated_at": now,
                }
            )
            undo.append((f"profiles/{profile.id}", lambda: self._profiles.delete(profile.id)))

            step = "session"
            session = await self._sessions.create(user.id)
            undo.append((f"sessions/{session.id}", lambda: self._sessions.revoke(session.id)))

            step = "token"
            token = await self._issue_token(user, session)
        except BaseException as e:
            await asyncio.shield(self._rollback(undo))
            if isinstance(e, UsernameTakenError):
                raise
            logger.warning("Registration of %s rolled back at step %s", username, step)
            # store outages keep their own kind; anything unexpected is wrapped
            if isinstance(e, Exception) and (
                not isinstance(e, SyrError) or isinstance(e, UniqueViolationError)
            ):
                raise ProvisioningError(step) from e
            raise

        logger.info("Registered user %s (%s)", user.username, user.id)
        return RegistrationResult(
            user=user.to_public(),
            profile=profile,
            session=session,
            token=token,
        )

    # -------------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------------

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Authenticate with username and password and open a new session.

        Existing sessions stay valid: a user may be logged in on several
        devices at once.

        Raises:
            InvalidCredentialsError: Unknown username or wrong password
        """
        user = await find_user_by_username(self._users, username)
        if user is None:
            await asyncio.to_thread(self._hasher.verify_dummy, password)
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        if not await asyncio.to_thread(self._hasher.verify, user.password_hash, password):
            logger.info("Failed login attempt for user %s", user.id)
            raise InvalidCredentialsError()

        if self._hasher.needs_rehash(user.password_hash):
            await self._upgrade_hash(user, password)

        profile = await find_profile_by_user_id(self._profiles, user.id)
        session = await self._sessions.create(user.id)
        try:
            token = await self._issue_token(user, session)
        except BaseException:
            await asyncio.shield(self._sessions.revoke(session.id))
            raise

        logger.info("User %s logged in", user.id)
        return LoginResult(
            user=user.to_public(),
            profile=profile,
            session=session,
            token=token,
        )

    async def _upgrade_hash(self, user: Identity, password: str) -> None:
        new_hash = await asyncio.to_thread(self._hasher.hash, password)
        await self._users.merge(
            user.id,
            {"password_hash": new_hash, "updated_at": self._clock()},
        )
        logger.info("Upgraded password hash parameters for user %s", user.id)

    async def logout(self, session_id: str) -> None:
        """Revoke a session. Always succeeds, even if it was already gone."""
        await self._sessions.revoke(session_id)

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def create_or_get_profile(
        self,
        user_id: str,
        display_name: Optional[str] = None,
    ) -> Profile:
        """
        Return the user's profile, creating it if it doesn't exist yet.

        Concurrent callers race on the unique index over profiles.user_id.
        The loser of that race reads the winner's row, so every caller gets
        a profile and exactly one row exists.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        now = self._clock()
        try:
            return await self._profiles.create(
                {
                    "user_id": user_id,
                    "display_name": display_name or user.username,
                    "metadata": {},
                    "created_at": now,
                    "updated_at": now,
                }
            )
        except UniqueViolationError:
            existing = await find_profile_by_user_id(self._profiles, user_id)
            if existing is None:
                # winner's row vanished between our insert and our read
                raise ProvisioningError("profile")
            return existing

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        return await find_profile_by_user_id(self._profiles, user_id)

    async def update_profile(self, user_id: str, patch: ProfileUpdate) -> Profile:
        """
        Merge the fields set in patch into the user's profile.

        Raises:
            ProfileNotFoundError: If the user has no profile
        """
        profile = await find_profile_by_user_id(self._profiles, user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        changes = patch.to_patch()
        changes["updated_at"] = self._clock()
        updated = await self._profiles.merge(profile.id, changes)
        if updated is None:
            raise ProfileNotFoundError(user_id)
        return updated
