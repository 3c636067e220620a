"""
Request-boundary authentication.

AuthGateway turns the bearer credential presented with a request into
either a fully resolved AuthenticatedUser or anonymous. There is no
partially trusted outcome: every failed step yields anonymous, and tells
the caller to clear the credential carrier.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from shared.models import AuthenticatedUser, ProfileSummary
from shared.store import IIdentityStore

from .models import Profile
from .queries import find_profile_by_user_id, profile_repository, user_repository
from .sessions import SessionManager
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayResolution:
    """Outcome of resolving one request's credential."""

    user: Optional[AuthenticatedUser] = None
    clear_credential: bool = False

    @property
    def authenticated(self) -> bool:
        return self.user is not None


ANONYMOUS = GatewayResolution()
REJECTED = GatewayResolution(user=None, clear_credential=True)


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def summarize_profile(profile: Optional[Profile]) -> Optional[ProfileSummary]:
    if profile is None:
        return None
    return ProfileSummary(
        id=profile.id,
        display_name=profile.display_name,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        banner_url=profile.banner_url,
        metadata=profile.metadata,
    )


class AuthGateway:
    """Resolves bearer credentials into request identities."""

    def __init__(
        self,
        store: IIdentityStore,
        tokens: TokenService,
        sessions: SessionManager,
    ) -> None:
        self._users = user_repository(store)
        self._profiles = profile_repository(store)
        self._tokens = tokens
        self._sessions = sessions

    async def _load_profile(self, user_id: str) -> Optional[ProfileSummary]:
        # best effort: a missing or unreadable profile doesn't void the session
        try:
            return summarize_profile(await find_profile_by_user_id(self._profiles, user_id))
        except Exception:
            logger.warning("Profile lookup failed for user %s", user_id, exc_info=True)
            return None

    async def resolve(self, token: Optional[str]) -> GatewayResolution:
        """
        Resolve a bearer token.

        Steps: verify signature and claims in a worker thread, load the live
        session (expired rows are deleted), check it belongs to the token's
        user, load the user, attach the profile if there is one.
        """
        if not token:
            return ANONYMOUS

        try:
            claims = await asyncio.to_thread(self._tokens.verify, token)
            if claims is None:
                return REJECTED

            session = await self._sessions.get_active(claims.session_id)
            if session is None:
                logger.debug("Token references dead session %s", claims.session_id)
                return REJECTED

            if session.user_id != claims.user_id:
                logger.warning(
                    "Session %s does not belong to token subject %s",
                    session.id,
                    claims.user_id,
                )
                return REJECTED

            user = await self._users.find_by_id(session.user_id)
            if user is None:
                await self._sessions.revoke(session.id)
                return REJECTED

            return GatewayResolution(
                user=AuthenticatedUser(
                    id=user.id,
                    username=user.username,
                    role=user.role.value,
                    session_id=session.id,
                    did=user.did,
                    profile=await self._load_profile(user.id),
                )
            )
        except Exception:
            # fail to anonymous, never to a partially resolved identity
            logger.exception("Session resolution failed")
            return REJECTED
