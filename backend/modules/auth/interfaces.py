"""
Authentication module interface.

Other modules and the routing layer should depend on IAuthService, not
the concrete implementation. This enables testing with mocks.
"""

from typing import Any, Optional, Protocol, Union, runtime_checkable

from shared.models import AuthenticatedUser

from .models import (
    LoginInput,
    LoginResult,
    Profile,
    ProfileUpdate,
    RegistrationInput,
    RegistrationResult,
)


@runtime_checkable
class IAuthService(Protocol):
    """
    Public operation surface of the identity core.

    Expected failures are raised as SyrError subclasses whose ErrorKind
    the routing layer maps to a status code.
    """

    async def register(
        self, data: Union[RegistrationInput, dict[str, Any]]
    ) -> RegistrationResult:
        """
        Register a new user with a profile and a first session.

        Raises:
            ValidationError: If the input is malformed
            AlreadyExistsError: If the username is taken
        """
        ...

    async def login(self, credentials: Union[LoginInput, dict[str, Any]]) -> LoginResult:
        """
        Open a new session for a username/password pair.

        Raises:
            ValidationError: If the input is malformed
            InvalidCredentialsError: Unknown username or wrong password
        """
        ...

    async def logout(self, session_id: Optional[str]) -> None:
        """Revoke a session. Always succeeds."""
        ...

    async def logout_all(self, user_id: str) -> int:
        """Revoke every session of a user. Returns the number revoked."""
        ...

    async def validate_session(self, token: Optional[str]) -> Optional[AuthenticatedUser]:
        """
        Resolve a bearer token to the user behind its live session.

        Returns:
            AuthenticatedUser if valid, None otherwise
        """
        ...

    async def get_profile(self, user_id: str) -> Profile:
        """
        Get a user's profile.

        Raises:
            NotFoundError: If the user has no profile
        """
        ...

    async def create_or_get_profile(self, user_id: str) -> Profile:
        """
        Return the user's profile, creating a default one if missing.

        Concurrent callers for the same user all get the same profile.

        Raises:
            NotFoundError: If the user does not exist
        """
        ...

    async def update_profile(
        self, user_id: str, patch: Union[ProfileUpdate, dict[str, Any]]
    ) -> Profile:
        """
        Merge a partial update into the user's profile.

        Raises:
            ValidationError: If the patch is malformed
            NotFoundError: If the user has no profile
        """
        ...

    async def sweep_expired_sessions(self) -> int:
        """Delete every expired session. Returns the number deleted."""
        ...
