"""
Authentication service implementation.

Facade over provisioning, sessions and the gateway. Validates raw input
into the module's input models before anything touches the store.
"""

import logging
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.models import AuthenticatedUser

from .exceptions import ProfileNotFoundError, validation_error_from_pydantic
from .gateway import AuthGateway
from .interfaces import IAuthService
from .models import (
    LoginInput,
    LoginResult,
    Profile,
    ProfileUpdate,
    RegistrationInput,
    RegistrationResult,
)
from .provisioning import ProvisioningService
from .sessions import SessionManager

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_input(model: type[M], data: Union[M, dict[str, Any]]) -> M:
    """
    Validate raw input into a model.

    Raises:
        ValidationError: With per-field messages if the input is rejected
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise validation_error_from_pydantic(e) from e


class AuthService(IAuthService):
    """Implementation of the authentication service."""

    def __init__(
        self,
        provisioning: ProvisioningService,
        sessions: SessionManager,
        gateway: AuthGateway,
    ) -> None:
        self._provisioning = provisioning
        self._sessions = sessions
        self._gateway = gateway

    async def register(
        self, data: Union[RegistrationInput, dict[str, Any]]
    ) -> RegistrationResult:
        registration = parse_input(RegistrationInput, data)
        return await self._provisioning.register(
            username=registration.username,
            password=registration.password,
            display_name=registration.display_name,
            email=registration.email,
        )

    async def login(self, credentials: Union[LoginInput, dict[str, Any]]) -> LoginResult:
        login = parse_input(LoginInput, credentials)
        return await self._provisioning.login(login.username, login.password)

    async def logout(self, session_id: Optional[str]) -> None:
        if session_id:
            await self._provisioning.logout(session_id)

    async def logout_all(self, user_id: str) -> int:
        revoked = await self._sessions.revoke_all(user_id)
        logger.info("Revoked %d session(s) for user %s", revoked, user_id)
        return revoked

    async def validate_session(self, token: Optional[str]) -> Optional[AuthenticatedUser]:
        return (await self._gateway.resolve(token)).user

    async def get_profile(self, user_id: str) -> Profile:
        profile = await self._provisioning.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    async def create_or_get_profile(self, user_id: str) -> Profile:
        return await self._provisioning.create_or_get_profile(user_id)

    async def update_profile(
        self, user_id: str, patch: Union[ProfileUpdate, dict[str, Any]]
    ) -> Profile:
        update = parse_input(ProfileUpdate, patch)
        return await self._provisioning.update_profile(user_id, update)

    async def sweep_expired_sessions(self) -> int:
        return await self._sessions.sweep_expired()
