"""
Auth API endpoints.

Register, login and logout. Successful register/login set the bearer
token as the session cookie; logout always succeeds and always clears it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_auth_service, get_settings_dependency
from api.middleware.auth import (
    clear_session_cookie,
    get_current_user,
    get_optional_user,
    set_session_cookie,
)
from api.models.user import AuthResponse, LogoutResponse
from shared.config import Settings
from shared.models import AuthenticatedUser

from .interfaces import IAuthService
from .models import LoginInput, RegistrationInput

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegistrationInput,
    response: Response,
    service: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> AuthResponse:
    """
    Create an account, its profile and a first session.

    Returns 409 if the username is taken.
    """
    result = await service.register(body)
    set_session_cookie(response, result.token, settings)
    return AuthResponse(
        user=result.user,
        profile=result.profile,
        token=result.token,
        expires_at=result.session.expires_at,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginInput,
    response: Response,
    service: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> AuthResponse:
    """
    Open a new session.

    Unknown usernames and wrong passwords both return the same 401.
    """
    result = await service.login(body)
    set_session_cookie(response, result.token, settings)
    return AuthResponse(
        user=result.user,
        profile=result.profile,
        token=result.token,
        expires_at=result.session.expires_at,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> LogoutResponse:
    """End the current session. Succeeds even without one."""
    await service.logout(user.session_id if user else None)
    clear_session_cookie(response, settings)
    return LogoutResponse()


@router.post("/logout-all", response_model=LogoutResponse)
async def logout_all(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dependency),
) -> LogoutResponse:
    """End every session of the current user, on all devices."""
    revoked = await service.logout_all(user.id)
    clear_session_cookie(response, settings)
    return LogoutResponse(message="Logged out from all sessions", revoked=revoked)
