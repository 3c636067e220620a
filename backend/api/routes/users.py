"""
User-related endpoints.

Provides endpoints for the current user and their profile.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from modules.auth.interfaces import IAuthService
from modules.auth.models import Profile
from shared.models import AuthenticatedUser

from ..dependencies import get_auth_service
from ..middleware.auth import RequireAuth
from ..models.user import CurrentUserResponse

router = APIRouter()


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = RequireAuth,
) -> CurrentUserResponse:
    """
    Get the identity behind the current session.

    Requires authentication.
    """
    return CurrentUserResponse(
        id=user.id,
        username=user.username,
        role=user.role,
        did=user.did,
        session_id=user.session_id,
        profile=user.profile,
    )


@router.get("/me/profile", response_model=Profile)
async def get_my_profile(
    user: AuthenticatedUser = RequireAuth,
    service: IAuthService = Depends(get_auth_service),
) -> Profile:
    """Get the current user's full profile. 404 if none exists."""
    return await service.get_profile(user.id)


@router.patch("/me/profile", response_model=Profile)
async def update_my_profile(
    patch: dict[str, Any] = Body(...),
    user: AuthenticatedUser = RequireAuth,
    service: IAuthService = Depends(get_auth_service),
) -> Profile:
    """
    Merge a partial update into the current user's profile.

    Only the fields present in the body change.
    """
    return await service.update_profile(user.id, patch)
