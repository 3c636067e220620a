"""
Session authentication middleware.

Runs the auth gateway on every request: the bearer credential is read
from the session cookie (or an Authorization: Bearer header), resolved
to a live session, and the result stored on request.state.user. Invalid
or stale cookies are deleted on the way out.
"""

from typing import Optional

from fastapi import Depends, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from modules.auth.gateway import extract_bearer
from shared.config import Settings
from shared.exceptions import UnauthenticatedError
from shared.models import AuthenticatedUser

from ..dependencies import get_container


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the bearer token as an HttpOnly, SameSite=Strict cookie."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


class AuthGatewayMiddleware(BaseHTTPMiddleware):
    """Resolves the request's credential before any route runs."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        container = get_container(request)
        settings = container.settings

        token = request.cookies.get(settings.session_cookie_name)
        from_cookie = bool(token)
        if not token:
            token = extract_bearer(request.headers.get("authorization"))

        resolution = await container.gateway.resolve(token)
        request.state.user = resolution.user

        response = await call_next(request)
        if resolution.clear_credential and from_cookie:
            clear_session_cookie(response, settings)
        return response


async def get_optional_user(request: Request) -> Optional[AuthenticatedUser]:
    """
    Dependency that optionally extracts user if authenticated.

    Use this for endpoints that work with or without authentication.

    Usage:
        @router.get("/public")
        async def public_route(user: Optional[AuthenticatedUser] = Depends(get_optional_user)):
            if user:
                return {"message": f"Hello, {user.username}"}
            return {"message": "Hello, anonymous"}
    """
    return getattr(request.state, "user", None)


async def get_current_user(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Use this for endpoints that require a logged-in user.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if user is None:
        raise UnauthenticatedError()
    return user


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
OptionalAuth = Depends(get_optional_user)
