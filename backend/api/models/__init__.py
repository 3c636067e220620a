"""API models package."""

from .user import AuthResponse, LogoutResponse, CurrentUserResponse
from .errors import ErrorBody, ErrorResponse

__all__ = [
    "AuthResponse",
    "LogoutResponse",
    "CurrentUserResponse",
    "ErrorBody",
    "ErrorResponse",
]
