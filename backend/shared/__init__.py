"""
Shared infrastructure for the Syr identity backend.

This package contains cross-cutting concerns used by multiple modules:
- config: Centralized settings management
- store: Persistence boundary protocol and in-memory store
- database: Supabase-backed store
- repository: Generic typed table access
- exceptions: Base exception classes and the closed ErrorKind set

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .exceptions import (
    ErrorKind,
    SyrError,
    ValidationError,
    AuthenticationError,
    InvalidCredentialsError,
    UnauthenticatedError,
    AlreadyExistsError,
    NotFoundError,
    InternalError,
)
from .models import AuthenticatedUser, ProfileSummary
from .repository import Repository
from .store import (
    IIdentityStore,
    InMemoryIdentityStore,
    StoreError,
    UniqueViolationError,
)

__all__ = [
    "Settings",
    "get_settings",
    "ErrorKind",
    "SyrError",
    "ValidationError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "UnauthenticatedError",
    "AlreadyExistsError",
    "NotFoundError",
    "InternalError",
    "AuthenticatedUser",
    "ProfileSummary",
    "Repository",
    "IIdentityStore",
    "InMemoryIdentityStore",
    "StoreError",
    "UniqueViolationError",
]
