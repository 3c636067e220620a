"""
Authentication module data models.

Records (Identity, Profile, Session) mirror the rows in the users,
profiles and sessions tables. Input models (RegistrationInput, LoginInput,
ProfileUpdate) are the input validator: they either accept structured data
or reject it with field errors.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, field_validator


USERNAME_PATTERN = r"^[A-Za-z0-9_-]+$"


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class SessionState(str, Enum):
    """Lifecycle state of a session row."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


# -----------------------------------------------------------------------------
# Stored records
# -----------------------------------------------------------------------------


class PublicIdentity(BaseModel):
    """A user account as returned to callers. Never carries the password hash."""

    id: str
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: Optional[str] = None
    did: Optional[str] = Field(None, description="did:web identifier")
    role: Role = Role.USER
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra="ignore")


class Identity(PublicIdentity):
    """A user account row, including the argon2 password hash."""

    password_hash: str = Field(..., repr=False)

    def to_public(self) -> PublicIdentity:
        return PublicIdentity.model_validate(self.model_dump(exclude={"password_hash"}))


class Profile(BaseModel):
    """User profile. Exactly one per user (unique user_id)."""

    id: str
    user_id: str
    display_name: str = Field(..., min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra="ignore")

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class Session(BaseModel):
    """Server-side session row referenced by a bearer token."""

    id: str
    user_id: str
    token: str = Field(..., min_length=64, max_length=64, repr=False)
    expires_at: datetime
    created_at: datetime

    model_config = ConfigDict(extra="ignore")

    def state(self, now: datetime) -> SessionState:
        """ACTIVE iff now < expires_at. REVOKED rows no longer exist, so never returned here."""
        return SessionState.ACTIVE if now < self.expires_at else SessionState.EXPIRED

    def is_active(self, now: datetime) -> bool:
        return self.state(now) is SessionState.ACTIVE


# -----------------------------------------------------------------------------
# Token claims
# -----------------------------------------------------------------------------


class TokenClaims(BaseModel):
    """
    Identity claims carried by the bearer token.

    Serialized with camelCase keys (userId, sessionId) inside the JWT.
    """

    user_id: str = Field(..., alias="userId", min_length=1)
    username: str = Field(..., min_length=1)
    role: Role
    session_id: str = Field(..., alias="sessionId", min_length=1)

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


# -----------------------------------------------------------------------------
# Inputs
# -----------------------------------------------------------------------------


class RegistrationInput(BaseModel):
    """Registration request. Email is optional."""

    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=256, repr=False)
    display_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=254)

    model_config = ConfigDict(extra="forbid")

    @field_validator("password")
    @classmethod
    def _password_strength(cls, value: str) -> str:
        if not any(c.isupper() for c in value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in value):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in value):
            raise ValueError("Password must contain at least one number")
        return value

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and ("@" not in value or value.startswith("@") or value.endswith("@")):
            raise ValueError("Invalid email address")
        return value


class LoginInput(BaseModel):
    """Login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)

    model_config = ConfigDict(extra="forbid")


class ProfileUpdate(BaseModel):
    """Partial profile update. Only the fields that are set get merged."""

    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[AnyUrl] = None
    banner_url: Optional[AnyUrl] = None
    metadata: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("display_name")
    @classmethod
    def _display_name_required(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("display_name cannot be cleared")
        return value

    def to_patch(self) -> dict[str, Any]:
        """Fields explicitly provided by the caller, JSON-ready."""
        return self.model_dump(exclude_unset=True, mode="json")


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


class RegistrationResult(BaseModel):
    user: PublicIdentity
    profile: Profile
    session: Session
    token: str = Field(..., repr=False)


class LoginResult(BaseModel):
    user: PublicIdentity
    profile: Optional[Profile] = None
    session: Session
    token: str = Field(..., repr=False)
