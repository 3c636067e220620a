"""
User and session response models.

What the HTTP surface returns after register/login/logout and for the
current user. Password hashes never appear here; PublicIdentity has no
such field.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from modules.auth.models import Profile, PublicIdentity
from shared.models import ProfileSummary


class AuthResponse(BaseModel):
    """Returned by register and login. The token is also set as a cookie."""

    user: PublicIdentity
    profile: Optional[Profile] = None
    token: str = Field(..., description="Signed bearer token")
    expires_at: datetime = Field(..., description="When the backing session expires")


class LogoutResponse(BaseModel):
    message: str = "Logged out successfully"
    revoked: Optional[int] = Field(None, description="Sessions revoked (logout-all only)")


class CurrentUserResponse(BaseModel):
    """The identity resolved for the current request."""

    id: str
    username: str
    role: str
    did: Optional[str] = None
    session_id: str
    profile: Optional[ProfileSummary] = None
