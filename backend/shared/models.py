"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class ProfileSummary(BaseModel):
    """Public subset of a profile attached to the request context."""

    id: str
    display_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    Populated by the auth gateway only after the bearer token verified and
    the session it references was found live. It is made available to route
    handlers via dependency injection.
    """

    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Unique username")
    role: str = Field(default="USER", description="ADMIN or USER")
    session_id: str = Field(..., description="Live session backing this request")
    did: Optional[str] = Field(None, description="did:web identifier")
    profile: Optional[ProfileSummary] = Field(None, description="Profile, if one exists")

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",
    }

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
