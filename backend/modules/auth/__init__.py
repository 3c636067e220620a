"""
Authentication module.

Handles credential hashing, bearer tokens, session lifecycle, identity
provisioning and request-boundary session resolution.

Public API:
- IAuthService: Interface for auth operations
- PasswordHasher, TokenService, SessionManager, ProvisioningService, AuthGateway
- Records: Identity, PublicIdentity, Profile, Session, TokenClaims
- Inputs: RegistrationInput, LoginInput, ProfileUpdate
- Auth exceptions: UsernameTakenError, ProfileNotFoundError, etc.
"""

from .interfaces import IAuthService
from .models import (
    Identity,
    PublicIdentity,
    Profile,
    Session,
    SessionState,
    Role,
    TokenClaims,
    RegistrationInput,
    LoginInput,
    ProfileUpdate,
    RegistrationResult,
    LoginResult,
)
from .exceptions import (
    UsernameTakenError,
    ProfileNotFoundError,
    UserNotFoundError,
    TokenConfigurationError,
    PasswordHashingError,
    ProvisioningError,
)
from .passwords import PasswordHasher
from .tokens import TokenService
from .sessions import SessionManager, SessionSweeper
from .provisioning import ProvisioningService, generate_did
from .gateway import AuthGateway, GatewayResolution

__all__ = [
    # Interface
    "IAuthService",
    # Components
    "PasswordHasher",
    "TokenService",
    "SessionManager",
    "SessionSweeper",
    "ProvisioningService",
    "AuthGateway",
    "GatewayResolution",
    "generate_did",
    # Models
    "Identity",
    "PublicIdentity",
    "Profile",
    "Session",
    "SessionState",
    "Role",
    "TokenClaims",
    "RegistrationInput",
    "LoginInput",
    "ProfileUpdate",
    "RegistrationResult",
    "LoginResult",
    # Exceptions
    "UsernameTakenError",
    "ProfileNotFoundError",
    "UserNotFoundError",
    "TokenConfigurationError",
    "PasswordHashingError",
    "ProvisioningError",
]
