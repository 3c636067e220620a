"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import (
    AlreadyExistsError,
    InternalError,
    NotFoundError,
    ValidationError,
)


class UsernameTakenError(AlreadyExistsError):
    """Raised when registering a username that already exists."""

    def __init__(self, username: str):
        super().__init__("user", "username", username)


class ProfileNotFoundError(NotFoundError):
    """Raised when an operation requires a profile that doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Profile not found for user: {user_id}",
            code="PROFILE_NOT_FOUND",
            details={"user_id": user_id},
        )


class UserNotFoundError(NotFoundError):
    """Raised when an operation requires a user that doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class TokenConfigurationError(InternalError):
    """Raised when the token signing secret is missing or too weak."""

    def __init__(self, reason: str):
        super().__init__(
            f"Token signing is misconfigured: {reason}",
            code="TOKEN_MISCONFIGURED",
        )


class PasswordHashingError(InternalError):
    """Raised when the password hashing backend fails."""

    def __init__(self):
        super().__init__("Password hashing failed", code="HASHING_FAILED")


class ProvisioningError(InternalError):
    """Raised when a multi-step provisioning sequence fails and was rolled back."""

    def __init__(self, step: str):
        super().__init__(
            f"Provisioning failed at step: {step}",
            code="PROVISIONING_FAILED",
            details={"step": step},
        )


def validation_error_from_pydantic(error: PydanticValidationError) -> ValidationError:
    """Convert a Pydantic ValidationError into a field-keyed ValidationError."""
    fields: dict[str, list[str]] = {}
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ())) or "__root__"
        fields.setdefault(location, []).append(issue.get("msg", "Invalid value"))
    return ValidationError(fields=fields)
