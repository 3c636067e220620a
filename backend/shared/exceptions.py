"""
Base exception classes for the Syr identity backend.

Each module defines its own exceptions that inherit from these bases.
Every exception carries an ErrorKind from a closed set, so callers (and the
HTTP layer) branch on the kind, never on the message text.
"""

from enum import Enum
from typing import Optional, Any


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced by the identity core."""

    VALIDATION = "VALIDATION"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INTERNAL = "INTERNAL"


class SyrError(Exception):
    """
    Base exception for all Syr errors.

    All custom exceptions should inherit from this class.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SyrError):
    """Input validation failed."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Invalid input data",
        fields: Optional[dict[str, list[str]]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(
            message,
            code=code or "VALIDATION_ERROR",
            details={"fields": fields or {}},
        )
        self.fields = fields or {}


class AuthenticationError(SyrError):
    """Authentication failed (invalid or missing credentials)."""

    kind = ErrorKind.UNAUTHENTICATED


class InvalidCredentialsError(AuthenticationError):
    """Unknown username or wrong password. The two cases are indistinguishable."""

    kind = ErrorKind.INVALID_CREDENTIALS

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class UnauthenticatedError(AuthenticationError):
    """Missing, invalid or expired session."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHENTICATED")


class AlreadyExistsError(SyrError):
    """A uniqueness rule was violated."""

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, resource: str, field: str, value: Optional[str] = None):
        super().__init__(
            f"{resource.capitalize()} with this {field} already exists",
            code="CONFLICT",
            details={"resource": resource, "field": field},
        )
        self.resource = resource
        self.field = field
        self.value = value


class NotFoundError(SyrError):
    """Resource not found."""

    kind = ErrorKind.NOT_FOUND


class InternalError(SyrError):
    """Persistence failure, hashing failure or signing misconfiguration."""

    kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "Internal error",
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code=code or "INTERNAL_ERROR", details=details)
