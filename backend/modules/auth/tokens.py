"""
Signed bearer tokens (JWT, HS256 by default).

Tokens carry TokenClaims plus iat/exp/iss/aud. verify() returns the
claims only when signature, algorithm, issuer, audience and expiry all
check out; every failure collapses to the same None result.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from pydantic import SecretStr, ValidationError as PydanticValidationError

from .exceptions import TokenConfigurationError
from .models import TokenClaims

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32
REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "userId", "sessionId", "username", "role"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed bearer tokens."""

    def __init__(
        self,
        secret: SecretStr,
        issuer: str = "syr",
        audience: str = "syr-api",
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret.get_secret_value():
            raise TokenConfigurationError("secret is not set")
        if len(secret.get_secret_value()) < MIN_SECRET_LENGTH:
            raise TokenConfigurationError(
                f"secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._algorithm = algorithm
        self._clock = clock

    def issue(self, claims: TokenClaims, ttl: timedelta) -> str:
        """
        Sign claims into a token valid for ttl.

        Raises:
            ValueError: If ttl is not positive
        """
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")

        now = self._clock()
        payload = {
            **claims.model_dump(by_alias=True, mode="json"),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "iss": self._issuer,
            "aud": self._audience,
        }
        return jwt.encode(payload, self._secret.get_secret_value(), algorithm=self._algorithm)

    def _expired(self, exp: object) -> bool:
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            return True
        return exp <= self._clock().timestamp()

    def verify(self, token: Optional[str]) -> Optional[TokenClaims]:
        """Return the token's claims if it is authentic and current, else None."""
        if not token or not isinstance(token, str):
            return None

        try:
            payload = jwt.decode(
                token,
                self._secret.get_secret_value(),
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
                # expiry is checked against the service clock below
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
            if self._expired(payload["exp"]):
                raise jwt.ExpiredSignatureError("Signature has expired")
            return TokenClaims.model_validate(payload)
        except (jwt.PyJWTError, PydanticValidationError) as e:
            logger.debug("Bearer token rejected (%s)", type(e).__name__)
            return None
