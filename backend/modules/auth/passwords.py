"""
Password hashing with argon2id.

Hashes embed their own salt and cost parameters, so no separate salt
storage is needed and cost can be raised later without breaking old
hashes (see needs_rehash).
"""

from typing import Optional

from argon2 import PasswordHasher as Argon2Hasher, Type
from argon2.exceptions import Argon2Error, HashingError

from .exceptions import PasswordHashingError


class PasswordHasher:
    """
    One-way credential hashing with tunable cost.

    verify() fails closed: any problem with the stored hash or the input
    yields False instead of an exception.
    """

    def __init__(
        self,
        memory_cost: int = 65536,
        time_cost: int = 3,
        parallelism: int = 4,
    ) -> None:
        """
        Args:
            memory_cost: Memory in KiB (65536 = 64 MiB)
            time_cost: Number of passes
            parallelism: Number of lanes
        """
        self._hasher = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )
        self._dummy_hash: Optional[str] = None

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt."""
        try:
            return self._hasher.hash(password)
        except HashingError as e:
            raise PasswordHashingError() from e

    def verify(self, password_hash: str, password: str) -> bool:
        """Check a password against a stored hash."""
        try:
            return self._hasher.verify(password_hash, password)
        except (Argon2Error, ValueError, TypeError):
            # mismatch, corrupt hash, unsupported parameters
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """True if the hash was made with parameters other than the current ones."""
        try:
            return self._hasher.check_needs_rehash(password_hash)
        except (Argon2Error, ValueError, TypeError):
            return True

    def verify_dummy(self, password: str) -> bool:
        """
        Spend the cost of a real verification and return False.

        Used when the username is unknown so that response timing does not
        reveal whether an account exists.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("unused-dummy-password")
        self.verify(self._dummy_hash, password)
        return False
