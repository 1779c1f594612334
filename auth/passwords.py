"""
auth/passwords.py -- Password hashing and verification.

bcrypt is used directly (no passlib wrapper). Its cost factor makes
brute-forcing low-entropy secrets expensive, gensalt() gives every hash its
own salt, and checkpw() compares in constant time.

bcrypt only reads the first 72 bytes of input and current releases reject
longer passwords outright. hash() reports that as HashingError; verify()
answers False, since no stored hash can have come from such a password.

Layer rule: no imports from api/, core/, or storage/.
"""

from __future__ import annotations

from typing import Protocol

import bcrypt

from auth.errors import HashingError, MalformedHashError

_BCRYPT_MAX_BYTES = 72


class PasswordHasher(Protocol):
    def hash(self, password: str) -> bytes: ...

    def verify(self, pass_hash: bytes, password: str) -> bool: ...


class BcryptHasher:
    """PasswordHasher backed by bcrypt.

    Args:
        rounds: bcrypt log2 work factor. 12 in production; tests use 4 so the
                suite does not spend seconds per hash.
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> bytes:
        """Return a salted bcrypt hash. Two calls with the same input differ."""
        secret = password.encode("utf-8")
        if len(secret) > _BCRYPT_MAX_BYTES:
            raise HashingError(f"password exceeds {_BCRYPT_MAX_BYTES} bytes")
        try:
            return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError, OSError) as exc:
            raise HashingError(str(exc)) from exc

    def verify(self, pass_hash: bytes, password: str) -> bool:
        """Return True if password matches pass_hash.

        Raises MalformedHashError if pass_hash is not a bcrypt hash.
        """
        secret = password.encode("utf-8")
        if len(secret) > _BCRYPT_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(secret, pass_hash)
        except (ValueError, TypeError) as exc:
            raise MalformedHashError(str(exc)) from exc
