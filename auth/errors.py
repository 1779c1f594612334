"""
auth/errors.py -- Error taxonomy for the auth layer.

Two tiers:
  Component errors (HashingError, MalformedHashError, SigningError) are raised
  by the hasher and the token issuer. They never cross the service boundary.

  Domain errors (AuthError subclasses) are what AuthService raises and what
  the API layer maps to transport status. Each carries a stable ``code`` and
  a message prefixed with the operation tag, e.g. "auth.login: invalid
  credentials". The underlying cause is chained with ``raise ... from``.

Layer rule: no imports from api/, core/, or storage/.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Component errors
# ---------------------------------------------------------------------------


class HashingError(Exception):
    """Password hashing failed (RNG failure, input bcrypt refuses)."""


class MalformedHashError(Exception):
    """A stored hash could not be parsed as bcrypt output."""


class SigningError(Exception):
    """A token could not be signed (empty or unusable app secret)."""


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class AuthError(Exception):
    code = "auth_error"


class InvalidCredentialsError(AuthError):
    """Unknown email, wrong password, or unknown user id.

    All three are deliberately the same kind so callers cannot tell which
    emails or ids exist.
    """

    code = "invalid_credentials"


class UserAlreadyExistsError(AuthError):
    code = "user_exists"


class AppNotFoundError(AuthError):
    code = "app_not_found"


class InternalError(AuthError):
    code = "internal"


class ValidationError(AuthError):
    """A required request field is missing or zero-valued."""

    code = "invalid_argument"

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field
