"""
auth/tokens.py -- Session token issuing.

Security design decisions:
  JWT: python-jose with HS256. Each token is signed with the secret of the
       app it was issued for, never a service-wide key. A token for app A does
       not verify under app B's secret, so a compromised app secret only
       exposes that app's sessions.

  Claims: sub (user id as a string, per RFC 7519), uid (user id as an int),
       email, app_id, iat and exp. exp is always iat + the TTL handed in by
       the caller; the issuer has no default lifetime of its own.

  Nothing is stored. A token's validity is decided entirely by its signature
       and its exp claim wherever it is verified.

Layer rule: no imports from api/, core/, or storage/.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Protocol

from jose import jwt
from jose.exceptions import JOSEError

from auth.errors import SigningError
from auth.models import App, User

ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer(Protocol):
    def issue(self, user: User, app: App, ttl: timedelta) -> str: ...


class JWTIssuer:
    """TokenIssuer producing HS256 JWTs signed with the app's secret.

    Args:
        now: Clock used for iat/exp. Injected so tests can pin issue time.
    """

    def __init__(self, now: Callable[[], datetime] = _utcnow) -> None:
        self._now = now

    def issue(self, user: User, app: App, ttl: timedelta) -> str:
        """Encode a signed token for user scoped to app, expiring after ttl.

        Raises SigningError if the app has no secret or jose refuses the key.
        """
        if not app.secret:
            raise SigningError(f"app {app.id} has an empty signing secret")

        issued_at = self._now()
        claims = {
            "sub": str(user.id),
            "uid": user.id,
            "email": user.email,
            "app_id": app.id,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        try:
            return jwt.encode(claims, app.secret, algorithm=ALGORITHM)
        except JOSEError as exc:
            raise SigningError(str(exc)) from exc
