"""Unit tests for auth/tokens.py -- JWT issuing.

Covers:
- claims: sub, uid, email, app_id, iat, exp
- exp is exactly issue time + ttl (pinned clock)
- tokens verify only under the issuing app's secret
- empty secret raises SigningError
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from jose.exceptions import JWTError

from auth.errors import SigningError
from auth.models import App, User
from auth.tokens import ALGORITHM, JWTIssuer

ISSUED_AT = datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

USER = User(id=7, email="a@x.com", pass_hash=b"irrelevant")
APP = App(id=3, name="web", secret=b"app-three-secret")


@pytest.fixture
def issuer() -> JWTIssuer:
    return JWTIssuer(now=lambda: ISSUED_AT)


def _decode(token: str, secret: bytes) -> dict:
    # Pinned clock: time-based claim checks would depend on today's date.
    return jwt.decode(token, secret, algorithms=[ALGORITHM], options={"verify_exp": False, "verify_iat": False})


def test_claims_carry_user_and_app(issuer: JWTIssuer) -> None:
    claims = _decode(issuer.issue(USER, APP, timedelta(hours=1)), APP.secret)
    assert claims["sub"] == "7"
    assert claims["uid"] == 7
    assert claims["email"] == "a@x.com"
    assert claims["app_id"] == 3


def test_expiry_is_issue_time_plus_ttl(issuer: JWTIssuer) -> None:
    ttl = timedelta(minutes=45)
    claims = _decode(issuer.issue(USER, APP, ttl), APP.secret)
    assert claims["iat"] == int(ISSUED_AT.timestamp())
    assert claims["exp"] == int((ISSUED_AT + ttl).timestamp())


def test_token_does_not_verify_under_another_apps_secret(issuer: JWTIssuer) -> None:
    token = issuer.issue(USER, APP, timedelta(hours=1))
    other = App(id=4, name="mobile", secret=b"app-four-secret")
    with pytest.raises(JWTError):
        _decode(token, other.secret)


def test_default_clock_yields_unexpired_token() -> None:
    token = JWTIssuer().issue(USER, APP, timedelta(minutes=5))
    claims = jwt.decode(token, APP.secret, algorithms=[ALGORITHM])
    assert claims["exp"] > datetime.now(timezone.utc).timestamp()


def test_empty_secret_raises_signing_error(issuer: JWTIssuer) -> None:
    with pytest.raises(SigningError):
        issuer.issue(USER, App(id=5, name="broken", secret=b""), timedelta(hours=1))
