"""Unit tests for core/config.py -- Settings loading and validation."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ENV", "STORAGE_PATH", "TOKEN_TTL_SECONDS", "HOST", "PORT", "BCRYPT_ROUNDS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.env == "local"
    assert s.port == 44044
    assert s.token_ttl == timedelta(hours=1)
    assert s.bcrypt_rounds == 12


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("TOKEN_TTL_SECONDS", "900")
    monkeypatch.setenv("STORAGE_PATH", "sqlite:///:memory:")
    s = Settings(_env_file=None)
    assert s.env == "prod"
    assert s.token_ttl == timedelta(minutes=15)
    assert s.storage_path == "sqlite:///:memory:"


@pytest.mark.parametrize(
    ("name", "value"),
    [("ENV", "staging"), ("TOKEN_TTL_SECONDS", "0"), ("PORT", "70000"), ("BCRYPT_ROUNDS", "2")],
)
def test_invalid_values_fail_fast(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
