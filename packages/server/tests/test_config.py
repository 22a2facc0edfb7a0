"""
Settings loading and secret key validation.
"""

import pytest
from pydantic import ValidationError

from todo_api.core.config import Settings

from helpers import TEST_SECRET


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TODO_SECRET_KEY", "TODO_ENVIRONMENT", "TODO_JWT_EXPIRE_MINUTES"):
        monkeypatch.delenv(name, raising=False)


def test_production_requires_long_secret():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(environment="production", secret_key="too-short")


def test_production_accepts_long_secret():
    settings = Settings(environment="production", secret_key=TEST_SECRET)
    assert settings.is_production
    assert settings.secret_key == TEST_SECRET


def test_development_generates_ephemeral_secret():
    with pytest.warns(UserWarning, match="ephemeral"):
        first = Settings(environment="development")
    with pytest.warns(UserWarning):
        second = Settings(environment="development")
    assert len(first.secret_key) >= 32
    assert first.secret_key != second.secret_key


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("TODO_SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("TODO_JWT_EXPIRE_MINUTES", "15")
    settings = Settings()
    assert settings.secret_key == TEST_SECRET
    assert settings.jwt_expire_minutes == 15


def test_defaults():
    settings = Settings(secret_key=TEST_SECRET)
    assert settings.jwt_algorithm == "HS256"
    assert settings.jwt_expire_minutes == 24 * 60
    assert settings.revocation_backend == "memory"
