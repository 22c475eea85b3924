import pytest
from pydantic import ValidationError

from lovedev.core.config.auth import AuthSettings
from lovedev.core.config.settings import settings


def test_short_jwt_secret_is_refused():
    with pytest.raises(ValidationError, match="at least 32 bytes"):
        AuthSettings(JWT_SECRET="too-short")


def test_missing_jwt_secret_is_refused(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)

    with pytest.raises(ValidationError):
        AuthSettings()


def test_defaults_follow_the_session_lifetimes():
    auth = AuthSettings(JWT_SECRET="x" * 32)

    assert auth.ACCESS_TOKEN_EXPIRE_MINUTES == 15
    assert auth.REFRESH_TOKEN_EXPIRE_DAYS == 7
    assert auth.JWT_ISSUER == "lovedev-api"


def test_secret_is_masked_in_repr():
    assert "test-signing-secret" not in repr(settings)
    assert settings.JWT_SECRET.get_secret_value().startswith("test-signing-secret")
