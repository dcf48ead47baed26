"""Settings and app factory configuration tests."""

import pytest
from pydantic import ValidationError

from tokengate.config import Settings
from tokengate.errors import ConfigurationError
from tokengate.main import create_app


def test_defaults():
    settings = Settings(jwt_secret="x" * 32)
    assert settings.access_token_ttl.total_seconds() == 3600
    assert settings.refresh_token_ttl.days == 7
    assert settings.refresh_token_bytes == 128
    assert settings.is_development


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("TOKENGATE_ACCESS_TOKEN_TTL_SECONDS", "60")
    monkeypatch.setenv("TOKENGATE_JWT_SECRET", "from-environment")
    settings = Settings()
    assert settings.access_token_ttl_seconds == 60
    assert settings.jwt_secret == "from-environment"


def test_short_secret_rejected_outside_development():
    with pytest.raises(ValidationError):
        Settings(environment="production", jwt_secret="too-short")


def test_short_secret_allowed_in_development():
    assert Settings(environment="development", jwt_secret="dev").jwt_secret == "dev"


def test_app_refuses_to_start_without_secret(tmp_path):
    settings = Settings(
        jwt_secret="",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'unused.db'}",
    )
    with pytest.raises(ConfigurationError):
        create_app(settings)
