import pytest

from tenantcore.config import ConfigError, Settings


def test_defaults_from_test_environment():
    settings = Settings()
    assert settings.env == "test"
    assert settings.is_dev
    assert settings.api_prefix == "/api/v1"
    assert settings.access_token_expires_in == 900
    assert settings.refresh_token_expires_in == 604800
    assert settings.mail_preview and settings.sms_preview


def test_invalid_integer(monkeypatch):
    monkeypatch.setenv("JWT_ACCESS_TOKEN_EXPIRES_IN", "fifteen")
    with pytest.raises(ConfigError):
        Settings()


def test_jwt_secret_required_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.delenv("JWT_SECRET")
    with pytest.raises(ConfigError):
        Settings()


def test_dev_falls_back_to_placeholder_secret(monkeypatch):
    monkeypatch.setenv("ENV", "dev")
    monkeypatch.delenv("JWT_SECRET")
    assert Settings().jwt_secret


def test_salt_rounds_bounds(monkeypatch):
    monkeypatch.setenv("BCRYPT_SALT_ROUNDS", "3")
    with pytest.raises(ConfigError):
        Settings()


def test_api_prefix_trailing_slash(monkeypatch):
    monkeypatch.setenv("API_PREFIX", "/api/v2/")
    assert Settings().api_prefix == "/api/v2"
