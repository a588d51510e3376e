"""Tests for settings loading and startup validation."""

from __future__ import annotations

import pytest

from identity_service.core.config import (
    REQUIRED_KEYS,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_int,
    env_list,
    get_config,
    validate_config,
)
from identity_service.factory import create_app
from identity_service.services._shared.errors import ConfigurationError


def _valid() -> dict:
    return {
        "JWT_SECRET_KEY": "k" * 40,
        "JWT_ENCODE_ISSUER": "issuer",
        "JWT_ENCODE_AUDIENCE": "audience",
        "GOOGLE_CLIENT_IDS": ["client"],
        "ACCESS_TOKEN_TTL_SECONDS": 900,
        "REFRESH_TOKEN_TTL_DAYS": 7,
    }


class TestValidateConfig:
    def test_complete_settings_pass(self):
        validate_config(_valid())

    def test_every_missing_key_is_reported(self):
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config({"ACCESS_TOKEN_TTL_SECONDS": 900, "REFRESH_TOKEN_TTL_DAYS": 7})
        assert excinfo.value.keys == REQUIRED_KEYS

    @pytest.mark.parametrize("key", REQUIRED_KEYS)
    def test_blank_value_counts_as_missing(self, key):
        cfg = _valid()
        cfg[key] = "" if key != "GOOGLE_CLIENT_IDS" else []
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(cfg)
        assert excinfo.value.keys == (key,)

    @pytest.mark.parametrize("key", ["ACCESS_TOKEN_TTL_SECONDS", "REFRESH_TOKEN_TTL_DAYS"])
    def test_non_positive_lifetimes_rejected(self, key):
        cfg = _valid()
        cfg[key] = 0
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(cfg)
        assert key in excinfo.value.keys

    def test_app_refuses_to_start_without_signing_key(self):
        with pytest.raises(ConfigurationError) as excinfo:
            create_app(TestingConfig, overrides={"JWT_SECRET_KEY": None})
        assert "JWT_SECRET_KEY" in str(excinfo.value)


class TestEnvHelpers:
    def test_env_bool(self, monkeypatch):
        monkeypatch.setenv("FLAG", "Yes")
        assert env_bool("FLAG") is True
        monkeypatch.setenv("FLAG", "off")
        assert env_bool("FLAG", True) is False
        monkeypatch.delenv("FLAG")
        assert env_bool("FLAG", True) is True

    def test_env_int(self, monkeypatch):
        monkeypatch.setenv("TTL", "120")
        assert env_int("TTL", 5) == 120
        monkeypatch.setenv("TTL", " ")
        assert env_int("TTL", 5) == 5
        monkeypatch.setenv("TTL", "soon")
        with pytest.raises(ConfigurationError):
            env_int("TTL", 5)

    def test_env_list(self, monkeypatch):
        monkeypatch.setenv("IDS", " web.apps , ios.apps,, ")
        assert env_list("IDS") == ["web.apps", "ios.apps"]
        monkeypatch.delenv("IDS")
        assert env_list("IDS") == []


@pytest.mark.parametrize(
    "name, expected",
    [
        ("production", ProductionConfig),
        ("TESTING", TestingConfig),
        ("unknown", DevelopmentConfig),
    ],
)
def test_get_config_follows_app_env(monkeypatch, name, expected):
    monkeypatch.setenv("APP_ENV", name)
    assert get_config() is expected


def test_testing_app_wires_auth_service(app):
    from identity_service.services.auth.service import AuthService

    assert isinstance(app.extensions["auth_service"], AuthService)
    assert app.config["JWT_ACCESS_TOKEN_EXPIRES"].total_seconds() == 900
