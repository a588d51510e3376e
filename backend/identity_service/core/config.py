"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

from identity_service.services._shared.errors import ConfigurationError

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

GOOGLE_JWKS_URL: Final[str] = "https://www.googleapis.com/oauth2/v3/certs"

# Keys that must be present (non-empty) before the app is allowed to start.
REQUIRED_KEYS: Final[tuple[str, ...]] = (
    "JWT_SECRET_KEY",
    "JWT_ENCODE_ISSUER",
    "JWT_ENCODE_AUDIENCE",
    "GOOGLE_CLIENT_IDS",
)


# Load .env in development (no-op when missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ConfigurationError([name], f"{name} must be an integer, got {val!r}") from exc


def env_list(name: str) -> list[str]:
    """Split a comma-separated environment variable into trimmed, non-empty items."""
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str | None
        Symmetric key used by ``flask-jwt-extended`` to sign access tokens.
        Required; there is no built-in default.
    JWT_ENCODE_ISSUER / JWT_DECODE_ISSUER: str | None
        ``iss`` claim written into and expected from access tokens.
    JWT_ENCODE_AUDIENCE / JWT_DECODE_AUDIENCE: str | None
        ``aud`` claim written into and expected from access tokens.
    ACCESS_TOKEN_TTL_SECONDS: int
        Access token lifetime (900 seconds by default).
    REFRESH_TOKEN_TTL_DAYS: int
        Refresh token validity window (7 days by default).
    GOOGLE_CLIENT_IDS: list[str]
        OAuth client ids accepted as ``aud`` of Google ID tokens.
    GOOGLE_JWKS_URL: str
        JWKS endpoint serving Google's signing keys.
    REDIS_URL: str | None
        When set, ``UserRegistered`` events are published on Redis.
    USER_EVENTS_CHANNEL: str
        Redis channel receiving ``UserRegistered`` events.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    SERVICE_NAME: str
        Value of the ``service`` field on every JSON log line.
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes. Missing security settings are
    reported by :func:`validate_config` at startup.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM = "HS256"
    JWT_ENCODE_ISSUER = os.getenv("JWT_ISSUER")
    JWT_DECODE_ISSUER = os.getenv("JWT_ISSUER")
    JWT_ENCODE_AUDIENCE = os.getenv("JWT_AUDIENCE")
    JWT_DECODE_AUDIENCE = os.getenv("JWT_AUDIENCE")
    JWT_TOKEN_LOCATION = ["headers"]

    # Session lifetimes
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 900)
    REFRESH_TOKEN_TTL_DAYS = env_int("REFRESH_TOKEN_TTL_DAYS", 7)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=ACCESS_TOKEN_TTL_SECONDS)

    # Identity provider
    GOOGLE_CLIENT_IDS = env_list("GOOGLE_CLIENT_IDS")
    GOOGLE_JWKS_URL = os.getenv("GOOGLE_JWKS_URL", GOOGLE_JWKS_URL)

    # Events
    REDIS_URL = os.getenv("REDIS_URL")
    USER_EVENTS_CHANNEL = os.getenv("USER_EVENTS_CHANNEL", "identity.user_registered")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SERVICE_NAME = os.getenv("SERVICE_NAME", "identity-service")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Ships fixed, non-secret JWT and Google settings so the app boots.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True

    JWT_SECRET_KEY = "test-signing-key-with-enough-entropy-0123456789"
    JWT_ENCODE_ISSUER = JWT_DECODE_ISSUER = "identity-service-test"
    JWT_ENCODE_AUDIENCE = JWT_DECODE_AUDIENCE = "identity-api-test"
    GOOGLE_CLIENT_IDS = ["test-client.apps.googleusercontent.com"]
    REDIS_URL = None


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, Any]) -> None:
    """Fail fast when security-critical settings are missing or malformed.

    :param config: Loaded Flask configuration mapping.
    :type config: Mapping[str, Any]
    :raises ConfigurationError: Listing every missing or invalid key.
    """
    missing = [key for key in REQUIRED_KEYS if not config.get(key)]
    if missing:
        raise ConfigurationError(missing)

    invalid = [
        key
        for key in ("ACCESS_TOKEN_TTL_SECONDS", "REFRESH_TOKEN_TTL_DAYS")
        if int(config.get(key) or 0) <= 0
    ]
    if invalid:
        raise ConfigurationError(invalid, "Token lifetimes must be positive integers")
