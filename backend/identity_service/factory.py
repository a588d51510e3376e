"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from flask import Flask

from identity_service.core.config import BaseConfig, get_config, validate_config
from identity_service.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object/class or import path; defaults to ``APP_ENV``.
    :param overrides: Extra keys applied last (tests use this).
    :raises ConfigurationError: If signing key, issuer, audience or Google
        client ids are missing. The app never starts half-configured.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    if overrides:
        app.config.update(overrides)

    validate_config(app.config)
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        seconds=int(app.config["ACCESS_TOKEN_TTL_SECONDS"])
    )

    configure_logging(
        app.config.get("LOG_LEVEL", "INFO"),
        service=app.config.get("SERVICE_NAME"),
    )

    from identity_service.core import proxy

    proxy.init_app(app)

    from identity_service.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from identity_service.core import cors

    cors.init_app(app)

    _init_services(app)

    from identity_service.api import init_app as init_api

    init_api(app)

    from identity_service.core import errors

    errors.init_app(app)

    from identity_service import cli as app_cli

    app_cli.init_app(app)

    return app


def _init_services(app: Flask) -> None:
    """Build the service graph once per app and store it on ``app.extensions``."""

    from identity_service.api.deps import AUTH_SERVICE_KEY
    from identity_service.core.extensions import get_redis
    from identity_service.infra.google.google_identity_verifier import GoogleIdentityVerifier
    from identity_service.infra.jwt.flask_jwt_token_codec import JWTTokenCodec
    from identity_service.infra.redis.redis_event_publisher import RedisEventPublisher
    from identity_service.services._shared.ports.event_publisher import (
        EventPublisher,
        LogOnlyEventPublisher,
    )
    from identity_service.services.auth.dto import AuthTokenConfig
    from identity_service.services.auth.service import AuthService

    redis_client = get_redis(app)
    publisher: EventPublisher
    if redis_client is not None:
        publisher = RedisEventPublisher(redis_client, channel=app.config["USER_EVENTS_CHANNEL"])
    else:
        publisher = LogOnlyEventPublisher()

    app.extensions[AUTH_SERVICE_KEY] = AuthService(
        token_codec=JWTTokenCodec(ttl_seconds=int(app.config["ACCESS_TOKEN_TTL_SECONDS"])),
        identity_verifier=GoogleIdentityVerifier(
            client_ids=app.config["GOOGLE_CLIENT_IDS"],
            jwks_url=app.config["GOOGLE_JWKS_URL"],
        ),
        event_publisher=publisher,
        token_cfg=AuthTokenConfig(
            refresh_expires=timedelta(days=int(app.config["REFRESH_TOKEN_TTL_DAYS"]))
        ),
    )
