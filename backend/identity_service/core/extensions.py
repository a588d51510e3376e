"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT and (optionally) Redis.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`identity_service.models` package to ensure SQLAlchemy metadata is
        ready for migrations.

    Notes
    -----
    The Redis client is only created when ``REDIS_URL`` is set. It connects
    lazily; the event publisher tolerates an unreachable broker.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from identity_service import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    redis_url = app.config.get("REDIS_URL")
    if redis_url:
        app.extensions["redis_client"] = redis.Redis.from_url(redis_url)
    else:
        app.extensions.pop("redis_client", None)


def get_redis(app: Flask) -> redis.Redis | None:
    """Return the Redis client bound to ``app``, or ``None`` when disabled."""
    return app.extensions.get("redis_client")
