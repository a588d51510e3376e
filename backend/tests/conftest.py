"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases, even when the code
under test commits through its Unit of Work.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import scoped_session, sessionmaker

from identity_service.core.config import TestingConfig
from identity_service.core.extensions import db as _db
from identity_service.factory import create_app
from identity_service.infra.jwt.flask_jwt_token_codec import JWTTokenCodec
from identity_service.services._shared.ports.event_publisher import InMemoryEventPublisher
from identity_service.services._shared.ports.identity_verifier import StubIdentityVerifier
from identity_service.services.auth.service import AuthService


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    return app


def _enable_sqlite_savepoints(engine) -> None:
    """Let pysqlite honour BEGIN/SAVEPOINT so nested rollbacks really isolate tests."""

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        if _db.engine.dialect.name == "sqlite":
            _enable_sqlite_savepoints(_db.engine)
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in an outer transaction.

    The session joins the connection's transaction in ``create_savepoint``
    mode: ``commit()`` releases a SAVEPOINT and ``rollback()`` returns to it,
    while the outer transaction is rolled back after the test.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session installed as ``db.session`` for the test duration.
    """
    top_trans = connection.begin()
    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # Monkey-patch db.session so app code (UoW, repositories) uses this session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


@pytest.fixture()
def locked_reads(session):
    """Record, in order, the entity names read with ``SELECT ... FOR UPDATE``.

    SQLite drops the clause when compiling, so statements are rendered with
    the PostgreSQL dialect to see whether a lock was requested.
    """
    target = session()
    seen: list[str] = []

    def _record(state) -> None:
        if state.is_select and state.all_mappers:
            sql = str(state.statement.compile(dialect=postgresql.dialect()))
            if "FOR UPDATE" in sql:
                seen.append(state.all_mappers[0].class_.__name__)

    event.listen(target, "do_orm_execute", _record)
    yield seen
    event.remove(target, "do_orm_execute", _record)


# -- Service doubles -----------------------------------------------------------
class StepClock:
    """Deterministic clock advancing by ``step`` on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def verifier() -> StubIdentityVerifier:
    stub = StubIdentityVerifier()
    stub.accept("assertion-sub-1", subject="sub-1", email="a@x.com", name="Ada")
    return stub


@pytest.fixture()
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture()
def codec(app) -> JWTTokenCodec:
    return JWTTokenCodec(ttl_seconds=app.config["ACCESS_TOKEN_TTL_SECONDS"])


@pytest.fixture()
def auth_service(session, codec, verifier, publisher, clock) -> AuthService:
    """AuthService over the real SQLAlchemy UoW with stubbed verifier/publisher."""
    return AuthService(
        token_codec=codec,
        identity_verifier=verifier,
        event_publisher=publisher,
        clock=clock,
    )
