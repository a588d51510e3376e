"""Generic repository base for SQLAlchemy 2.x.

Repositories are the SQL implementations of the store ports
(:mod:`identity_service.services._shared.ports.stores`). They hold
persistence concerns only:

- resolve the session (the Unit of Work's, else the Flask-scoped one);
- stage and flush rows so constraint violations surface at the call site;
- run lookups, optionally under a ``SELECT ... FOR UPDATE`` row lock.

They never commit or roll back, and state changes go through entity methods
(``record_login``, ``revoke``); a repository only persists the result.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from identity_service.core.extensions import db

E = TypeVar("E")  # mapped entity


class BaseRepository(Generic[E]):
    """Persistence-only repository for one mapped class with an ``id`` key.

    Subclasses set ``model``.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session shared across the Unit of Work scope; falls
            back to ``db.session`` when omitted.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the session bound to the current Unit of Work."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Queries ----------------------------------

    def _first(self, stmt: Select[Any], *, for_update: bool = False) -> E | None:
        """Execute ``stmt`` and return the first entity, locking it if asked.

        SQLite ignores ``FOR UPDATE``; PostgreSQL holds the row lock until the
        Unit of Work ends. A locked read also refreshes an entity already in
        the identity map, so callers see the state committed before the lock.
        """
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def _all(self, stmt: Select[Any], *, for_update: bool = False) -> list[E]:
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return list(self.session.execute(stmt).scalars().all())

    def get(self, entity_id: Any, *, for_update: bool = False) -> E | None:
        """Fetch an entity by primary key.

        :param entity_id: Primary-key value.
        :param for_update: Lock the row for the rest of the transaction.
        :returns: Entity or ``None``.
        """
        pk = self.model.id  # type: ignore[attr-defined]
        return self._first(select(self.model).where(pk == entity_id), for_update=for_update)

    # ------------------------------ Writes -----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush it.

        :raises sqlalchemy.exc.IntegrityError: On a unique-constraint clash,
            raised here rather than at commit time.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def update(self, instance: E) -> E:
        """Flush in-place mutations of an entity changed through its own methods."""
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()
