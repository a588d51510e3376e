"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from types import TracebackType

from sqlalchemy.orm import Session

from identity_service.core.extensions import db
from identity_service.repositories import RefreshTokenRepository, UserRepository
from identity_service.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared by both repositories so that a login (user
    insert/update + refresh token insert) or a rotation (revoke old + insert
    new) commits or rolls back as one unit.
    """

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the Unit of Work with a shared SQLAlchemy session.

        :param session: Explicit session; defaults to the Flask-scoped one.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self.session: Session = session if session is not None else db.session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
