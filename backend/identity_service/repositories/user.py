"""User repository: account lookups by natural key."""

from __future__ import annotations

from sqlalchemy import select

from identity_service.models.enums import AuthProvider
from identity_service.models.user import User
from identity_service.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """SQL Account Store.

    The natural key is ``(provider, external_subject)``; the unique constraint
    on that pair is what settles concurrent first logins.
    """

    model = User

    def get_by_external_subject(self, provider: AuthProvider, subject: str) -> User | None:
        """Fetch the account anchored to an external identity.

        :param provider: Identity provider.
        :type provider: AuthProvider
        :param subject: Provider-issued subject.
        :type subject: str
        :returns: User instance or ``None`` when not registered yet.
        :rtype: User | None
        """
        return self._first(
            select(User).where(User.provider == provider, User.external_subject == subject)
        )

    def get_by_email(self, email: str) -> User | None:
        """Return the oldest account using ``email``.

        Email is not unique across providers; callers needing a specific
        account must use :meth:`get_by_external_subject`.
        """
        stmt = (
            select(User)
            .where(User.email == email.strip())
            .order_by(User.created_at.asc())
            .limit(1)
        )
        return self._first(stmt)
