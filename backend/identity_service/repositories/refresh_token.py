"""Refresh token repository: digest lookups and bulk revocation."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select

from identity_service.models.refresh_token import RefreshToken
from identity_service.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """SQL Session Store.

    Tokens are looked up by digest, never by secret. Records are never deleted
    here; expiry cleanup is an external housekeeping job.
    """

    model = RefreshToken

    def get_by_digest(self, digest: str, *, for_update: bool = False) -> RefreshToken | None:
        """Fetch the record holding ``digest``.

        :param digest: Digest of the presented secret.
        :type digest: str
        :param for_update: Lock the row so that concurrent rotations of the
            same secret serialize.
        :type for_update: bool
        :returns: Token record or ``None``.
        :rtype: RefreshToken | None
        """
        return self._first(
            select(RefreshToken).where(RefreshToken.token_digest == digest),
            for_update=for_update,
        )

    def list_active_for_user(
        self, user_id: uuid.UUID, now: datetime, *, for_update: bool = False
    ) -> Sequence[RefreshToken]:
        """Return the user's non-revoked, unexpired tokens, newest first.

        :param for_update: Lock the rows so a concurrent rotation waits for
            the caller's transaction to end.
        """
        return self._all(
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.is_revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .order_by(RefreshToken.created_at.desc()),
            for_update=for_update,
        )

    def list_for_user(self, user_id: uuid.UUID) -> Sequence[RefreshToken]:
        """Return every token ever issued to the user (audit), newest first."""
        return self._all(
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at.desc())
        )

    def revoke_all_active_for_user(self, user_id: uuid.UUID, now: datetime) -> int:
        """Revoke every active token of ``user_id`` through :meth:`RefreshToken.revoke`.

        Already-revoked and expired records are left untouched. The active rows
        are locked first, so a rotation racing this call either finishes before
        it (and its successor is revoked too) or finds its token revoked.

        :returns: Number of tokens revoked.
        :rtype: int
        """
        tokens = self.list_active_for_user(user_id, now, for_update=True)
        for token in tokens:
            token.revoke(now)
        if tokens:
            self.flush()
        return len(tokens)
