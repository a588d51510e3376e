"""Refresh token record: the persisted half of a long-lived session."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from identity_service.core.extensions import db
from identity_service.services._shared.errors import TokenAlreadyRevokedError

from .base import ReprMixin, UTCDateTime, UUIDPKMixin
from .enums import TokenStatus

if TYPE_CHECKING:
    from .user import User

DEFAULT_VALIDITY = timedelta(days=7)


class RefreshToken(UUIDPKMixin, ReprMixin, db.Model):
    """
    One issued refresh secret, stored only as its digest.

    Records are never deleted by the service: a rotated or revoked token stays
    as an audit trail, and a later presentation of its secret is the reuse
    signal.

    State machine::

        ACTIVE --revoke()--> REVOKED   (terminal, written)
        ACTIVE --time------> EXPIRED   (terminal, derived from expires_at)
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_digest: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
        Index("ix_refresh_tokens_user_id_is_revoked", "user_id", "is_revoked"),
    )

    # -------------------- Construction --------------------
    @classmethod
    def issue(
        cls,
        *,
        user_id: uuid.UUID,
        token_digest: str,
        now: datetime,
        validity: timedelta = DEFAULT_VALIDITY,
    ) -> RefreshToken:
        """
        Create an active record for a freshly generated secret.

        :param user_id: Owning user.
        :param token_digest: Digest of the secret (never the secret itself).
        :param now: Issuance instant (UTC).
        :param validity: Lifetime; ``expires_at = now + validity``.
        :raises ValueError: If the owner or digest is missing, or validity is not positive.
        """
        if user_id is None:
            raise ValueError("Refresh token requires an owning user.")
        if validity <= timedelta(0):
            raise ValueError("Refresh token validity must be positive.")
        return cls(
            id=uuid.uuid4(),
            user_id=user_id,
            token_digest=token_digest,
            created_at=now,
            expires_at=now + validity,
            revoked_at=None,
            is_revoked=False,
        )

    # -------------------- State --------------------
    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_active(self, now: datetime) -> bool:
        return not self.is_revoked and not self.is_expired(now)

    def status(self, now: datetime) -> TokenStatus:
        """Return the lifecycle state at ``now``; revocation wins over expiry."""
        if self.is_revoked:
            return TokenStatus.REVOKED
        if self.is_expired(now):
            return TokenStatus.EXPIRED
        return TokenStatus.ACTIVE

    def revoke(self, now: datetime) -> None:
        """
        Transition to ``REVOKED``.

        Expired tokens can still be revoked; only a second revocation fails.

        :raises TokenAlreadyRevokedError: If already revoked.
        """
        if self.is_revoked:
            raise TokenAlreadyRevokedError(self.id)
        self.is_revoked = True
        self.revoked_at = now

    # -------------------- Validators --------------------
    @validates("token_digest")
    def _validate_digest(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Token digest is required.")
        return value

    @validates("is_revoked")
    def _validate_is_revoked(self, key: str, value: bool) -> bool:
        if self.__dict__.get("is_revoked") and not value:
            raise ValueError("A revoked refresh token cannot be reactivated.")
        return bool(value)

    @validates("expires_at")
    def _validate_expires_at(self, key: str, value: datetime) -> datetime:
        current = self.__dict__.get("expires_at")
        if current is not None and current != value:
            raise ValueError("Refresh token expiry is fixed at issuance.")
        return value
