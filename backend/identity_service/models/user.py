"""User model: a local account anchored to one external identity."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from identity_service.core.extensions import db

from .base import ReprMixin, UTCDateTime, UUIDPKMixin
from .enums import AuthProvider, ProviderType

if TYPE_CHECKING:
    from .refresh_token import RefreshToken


class User(UUIDPKMixin, ReprMixin, db.Model):
    """
    Account created on the first verified login of an external identity.

    Construct through :meth:`register` only. After creation the single
    intended mutation is :meth:`record_login`.

    Fields
    ------
    email : str
        Address reported by the provider. Not unique: the same address may
        back accounts under different providers.
    provider : AuthProvider
        Identity provider that vouched for the account.
    external_subject : str
        Provider-issued subject identifier. Immutable once set.
    created_at : datetime
        Registration instant (UTC).
    last_login_at : datetime | None
        Last successful repeat login; ``None`` until the second login.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[AuthProvider] = mapped_column(ProviderType(), nullable=False)
    external_subject: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("provider", "external_subject"),
        Index("ix_users_email", "email"),
    )

    # -------------------- Construction --------------------
    @classmethod
    def register(
        cls,
        *,
        provider: AuthProvider,
        external_subject: str,
        email: str,
        now: datetime,
    ) -> User:
        """
        Build a brand-new account for a verified external identity.

        :param provider: Provider that verified the identity.
        :type provider: AuthProvider
        :param external_subject: Provider-issued subject.
        :type external_subject: str
        :param email: Email claimed by the provider.
        :type email: str
        :param now: Registration instant (UTC).
        :type now: datetime
        :returns: Transient user, ``last_login_at`` unset.
        :rtype: User
        :raises ValueError: If ``email`` or ``external_subject`` is blank.
        """
        return cls(
            id=uuid.uuid4(),
            provider=provider,
            external_subject=external_subject,
            email=email,
            created_at=now,
            last_login_at=None,
        )

    # -------------------- Behaviour --------------------
    @property
    def is_new_user(self) -> bool:
        """``True`` while the account has never completed a repeat login."""
        return self.last_login_at is None

    def record_login(self, now: datetime) -> None:
        """
        Stamp a successful login.

        :param now: Login instant (UTC).
        :type now: datetime
        """
        self.last_login_at = now

    # -------------------- Validators --------------------
    @validates("email")
    def _validate_email(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Email is required.")
        return value.strip()

    @validates("external_subject")
    def _validate_external_subject(self, key: str, value: str) -> str:
        """
        Require a non-blank subject and refuse to change it once assigned.

        :raises ValueError: If blank, or if a different subject is already set.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValueError("External subject is required.")
        current = self.__dict__.get("external_subject")
        if current is not None and current != value:
            raise ValueError("External subject is immutable.")
        return value

    @validates("provider")
    def _validate_provider(self, key: str, value: AuthProvider) -> AuthProvider:
        if not isinstance(value, AuthProvider):
            raise ValueError(f"Unsupported provider: {value!r}")
        return value
