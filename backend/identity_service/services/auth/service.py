# identity_service/services/auth/service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from identity_service.models.enums import provider_to_storage
from identity_service.models.refresh_token import RefreshToken
from identity_service.models.user import User
from identity_service.services._shared.base import BaseService, Clock, UnitOfWorkFactory
from identity_service.services._shared.errors import (
    IdentityVerificationError,
    ServiceError,
    TokenAlreadyRevokedError,
)
from identity_service.services._shared.ports.event_publisher import (
    EventPublisher,
    UserRegistered,
)
from identity_service.services._shared.ports.identity_verifier import (
    IdentityVerifier,
    VerifiedIdentity,
)
from identity_service.services._shared.ports.token_codec import TokenCodec
from identity_service.services.auth.dto import (
    AuthTokenConfig,
    LoginIn,
    LoginOut,
    RefreshFailed,
    RefreshIn,
    RevokeIn,
    TokenPairOut,
    VerificationFailed,
)
from identity_service.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class _RegistrationRace(Exception):
    """A concurrent first login inserted the same external identity first."""


class AuthService(BaseService):
    """
    Authentication lifecycle service (login / refresh / revoke).

    Verifies external assertions through an :class:`IdentityVerifier`, keeps
    accounts and refresh tokens through the Unit of Work stores, mints tokens
    via a :class:`TokenCodec` and announces new accounts through an
    :class:`EventPublisher` once the registering transaction has committed.

    Expected failures are returned as :class:`VerificationFailed` /
    :class:`RefreshFailed` values that never say *why*; the reason is only
    logged. Storage errors propagate and roll the whole operation back.
    """

    def __init__(
        self,
        *,
        token_codec: TokenCodec,
        identity_verifier: IdentityVerifier,
        event_publisher: EventPublisher,
        token_cfg: AuthTokenConfig | None = None,
        uow_factory: UnitOfWorkFactory | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_codec: Adapter for access tokens and refresh secrets.
        :param identity_verifier: Adapter verifying external assertions.
        :param event_publisher: Outbound port for ``UserRegistered``.
        :param token_cfg: Refresh token validity configuration.
        :param uow_factory: Unit of Work factory (SQLAlchemy by default).
        :param clock: Source of the current UTC time.
        """
        super().__init__(uow_factory=uow_factory, clock=clock)
        self.tokens = token_codec
        self.verifier = identity_verifier
        self.events = event_publisher
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login_with_external_assertion(self, dto: LoginIn) -> LoginOut | VerificationFailed:
        """
        Verify an external assertion and open a session for its identity.

        Creates the account on first sight of ``(provider, subject)``;
        otherwise records the login. Either way a new refresh token is stored.

        :param dto: Login input.
        :returns: Session bundle, or :class:`VerificationFailed`.
        :raises IdentityProviderUnavailableError: Provider could not be consulted.
        """
        if not dto.id_token or not dto.id_token.strip():
            log.info("auth.login.rejected", extra={"reason": "blank_assertion"})
            return VerificationFailed()

        try:
            identity = self.verifier.verify(dto.id_token)
        except IdentityVerificationError as exc:
            log.info("auth.login.rejected", extra={"reason": exc.reason})
            return VerificationFailed()

        try:
            result, event = self._open_session(identity)
        except _RegistrationRace:
            # Lost the insert race: the account now exists, take the returning path.
            log.warning(
                "auth.login.registration_race",
                extra={"reason": "duplicate_external_subject"},
            )
            result, event = self._open_session(identity)

        if event is not None:
            self._announce(event)

        log.info(
            "auth.login.succeeded",
            extra={
                "user_id": str(result.user_id),
                "reason": "registered" if result.is_new_user else "returning",
            },
        )
        return result

    def _open_session(self, identity: VerifiedIdentity) -> tuple[LoginOut, UserRegistered | None]:
        """Run the login transaction; return the bundle and the event to announce."""
        now = self.now_utc()
        event: UserRegistered | None = None

        with self.rw_uow() as uow:
            user = uow.users.get_by_external_subject(identity.provider, identity.subject)
            if user is None:
                user = User.register(
                    provider=identity.provider,
                    external_subject=identity.subject,
                    email=identity.email,
                    now=now,
                )
                try:
                    uow.users.add(user)
                except IntegrityError as exc:
                    raise _RegistrationRace() from exc
                is_new_user = True
                event = UserRegistered(
                    user_id=user.id,
                    email=user.email,
                    provider=provider_to_storage(user.provider),
                    registered_at=user.created_at,
                )
            else:
                is_new_user = False
                user.record_login(now)
                uow.users.update(user)

            secret = self._issue_refresh_token(uow, user.id, now)
            result = LoginOut(
                access_token=self.tokens.generate_access_token(user_id=user.id, email=user.email),
                refresh_token=secret,
                expires_in=self.tokens.access_token_ttl,
                user_id=user.id,
                is_new_user=is_new_user,
                email=user.email,
            )

        return result, event

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh_session(self, dto: RefreshIn) -> TokenPairOut | RefreshFailed:
        """
        Exchange a refresh secret for a new token pair, rotating the secret.

        The presented record is revoked and a new one is stored in the same
        transaction. The owner row and then the record are locked, the same
        order :meth:`revoke_all_sessions` takes, so two concurrent refreshes
        of one secret cannot both succeed and a successor never escapes a
        concurrent revoke-all.

        :param dto: Refresh input.
        :returns: New token pair, or :class:`RefreshFailed`.
        """
        if not dto.refresh_token or not dto.refresh_token.strip():
            log.info("auth.refresh.rejected", extra={"reason": "blank_secret"})
            return RefreshFailed()

        digest = self.tokens.digest(dto.refresh_token)
        now = self.now_utc()
        outcome: TokenPairOut | RefreshFailed

        with self.rw_uow() as uow:
            token = uow.refresh_tokens.get_by_digest(digest)
            user = None
            if token is not None and token.is_active(now):
                user = uow.users.get(token.user_id, for_update=True)
                token = uow.refresh_tokens.get_by_digest(digest, for_update=True)

            if token is None:
                log.info("auth.refresh.rejected", extra={"reason": "not_found"})
                outcome = RefreshFailed()
            elif token.is_revoked:
                # A rotated secret presented again may have been stolen.
                log.warning(
                    "auth.refresh.rejected",
                    extra={
                        "reason": "revoked",
                        "token_id": str(token.id),
                        "user_id": str(token.user_id),
                    },
                )
                outcome = RefreshFailed()
            elif token.is_expired(now):
                log.info(
                    "auth.refresh.rejected",
                    extra={"reason": "expired", "token_id": str(token.id)},
                )
                outcome = RefreshFailed()
            elif user is None:
                log.error(
                    "auth.refresh.integrity_anomaly",
                    extra={
                        "reason": "orphaned",
                        "token_id": str(token.id),
                        "user_id": str(token.user_id),
                    },
                )
                outcome = RefreshFailed()
            else:
                token.revoke(now)
                uow.refresh_tokens.update(token)
                secret = self._issue_refresh_token(uow, user.id, now)
                outcome = TokenPairOut(
                    access_token=self.tokens.generate_access_token(
                        user_id=user.id, email=user.email
                    ),
                    refresh_token=secret,
                    expires_in=self.tokens.access_token_ttl,
                )
                log.info(
                    "auth.refresh.succeeded",
                    extra={"user_id": str(user.id), "token_id": str(token.id)},
                )

        return outcome

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke_session(self, dto: RevokeIn) -> None:
        """
        Revoke the session behind a refresh secret. Idempotent.

        Unknown, blank and already-revoked secrets are treated as success.
        """
        if not dto.refresh_token or not dto.refresh_token.strip():
            return

        digest = self.tokens.digest(dto.refresh_token)
        now = self.now_utc()

        with self.rw_uow() as uow:
            token = uow.refresh_tokens.get_by_digest(digest, for_update=True)
            if token is None:
                log.info("auth.revoke.noop", extra={"reason": "not_found"})
                return
            try:
                token.revoke(now)
            except TokenAlreadyRevokedError:
                log.info(
                    "auth.revoke.noop",
                    extra={"reason": "already_revoked", "token_id": str(token.id)},
                )
                return
            uow.refresh_tokens.update(token)
            log.info(
                "auth.revoke.succeeded",
                extra={"token_id": str(token.id), "user_id": str(token.user_id)},
            )

    def revoke_all_sessions(self, user_id: uuid.UUID | str) -> int:
        """
        Revoke every active refresh token of a user.

        :param user_id: Account id (UUID or its string form).
        :returns: Number of tokens revoked; ``0`` when none were active.
        :raises ServiceError: If ``user_id`` is not a valid id.
        """
        uid = self._coerce_user_id(user_id)
        now = self.now_utc()
        with self.rw_uow() as uow:
            # Holding the owner row makes in-flight rotations finish first.
            uow.users.get(uid, for_update=True)
            revoked = uow.refresh_tokens.revoke_all_active_for_user(uid, now)
        log.info(
            "auth.revoke_all.succeeded revoked=%s",
            revoked,
            extra={"user_id": str(uid)},
        )
        return revoked

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _issue_refresh_token(self, uow: UnitOfWork, user_id: uuid.UUID, now: datetime) -> str:
        """Store the digest of a fresh secret for ``user_id``; return the plaintext secret."""
        secret = self.tokens.generate_refresh_secret()
        uow.refresh_tokens.add(
            RefreshToken.issue(
                user_id=user_id,
                token_digest=self.tokens.digest(secret),
                now=now,
                validity=self.cfg.refresh_expires,
            )
        )
        return secret

    def _announce(self, event: UserRegistered) -> None:
        """Publish a committed fact; a publisher failure never undoes the login."""
        try:
            self.events.publish_user_registered(event)
        except Exception:
            log.exception(
                "events.user_registered.publish_failed",
                extra={"user_id": str(event.user_id), "correlation_id": str(event.correlation_id)},
            )

    @staticmethod
    def _coerce_user_id(user_id: uuid.UUID | str) -> uuid.UUID:
        """Ensure the given value can be treated as a UUID account id."""
        if isinstance(user_id, uuid.UUID):
            return user_id
        try:
            return uuid.UUID(str(user_id))
        except ValueError:
            raise ServiceError("Invalid user id.") from None
