# identity_service/services/auth/dto.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal

BEARER = "Bearer"

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login with an external identity assertion.

    :param id_token: Assertion issued by the identity provider (Google ID token).
    :type id_token: str
    """

    id_token: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for session refresh.

    :param refresh_token: Opaque refresh secret previously handed to the client.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class RevokeIn:
    """
    Input DTO for revoking a single session.

    :param refresh_token: Opaque refresh secret to revoke.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with a fresh access token and refresh secret.

    :param access_token: Signed access JWT.
    :type access_token: str
    :param refresh_token: Plaintext refresh secret (only ever returned, never stored).
    :type refresh_token: str
    :param expires_in: Access token lifetime in seconds.
    :type expires_in: int
    :param token_type: Always ``"Bearer"``.
    :type token_type: str
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = BEARER


@dataclass(frozen=True, slots=True)
class LoginOut:
    """
    Output DTO of a successful login.

    :param access_token: Signed access JWT.
    :param refresh_token: Plaintext refresh secret.
    :param expires_in: Access token lifetime in seconds.
    :param user_id: Local account id.
    :param is_new_user: ``True`` when the account had never logged in before.
    :param email: Account email.
    :param token_type: Always ``"Bearer"``.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    user_id: uuid.UUID
    is_new_user: bool
    email: str
    token_type: str = BEARER


# ------------------------- Failure results -------------------------------- #


@dataclass(frozen=True, slots=True)
class VerificationFailed:
    """The external assertion was rejected. Carries no detail on purpose."""

    kind: Literal["verification_failed"] = "verification_failed"


@dataclass(frozen=True, slots=True)
class RefreshFailed:
    """The refresh secret is unknown, revoked or expired. Carries no detail on purpose."""

    kind: Literal["refresh_failed"] = "refresh_failed"


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    The access token lifetime is owned by the :class:`TokenCodec` that signs
    it; only the refresh validity window is decided here.

    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    refresh_expires: timedelta = timedelta(days=7)
