"""Google ID token verification against Google's published signing keys."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import jwt
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientConnectionError, PyJWKClientError

from identity_service.models.enums import AuthProvider
from identity_service.services._shared.errors import (
    IdentityProviderUnavailableError,
    IdentityVerificationError,
)
from identity_service.services._shared.ports.identity_verifier import (
    IdentityVerifier,
    VerifiedIdentity,
)

log = logging.getLogger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")
GOOGLE_ALGORITHMS = ["RS256"]


class SigningKeySource(Protocol):
    """Subset of :class:`jwt.PyJWKClient` used by the verifier."""

    def get_signing_key_from_jwt(self, token: str) -> Any: ...


class GoogleIdentityVerifier(IdentityVerifier):
    """
    Verify Google ID tokens locally with PyJWT.

    Checks the RS256 signature against Google's JWKS, expiry, issuer (either
    spelling Google uses) and that ``aud`` is one of our OAuth client ids.

    :param client_ids: Accepted audiences.
    :param jwks_url: JWKS endpoint; ignored when ``key_source`` is given.
    :param key_source: Signing-key lookup (defaults to a caching ``PyJWKClient``).
    :param leeway: Clock skew tolerance in seconds.
    """

    provider = AuthProvider.GOOGLE

    def __init__(
        self,
        *,
        client_ids: Sequence[str],
        jwks_url: str | None = None,
        key_source: SigningKeySource | None = None,
        leeway: int = 30,
    ) -> None:
        if not client_ids:
            raise ValueError("At least one Google client id is required.")
        if key_source is None and not jwks_url:
            raise ValueError("Either jwks_url or key_source must be provided.")
        self.client_ids = list(client_ids)
        self.leeway = leeway
        self._keys: SigningKeySource = key_source or PyJWKClient(jwks_url, cache_keys=True)

    def verify(self, assertion: str) -> VerifiedIdentity:
        """
        Verify ``assertion`` and return the identity it vouches for.

        :raises IdentityVerificationError: Malformed, expired, forged, or
            issued for another audience/issuer.
        :raises IdentityProviderUnavailableError: Google's keys could not be fetched.
        """
        try:
            signing_key = self._keys.get_signing_key_from_jwt(assertion)
            claims: dict[str, Any] = jwt.decode(
                assertion,
                signing_key.key,
                algorithms=GOOGLE_ALGORITHMS,
                audience=self.client_ids,
                leeway=self.leeway,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except PyJWKClientConnectionError as exc:
            log.error("auth.google.jwks_unreachable", exc_info=True)
            raise IdentityProviderUnavailableError("Google signing keys unavailable") from exc
        except PyJWKClientError as exc:
            raise IdentityVerificationError("unknown_signing_key") from exc
        except jwt.ExpiredSignatureError as exc:
            raise IdentityVerificationError("expired") from exc
        except jwt.InvalidAudienceError as exc:
            raise IdentityVerificationError("audience_mismatch") from exc
        except jwt.InvalidSignatureError as exc:
            raise IdentityVerificationError("bad_signature") from exc
        except jwt.DecodeError as exc:
            raise IdentityVerificationError("malformed") from exc
        except jwt.InvalidTokenError as exc:
            raise IdentityVerificationError("invalid") from exc

        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise IdentityVerificationError("issuer_mismatch")

        subject = str(claims.get("sub") or "").strip()
        email = str(claims.get("email") or "").strip()
        if not subject or not email:
            raise IdentityVerificationError("missing_claims")

        return VerifiedIdentity(
            provider=self.provider,
            subject=subject,
            email=email,
            name=claims.get("name"),
            email_verified=bool(claims.get("email_verified", False)),
        )
