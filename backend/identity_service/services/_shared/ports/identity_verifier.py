from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from identity_service.models.enums import AuthProvider
from identity_service.services._shared.errors import IdentityVerificationError


@dataclass(frozen=True, slots=True)
class VerifiedIdentity:
    """
    Claims extracted from a successfully verified external assertion.

    :param provider: Provider that signed the assertion.
    :param subject: Stable provider-issued subject identifier.
    :param email: Email claimed by the provider.
    :param name: Display name, when the provider supplies one.
    :param email_verified: Provider's statement about the email.
    """

    provider: AuthProvider
    subject: str
    email: str
    name: str | None = None
    email_verified: bool = False


class IdentityVerifier(Protocol):
    """
    Port verifying an external identity assertion (e.g. a Google ID token).

    Implementations raise :class:`IdentityVerificationError` for any rejected
    assertion and :class:`IdentityProviderUnavailableError` when the provider
    cannot be consulted at all.
    """

    provider: AuthProvider

    def verify(self, assertion: str) -> VerifiedIdentity: ...


class StubIdentityVerifier(IdentityVerifier):
    """Verifier backed by a fixed ``assertion -> identity`` table, used in tests."""

    def __init__(
        self,
        identities: dict[str, VerifiedIdentity] | None = None,
        *,
        provider: AuthProvider = AuthProvider.GOOGLE,
    ) -> None:
        self.provider = provider
        self._identities: dict[str, VerifiedIdentity] = dict(identities or {})
        self.calls: list[str] = []

    def accept(self, assertion: str, *, subject: str, email: str, name: str | None = None) -> None:
        """Register ``assertion`` as valid for the given identity."""
        self._identities[assertion] = VerifiedIdentity(
            provider=self.provider,
            subject=subject,
            email=email,
            name=name,
            email_verified=True,
        )

    def verify(self, assertion: str) -> VerifiedIdentity:
        self.calls.append(assertion)
        identity = self._identities.get(assertion)
        if identity is None:
            raise IdentityVerificationError("unknown_assertion")
        return identity
