"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, or SQLAlchemy directly. They serve as stable contracts between
repositories, domain models, and application services.

Expected authentication failures (bad assertion, unusable refresh secret) are
*not* exceptions at the service boundary: the orchestrator returns uniform
result values for those (see :mod:`identity_service.services.auth.dto`).

The translation to HTTP responses (RFC 7807) is handled by
``identity_service/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from collections.abc import Sequence

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Startup
# --------------------------------------------------------------------------- #


class ConfigurationError(ServiceError):
    """
    Raised at startup when security-critical settings are missing or invalid.

    :param keys: Offending configuration keys.
    :type keys: Sequence[str]
    :param message: Optional override for the summary line.
    :type message: str | None
    """

    def __init__(self, keys: Sequence[str], message: str | None = None) -> None:
        self.keys = tuple(keys)
        summary = message or "Missing required configuration"
        super().__init__(f"{summary}: {', '.join(self.keys)}")


# --------------------------------------------------------------------------- #
# Identity provider
# --------------------------------------------------------------------------- #


class IdentityVerificationError(ServiceError):
    """
    Raised by an identity verifier when an assertion is rejected.

    The ``reason`` is meant for logs only (malformed, expired, bad signature,
    wrong issuer/audience); callers of the orchestrator never see it.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Identity assertion rejected: {reason}")


class IdentityProviderUnavailableError(ServiceError):
    """Raised when the identity provider cannot be reached to verify an assertion."""

    def __init__(self, message: str = "Identity provider unavailable") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Entity state transitions
# --------------------------------------------------------------------------- #


class InvalidOperationError(ServiceError):
    """Raised when an entity method is called in a state that forbids it."""

    pass


class TokenAlreadyRevokedError(InvalidOperationError):
    """
    Raised by :meth:`RefreshToken.revoke` when the token is already revoked.

    :param token_id: Identifier of the refresh token record.
    """

    def __init__(self, token_id: object) -> None:
        self.token_id = token_id
        super().__init__(f"Refresh token {token_id} is already revoked")
