"""Closed enumerations persisted by the identity models."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, Final

from sqlalchemy import String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


class AuthProvider(enum.Enum):
    """Identity providers able to vouch for a user."""

    GOOGLE = "google"
    APPLE = "apple"


class TokenStatus(enum.Enum):
    """Derived lifecycle state of a refresh token (never stored)."""

    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


# Stored spelling of each provider. Every member must appear here.
PROVIDER_STORAGE_NAMES: Final[Mapping[AuthProvider, str]] = {
    AuthProvider.GOOGLE: "Google",
    AuthProvider.APPLE: "Apple",
}
_PROVIDERS_BY_STORAGE_NAME: Final[Mapping[str, AuthProvider]] = {
    name: member for member, name in PROVIDER_STORAGE_NAMES.items()
}


def provider_to_storage(provider: AuthProvider) -> str:
    """Return the persisted name of ``provider``.

    :raises ValueError: If the member has no storage mapping.
    """
    try:
        return PROVIDER_STORAGE_NAMES[provider]
    except KeyError:
        raise ValueError(f"No storage name for provider {provider!r}") from None


def provider_from_storage(value: str) -> AuthProvider:
    """Parse a persisted provider name back into :class:`AuthProvider`.

    :raises ValueError: If ``value`` is not a known storage name.
    """
    try:
        return _PROVIDERS_BY_STORAGE_NAME[value]
    except KeyError:
        raise ValueError(f"Unknown stored provider {value!r}") from None


class ProviderType(TypeDecorator[AuthProvider]):
    """Persist :class:`AuthProvider` as its explicit storage name (``"Google"``...).

    Renaming a Python member therefore never changes what is on disk.
    """

    impl = String(50)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if not isinstance(value, AuthProvider):
            raise ValueError(f"Expected AuthProvider, got {value!r}")
        return provider_to_storage(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> AuthProvider | None:
        if value is None:
            return None
        return provider_from_storage(value)
