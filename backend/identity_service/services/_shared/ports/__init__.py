"""
identity_service.services._shared.ports
=======================================

Collection of *ports* (hexagonal interfaces) the authentication orchestrator
depends on.

Modules
-------
- :mod:`token_codec`:
    :class:`~.TokenCodec` (access tokens, refresh secrets and their digests).
- :mod:`identity_verifier`:
    :class:`~.IdentityVerifier` and the :class:`~.VerifiedIdentity` it yields.
- :mod:`stores`:
    :class:`~.AccountStore` and :class:`~.SessionStore` persistence contracts.
- :mod:`event_publisher`:
    :class:`~.EventPublisher` and the :class:`~.UserRegistered` fact.

Concrete adapters live under ``identity_service.infra``; the SQLAlchemy
stores are the repositories in ``identity_service.repositories``.
"""

from __future__ import annotations

from .event_publisher import (
    EventPublisher,
    InMemoryEventPublisher,
    LogOnlyEventPublisher,
    UserRegistered,
)
from .identity_verifier import IdentityVerifier, StubIdentityVerifier, VerifiedIdentity
from .stores import AccountStore, SessionStore
from .token_codec import TokenCodec, digest_secret, generate_refresh_secret

__all__ = [
    "AccountStore",
    "EventPublisher",
    "IdentityVerifier",
    "InMemoryEventPublisher",
    "LogOnlyEventPublisher",
    "SessionStore",
    "StubIdentityVerifier",
    "TokenCodec",
    "UserRegistered",
    "VerifiedIdentity",
    "digest_secret",
    "generate_refresh_secret",
]
