"""
Store contracts consumed by the authentication orchestrator.

SQLAlchemy repositories satisfy these structurally; nothing here commits.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from identity_service.models.enums import AuthProvider
    from identity_service.models.refresh_token import RefreshToken
    from identity_service.models.user import User


class AccountStore(Protocol):
    """Persistence of :class:`User` accounts."""

    def get(self, entity_id: uuid.UUID, *, for_update: bool = False) -> User | None: ...

    def get_by_external_subject(self, provider: AuthProvider, subject: str) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def add(self, instance: User) -> User:
        """Insert a new account; raises ``IntegrityError`` on a duplicate natural key."""
        ...

    def update(self, instance: User) -> User: ...


class SessionStore(Protocol):
    """Persistence of :class:`RefreshToken` records."""

    def get(self, entity_id: uuid.UUID, *, for_update: bool = False) -> RefreshToken | None: ...

    def get_by_digest(self, digest: str, *, for_update: bool = False) -> RefreshToken | None: ...

    def list_active_for_user(
        self, user_id: uuid.UUID, now: datetime, *, for_update: bool = False
    ) -> Sequence[RefreshToken]: ...

    def list_for_user(self, user_id: uuid.UUID) -> Sequence[RefreshToken]: ...

    def add(self, instance: RefreshToken) -> RefreshToken: ...

    def update(self, instance: RefreshToken) -> RefreshToken: ...

    def revoke_all_active_for_user(self, user_id: uuid.UUID, now: datetime) -> int: ...
