"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from identity_service.repositories.base import BaseRepository
from identity_service.repositories.refresh_token import RefreshTokenRepository
from identity_service.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
