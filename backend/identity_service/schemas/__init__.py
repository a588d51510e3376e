"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    GoogleLoginSchema,
    LoginResponseSchema,
    RefreshTokenSchema,
    RevokeAllResponseSchema,
    TokenPairSchema,
)

__all__ = [
    "GoogleLoginSchema",
    "LoginResponseSchema",
    "RefreshTokenSchema",
    "RevokeAllResponseSchema",
    "TokenPairSchema",
]
