from __future__ import annotations

import base64
import hashlib
import secrets
import uuid
from typing import Any, Protocol

REFRESH_SECRET_BYTES = 32


class TokenCodec(Protocol):
    """Port for minting access tokens and handling opaque refresh secrets."""

    @property
    def access_token_ttl(self) -> int:
        """Access token lifetime in seconds (reported as ``expires_in``)."""
        ...

    def generate_access_token(self, *, user_id: uuid.UUID | str, email: str) -> str: ...

    def decode_access_token(self, token: str) -> dict[str, Any]: ...

    def generate_refresh_secret(self) -> str: ...

    def digest(self, secret: str) -> str: ...


def generate_refresh_secret() -> str:
    """Return 32 CSPRNG bytes, standard base64 encoded (44 characters)."""
    return base64.b64encode(secrets.token_bytes(REFRESH_SECRET_BYTES)).decode("ascii")


def digest_secret(secret: str) -> str:
    """
    Return the storage digest of a refresh secret.

    SHA-256 over the UTF-8 bytes, standard base64 encoded. Deterministic and
    one-way; the secret itself is never persisted. Lone surrogates (legal in
    JSON strings) are encoded as-is so any presented string yields a digest.

    :raises ValueError: If ``secret`` is empty or ``None``.
    """
    if not secret:
        raise ValueError("Cannot digest an empty secret.")
    raw = hashlib.sha256(secret.encode("utf-8", errors="surrogatepass")).digest()
    return base64.b64encode(raw).decode("ascii")
