# identity_service/infra/jwt/flask_jwt_token_codec.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from identity_service.services._shared.ports.token_codec import (
    TokenCodec,
    digest_secret,
    generate_refresh_secret,
)

DEFAULT_ACCESS_TTL_SECONDS = 900


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    Adapter for Flask-JWT-Extended.

    Access tokens carry ``sub`` (user id), ``email``, a fresh ``jti`` per call,
    ``iat``/``nbf``/``exp`` and the ``iss``/``aud`` configured through
    ``JWT_ENCODE_ISSUER``/``JWT_ENCODE_AUDIENCE``; they are signed with
    ``JWT_SECRET_KEY`` using ``JWT_ALGORITHM``.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    ttl_seconds: int = DEFAULT_ACCESS_TTL_SECONDS

    @property
    def access_token_ttl(self) -> int:
        return self.ttl_seconds

    def generate_access_token(self, *, user_id: uuid.UUID | str, email: str) -> str:
        from flask_jwt_extended import create_access_token

        if user_id is None or not str(user_id):
            raise ValueError("An access token requires a user id.")
        if not email:
            raise ValueError("An access token requires an email claim.")

        # jti, iat, nbf, iss and aud are added by the library from app config.
        return cast(
            str,
            create_access_token(
                identity=str(user_id),
                additional_claims={"email": email},
                expires_delta=timedelta(seconds=self.ttl_seconds),
            ),
        )

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """Verify signature, expiry, issuer and audience; return the claims.

        :raises jwt.exceptions.PyJWTError: On any verification failure.
        """
        from flask_jwt_extended import decode_token

        return cast(dict[str, Any], decode_token(token))

    def generate_refresh_secret(self) -> str:
        return generate_refresh_secret()

    def digest(self, secret: str) -> str:
        return digest_secret(secret)
