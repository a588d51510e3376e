"""Authentication-related Marshmallow schemas (camelCase on the wire)."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

ID_TOKEN_MAX_LENGTH = 2048
REFRESH_TOKEN_MAX_LENGTH = 512


class GoogleLoginSchema(Schema):
    """Input payload for ``POST /auth/login/google``."""

    class Meta:
        unknown = EXCLUDE

    id_token = fields.String(
        required=True,
        data_key="idToken",
        validate=validate.Length(min=1, max=ID_TOKEN_MAX_LENGTH),
    )


class RefreshTokenSchema(Schema):
    """Input payload carrying a refresh secret (refresh and revoke)."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        required=True,
        data_key="refreshToken",
        validate=validate.Length(min=1, max=REFRESH_TOKEN_MAX_LENGTH),
    )


class TokenPairSchema(Schema):
    """Response payload of a successful refresh."""

    class Meta:
        ordered = True

    access_token = fields.String(data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken")
    expires_in = fields.Integer(data_key="expiresIn")
    token_type = fields.String(data_key="tokenType")


class LoginResponseSchema(TokenPairSchema):
    """Response payload of a successful login."""

    user_id = fields.UUID(data_key="userId")
    is_new_user = fields.Boolean(data_key="isNewUser")
    email = fields.String()


class RevokeAllResponseSchema(Schema):
    """Response payload of ``POST /auth/revoke-all``."""

    revoked = fields.Integer(required=True)
