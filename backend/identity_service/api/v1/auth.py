"""Authentication endpoints: Google login, refresh rotation and revocation."""

from __future__ import annotations

from flask import Blueprint, Response
from flask_jwt_extended import get_jwt_identity

from identity_service.api.deps import (
    get_auth_service,
    json_response,
    load_json,
    require_auth,
    timing,
)
from identity_service.core.errors import BadRequest, Unauthorized
from identity_service.schemas import (
    GoogleLoginSchema,
    LoginResponseSchema,
    RefreshTokenSchema,
    RevokeAllResponseSchema,
    TokenPairSchema,
)
from identity_service.services._shared.errors import ServiceError
from identity_service.services.auth.dto import (
    LoginIn,
    RefreshFailed,
    RefreshIn,
    RevokeIn,
    VerificationFailed,
)

bp = Blueprint("auth", __name__)

google_login_schema = GoogleLoginSchema()
refresh_token_schema = RefreshTokenSchema()
login_response_schema = LoginResponseSchema()
token_pair_schema = TokenPairSchema()
revoke_all_schema = RevokeAllResponseSchema()


@bp.post("/login/google")
@timing
def login_google():
    """Exchange a Google ID token for an access token and refresh secret."""

    data = load_json(google_login_schema)
    service = get_auth_service()
    try:
        result = service.login_with_external_assertion(LoginIn(id_token=data["id_token"]))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    if isinstance(result, VerificationFailed):
        raise BadRequest("Invalid ID Token", code="invalid_id_token")
    return json_response(login_response_schema.dump(result))


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh secret and return a new token pair."""

    data = load_json(refresh_token_schema)
    result = get_auth_service().refresh_session(RefreshIn(refresh_token=data["refresh_token"]))
    if isinstance(result, RefreshFailed):
        raise Unauthorized("Invalid or expired refresh token", code="invalid_refresh_token")
    return json_response(token_pair_schema.dump(result))


@bp.post("/revoke")
@timing
def revoke():
    """Revoke one session. Always 204, whether or not the secret was known."""

    data = load_json(refresh_token_schema)
    get_auth_service().revoke_session(RevokeIn(refresh_token=data["refresh_token"]))
    return Response(status=204)


@bp.post("/revoke-all")
@require_auth
@timing
def revoke_all():
    """Revoke every active session of the authenticated user."""

    service = get_auth_service()
    try:
        revoked = service.revoke_all_sessions(get_jwt_identity())
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response(revoke_all_schema.dump({"revoked": revoked}))
