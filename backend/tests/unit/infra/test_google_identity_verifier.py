"""
Unit tests for GoogleIdentityVerifier.

Tokens are signed with a throwaway RSA key; the signing-key source is a stub
standing in for ``PyJWKClient`` so nothing leaves the process.
"""

from __future__ import annotations

import time
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.exceptions import PyJWKClientConnectionError, PyJWKClientError

from identity_service.core.config import TestingConfig
from identity_service.infra.google.google_identity_verifier import GoogleIdentityVerifier
from identity_service.models.enums import AuthProvider
from identity_service.services._shared.errors import (
    IdentityProviderUnavailableError,
    IdentityVerificationError,
)

GOOGLE_CLIENT_ID = TestingConfig.GOOGLE_CLIENT_IDS[0]


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def other_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


class StubKeySource:
    """Return one fixed public key, or raise a preset error."""

    def __init__(self, public_key=None, error: Exception | None = None):
        self.public_key = public_key
        self.error = error

    def get_signing_key_from_jwt(self, token: str):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(key=self.public_key)


@pytest.fixture
def verifier(signing_key):
    return GoogleIdentityVerifier(
        client_ids=[GOOGLE_CLIENT_ID],
        key_source=StubKeySource(signing_key.public_key()),
        leeway=0,
    )


def _claims(**overrides):
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": GOOGLE_CLIENT_ID,
        "sub": "110169484474386276334",
        "email": "ada@example.com",
        "email_verified": True,
        "name": "Ada Lovelace",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    return {k: v for k, v in claims.items() if v is not None}


def _sign(key, **overrides) -> str:
    return jwt.encode(_claims(**overrides), key, algorithm="RS256", headers={"kid": "k1"})


def _reason(verifier, token) -> str:
    with pytest.raises(IdentityVerificationError) as excinfo:
        verifier.verify(token)
    return excinfo.value.reason


def test_valid_token_yields_identity(verifier, signing_key):
    identity = verifier.verify(_sign(signing_key))

    assert identity.provider is AuthProvider.GOOGLE
    assert identity.subject == "110169484474386276334"
    assert identity.email == "ada@example.com"
    assert identity.name == "Ada Lovelace"
    assert identity.email_verified is True


def test_bare_issuer_spelling_accepted(verifier, signing_key):
    assert verifier.verify(_sign(signing_key, iss="accounts.google.com")).subject


def test_any_configured_client_id_accepted(signing_key):
    verifier = GoogleIdentityVerifier(
        client_ids=["ios-client", GOOGLE_CLIENT_ID],
        key_source=StubKeySource(signing_key.public_key()),
    )
    assert verifier.verify(_sign(signing_key, aud="ios-client")).email == "ada@example.com"


def test_expired_token(verifier, signing_key):
    past = int(time.time()) - 7200
    assert _reason(verifier, _sign(signing_key, iat=past, exp=past + 60)) == "expired"


def test_wrong_audience(verifier, signing_key):
    assert _reason(verifier, _sign(signing_key, aud="another-app")) == "audience_mismatch"


def test_wrong_issuer(verifier, signing_key):
    assert _reason(verifier, _sign(signing_key, iss="https://evil.example")) == "issuer_mismatch"


def test_forged_signature(verifier, other_key):
    assert _reason(verifier, _sign(other_key)) == "bad_signature"


def test_garbage_is_malformed(verifier):
    assert _reason(verifier, "not-a-jwt") == "malformed"


def test_missing_email(verifier, signing_key):
    assert _reason(verifier, _sign(signing_key, email=None)) == "missing_claims"


@pytest.mark.parametrize("claim", ["email", "sub"])
def test_blank_identity_claims_are_missing(verifier, signing_key, claim):
    assert _reason(verifier, _sign(signing_key, **{claim: "   "})) == "missing_claims"


def test_identity_claims_are_trimmed(verifier, signing_key):
    identity = verifier.verify(_sign(signing_key, email=" ada@example.com "))
    assert identity.email == "ada@example.com"


def test_missing_required_subject(verifier, signing_key):
    assert _reason(verifier, _sign(signing_key, sub=None)) == "invalid"


def test_unknown_kid(signing_key):
    verifier = GoogleIdentityVerifier(
        client_ids=[GOOGLE_CLIENT_ID],
        key_source=StubKeySource(error=PyJWKClientError("Unable to find a signing key")),
    )
    assert _reason(verifier, _sign(signing_key)) == "unknown_signing_key"


def test_unreachable_jwks_is_an_outage(signing_key):
    verifier = GoogleIdentityVerifier(
        client_ids=[GOOGLE_CLIENT_ID],
        key_source=StubKeySource(error=PyJWKClientConnectionError("timed out")),
    )
    with pytest.raises(IdentityProviderUnavailableError):
        verifier.verify(_sign(signing_key))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"client_ids": [], "jwks_url": "https://example.test/certs"},
        {"client_ids": [GOOGLE_CLIENT_ID]},
    ],
)
def test_constructor_requires_audience_and_key_source(kwargs):
    with pytest.raises(ValueError):
        GoogleIdentityVerifier(**kwargs)
