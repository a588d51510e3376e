"""Tests for the RefreshToken model."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from identity_service.models.enums import TokenStatus
from identity_service.models.refresh_token import DEFAULT_VALIDITY, RefreshToken
from identity_service.services._shared.errors import TokenAlreadyRevokedError
from tests.factories.refresh_token import RefreshTokenFactory

NOW = datetime(2026, 5, 10, 8, 0, tzinfo=UTC)


def _issue(**overrides) -> RefreshToken:
    params = {"user_id": uuid.uuid4(), "token_digest": "digest", "now": NOW}
    params.update(overrides)
    return RefreshToken.issue(**params)


class TestRefreshToken:
    def test_issue_defaults_to_seven_days(self):
        token = _issue()
        assert token.created_at == NOW
        assert token.expires_at == NOW + DEFAULT_VALIDITY
        assert DEFAULT_VALIDITY == timedelta(days=7)
        assert token.is_revoked is False
        assert token.revoked_at is None
        assert token.status(NOW) is TokenStatus.ACTIVE

    def test_issue_requires_owner(self):
        with pytest.raises(ValueError):
            _issue(user_id=None)

    @pytest.mark.parametrize("validity", [timedelta(0), timedelta(seconds=-1)])
    def test_issue_requires_positive_validity(self, validity):
        with pytest.raises(ValueError):
            _issue(validity=validity)

    def test_issue_requires_digest(self):
        with pytest.raises(ValueError):
            _issue(token_digest="")

    def test_expiry_boundary_is_inclusive(self):
        token = _issue(validity=timedelta(hours=1))
        assert token.is_active(NOW + timedelta(minutes=59, seconds=59))
        assert token.is_expired(NOW + timedelta(hours=1))
        assert token.status(NOW + timedelta(hours=1)) is TokenStatus.EXPIRED

    def test_revoke_is_terminal(self):
        token = _issue()
        later = NOW + timedelta(minutes=5)
        token.revoke(later)

        assert token.is_revoked is True
        assert token.revoked_at == later
        assert token.is_active(later) is False
        assert token.status(later) is TokenStatus.REVOKED

        with pytest.raises(TokenAlreadyRevokedError):
            token.revoke(later)
        with pytest.raises(ValueError):
            token.is_revoked = False

    def test_expired_token_can_still_be_revoked(self):
        token = _issue(validity=timedelta(minutes=1))
        token.revoke(NOW + timedelta(days=1))
        assert token.status(NOW + timedelta(days=1)) is TokenStatus.REVOKED

    def test_expiry_fixed_at_issuance(self):
        token = _issue()
        with pytest.raises(ValueError):
            token.expires_at = NOW + timedelta(days=30)

    def test_digest_unique(self, session):
        first = RefreshTokenFactory(secret="same")
        session.commit()

        session.add(_issue(user_id=first.user_id, token_digest=first.token_digest))
        with pytest.raises(IntegrityError):
            session.commit()
