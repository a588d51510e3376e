"""Tests for the User model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError, StatementError

from identity_service.models.enums import AuthProvider
from identity_service.models.user import User
from tests.factories.user import UserFactory

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


class TestUser:
    def test_register_builds_a_never_logged_in_account(self):
        u = User.register(
            provider=AuthProvider.GOOGLE,
            external_subject="1098",
            email="  ada@example.com ",
            now=NOW,
        )
        assert u.id is not None
        assert u.email == "ada@example.com"
        assert u.created_at == NOW
        assert u.last_login_at is None
        assert u.is_new_user is True

    def test_record_login_stamps_last_login(self):
        u = User.register(
            provider=AuthProvider.GOOGLE, external_subject="s", email="a@x.com", now=NOW
        )
        later = NOW + timedelta(hours=1)
        u.record_login(later)
        assert u.last_login_at == later
        assert u.is_new_user is False

    def test_external_subject_is_immutable(self):
        u = User.register(
            provider=AuthProvider.GOOGLE, external_subject="s-1", email="a@x.com", now=NOW
        )
        with pytest.raises(ValueError):
            u.external_subject = "s-2"

    @pytest.mark.parametrize("field", ["email", "external_subject"])
    def test_blank_identity_fields_rejected(self, field):
        kwargs = {"email": "a@x.com", "external_subject": "s"}
        kwargs[field] = "   "
        with pytest.raises(ValueError):
            User.register(provider=AuthProvider.GOOGLE, now=NOW, **kwargs)

    def test_provider_must_be_enum_member(self):
        with pytest.raises(ValueError):
            User.register(provider="google", external_subject="s", email="a@x.com", now=NOW)

    def test_provider_subject_pair_unique(self, session):
        UserFactory(external_subject="dup")
        session.commit()

        session.add(
            User.register(
                provider=AuthProvider.GOOGLE, external_subject="dup", email="b@x.com", now=NOW
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()

    def test_same_email_allowed_across_providers(self, session):
        UserFactory(email="shared@example.com", provider=AuthProvider.GOOGLE)
        UserFactory(email="shared@example.com", provider=AuthProvider.APPLE)
        session.commit()

    def test_timestamps_round_trip_as_utc(self, session):
        u = UserFactory(created_at=NOW)
        session.commit()
        session.expire_all()

        reloaded = session.get(User, u.id)
        assert reloaded.created_at == NOW
        assert reloaded.created_at.tzinfo is not None

    def test_naive_datetime_rejected_on_write(self, session):
        u = User.register(
            provider=AuthProvider.GOOGLE,
            external_subject="naive",
            email="a@x.com",
            now=datetime(2026, 1, 1, 12, 0),
        )
        session.add(u)
        with pytest.raises(StatementError, match="UTC-aware"):
            session.flush()
