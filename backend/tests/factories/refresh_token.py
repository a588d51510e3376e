"""Factory Boy definition for :class:`identity_service.models.refresh_token.RefreshToken`."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import factory

from identity_service.models.refresh_token import RefreshToken
from identity_service.services._shared.ports.token_codec import digest_secret
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class RefreshTokenFactory(BaseFactory):
    """
    Build persisted refresh tokens.

    Pass ``secret="..."`` to control the plaintext; the stored digest is
    derived from it the same way the service does.
    """

    class Meta:
        model = RefreshToken
        exclude = ("secret",)

    id = factory.LazyFunction(uuid.uuid4)
    user = factory.SubFactory(UserFactory)
    user_id = factory.SelfAttribute("user.id")
    secret = factory.Sequence(lambda n: f"secret-{n}")
    token_digest = factory.LazyAttribute(lambda o: digest_secret(o.secret))
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    expires_at = factory.LazyAttribute(lambda o: o.created_at + timedelta(days=7))
    revoked_at = None
    is_revoked = False
