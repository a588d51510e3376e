from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

log = logging.getLogger(__name__)

USER_REGISTERED = "UserRegistered"


@dataclass(frozen=True, slots=True)
class UserRegistered:
    """
    Fact announced once per newly created account.

    :param user_id: Identifier of the new account.
    :param email: Email the account was created with.
    :param provider: Storage name of the identity provider (``"Google"``).
    :param registered_at: Account creation instant (UTC).
    :param correlation_id: Fresh id per emission, for downstream tracing.
    """

    user_id: uuid.UUID
    email: str
    provider: str
    registered_at: datetime
    correlation_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_message(self) -> dict[str, Any]:
        """Return the wire representation (camelCase JSON object)."""
        return {
            "event": USER_REGISTERED,
            "userId": str(self.user_id),
            "email": self.email,
            "provider": self.provider,
            "registeredAt": self.registered_at.isoformat(),
            "correlationId": str(self.correlation_id),
        }


class EventPublisher(Protocol):
    """Port announcing domain facts to the message bus (fire-and-forget)."""

    def publish_user_registered(self, event: UserRegistered) -> None: ...


class LogOnlyEventPublisher(EventPublisher):
    """Publisher used when no broker is configured: records the fact in the log."""

    def publish_user_registered(self, event: UserRegistered) -> None:
        log.info(
            "events.user_registered.logged",
            extra={
                "event": USER_REGISTERED,
                "user_id": str(event.user_id),
                "correlation_id": str(event.correlation_id),
            },
        )


class InMemoryEventPublisher(EventPublisher):
    """Collects published events in a list; used in unit tests."""

    def __init__(self) -> None:
        self.published: list[UserRegistered] = []

    def publish_user_registered(self, event: UserRegistered) -> None:
        self.published.append(event)
