from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import redis
from redis.exceptions import RedisError

from identity_service.services._shared.ports.event_publisher import (
    USER_REGISTERED,
    EventPublisher,
    UserRegistered,
)

log = logging.getLogger(__name__)

DEFAULT_CHANNEL = "identity.user_registered"


@dataclass(slots=True)
class RedisEventPublisher(EventPublisher):
    """
    Publish domain events on a Redis pub/sub channel as JSON.

    Publication happens after the database commit and is fire-and-forget: a
    broker failure is logged with its traceback and never undoes a login.

    :param r: A Redis client.
    :param channel: Channel receiving ``UserRegistered`` messages.
    """

    r: redis.Redis
    channel: str = DEFAULT_CHANNEL

    def publish_user_registered(self, event: UserRegistered) -> None:
        payload = json.dumps(event.to_message())
        extra = {
            "event": USER_REGISTERED,
            "user_id": str(event.user_id),
            "correlation_id": str(event.correlation_id),
        }
        try:
            receivers = self.r.publish(self.channel, payload)
        except RedisError:
            log.error("events.user_registered.publish_failed", extra=extra, exc_info=True)
            return
        log.info("events.user_registered.published receivers=%s", receivers, extra=extra)
