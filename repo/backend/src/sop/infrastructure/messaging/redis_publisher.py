from __future__ import annotations

import logging

from sop.application.ports.publisher import EventPublisher
from sop.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RedisEventPublisher(EventPublisher):
    """Redis pub/sub; a subscriber that is offline when an event is sent misses it."""

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        client = get_redis_client(timeout_seconds=self._timeout_seconds)
        receivers = client.publish(channel, message)
        if not receivers:
            logger.info("event_unobserved", extra={"channel": channel})
            return
        logger.debug("event_published", extra={"channel": channel, "receivers": receivers})
