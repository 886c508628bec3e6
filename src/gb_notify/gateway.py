"""Notification gateway: fire-and-forget delivery of bet events.

The engine calls `notify()` after a transition has committed and never waits
on, or inspects, the outcome. The production gateway publishes one JSON
message per event to a Redis Pub/Sub channel; the push-delivery worker that
subscribes to it lives outside this service.

Message format:
    {
        "event_type": "bet_resolved",
        "target_user_ids": ["u1", "u2"],
        "payload": {"bet_id": "...", "bet_title": "...", "title": "...", "message": "...", ...},
        "sent_at": "2026-10-18T12:00:00+00:00"
    }
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.gb_bet.domain.events import BetEvent
from src.gb_common.datetime_utils import utc_now
from src.gb_common.errors import DownstreamFailureError
from src.gb_common.redis_client import get_redis
from src.gb_notify.messages import render

logger = logging.getLogger(__name__)


class NotificationGatewayProtocol(Protocol):
    def notify(
        self, event_type: str, target_user_ids: list[str], payload: dict[str, Any]
    ) -> None: ...


def build_message(
    event_type: str, target_user_ids: list[str], payload: dict[str, Any]
) -> dict[str, Any]:
    title, message = render(event_type, payload)
    return {
        "event_type": event_type,
        "target_user_ids": list(target_user_ids),
        "payload": {**payload, "title": title, "message": message},
        "sent_at": utc_now().isoformat(),
    }


class RedisNotificationGateway:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        channel: str = settings.NOTIFY_CHANNEL,
    ) -> None:
        self._redis_factory = redis_factory
        self._channel = channel
        # strong refs so in-flight publishes are not garbage-collected
        self._pending: set[asyncio.Task[None]] = set()

    def notify(
        self, event_type: str, target_user_ids: list[str], payload: dict[str, Any]
    ) -> None:
        if not target_user_ids:
            return
        message = build_message(event_type, target_user_ids, payload)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("No running event loop; dropped %s notification", event_type)
            return
        task = loop.create_task(self._publish(message))
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    async def _publish(self, message: dict[str, Any]) -> None:
        try:
            client = await self._redis_factory()
            await client.publish(self._channel, json.dumps(message))
        except RedisError as e:
            raise DownstreamFailureError("notification", str(e)) from e

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Notification delivery failed: %s", exc)

    async def drain(self) -> None:
        """Wait for in-flight publishes (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def dispatch_events(gateway: NotificationGatewayProtocol, events: list[BetEvent]) -> None:
    """Hand events to the gateway; a failing gateway never reaches the caller."""
    for event in events:
        try:
            gateway.notify(event.event_type.value, event.target_user_ids, event.payload)
        except Exception:
            logger.exception(
                "Notification %s for bet %s not dispatched",
                event.event_type.value,
                event.payload.get("bet_id"),
            )


_gateway: RedisNotificationGateway | None = None


def get_notification_gateway() -> RedisNotificationGateway:
    global _gateway  # noqa: PLW0603
    if _gateway is None:
        _gateway = RedisNotificationGateway()
    return _gateway
