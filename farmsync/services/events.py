"""In-process event bus for application-level signals.

Handlers are fire-and-forget: a failing handler is logged and never
affects the publisher.  When a redis client is attached, every event is
also published to a channel so out-of-process consumers can follow along.
"""

from __future__ import annotations

import inspect
import json
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from redis.asyncio import Redis

APP_ONLINE = "app:online"
APP_OFFLINE = "app:offline"
SYNC_COLLECTION = "sync:collection"
SYNC_COMPLETE = "sync:complete"
EVENTS_CHANNEL = "farmsync:events"

Handler = Callable[[str, dict[str, Any]], Awaitable[None] | None]

logger = structlog.get_logger("farmsync.events")


class EventBus:
	def __init__(self, redis_client: Redis | None = None):
		self.redis_client = redis_client
		self._handlers: dict[str, list[Handler]] = defaultdict(list)

	def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
		self._handlers[event].append(handler)

		def unsubscribe() -> None:
			if handler in self._handlers[event]:
				self._handlers[event].remove(handler)

		return unsubscribe

	async def publish(self, event: str, payload: dict[str, Any] | None = None) -> None:
		body = payload or {}
		for handler in list(self._handlers.get(event, [])):
			try:
				result = handler(event, body)
				if inspect.isawaitable(result):
					await result
			except Exception as exc:
				logger.exception("event_handler_failed", event_name=event, error=str(exc))

		if self.redis_client is not None:
			try:
				await self.redis_client.publish(
					EVENTS_CHANNEL,
					json.dumps({"event": event, "payload": body}, default=str),
				)
			except Exception as exc:
				logger.warning("event_publish_failed", event_name=event, error=str(exc))
