"""Redis-backed local mirror: one JSON snapshot plus a pending flag per collection."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

import structlog
from redis.asyncio import Redis

from farmsync.config import get_settings

logger = structlog.get_logger("farmsync.mirror")


@dataclass(slots=True)
class MirrorSnapshot:
	data: list[dict[str, Any]] = field(default_factory=list)
	pending_sync: bool = False
	timestamp: int | None = None


class MirrorStore:
	"""Durable keyed storage for mirrored collections.

	Layout per collection key: ``{"data": [...], "pendingSync": bool,
	"timestamp": epoch_ms}``.  A companion set ``<prefix>:pending`` indexes
	the collections whose flag is set.  Collections are independent; no
	write spans more than one collection.
	"""

	def __init__(self, redis_client: Redis, prefix: str | None = None):
		self.redis_client = redis_client
		self.prefix = prefix or get_settings().mirror_key_prefix

	def _key(self, collection: str) -> str:
		return f"{self.prefix}:{collection}"

	@property
	def _pending_key(self) -> str:
		return f"{self.prefix}:pending"

	def collection(self, name: str) -> LocalMirror:
		return LocalMirror(self, name)

	async def read(self, collection: str) -> MirrorSnapshot:
		raw = await self.redis_client.get(self._key(collection))
		if raw is None:
			return MirrorSnapshot()
		if isinstance(raw, bytes):
			raw = raw.decode("utf-8")
		try:
			payload = json.loads(raw)
		except json.JSONDecodeError:
			logger.warning("mirror_snapshot_unreadable", collection=collection)
			return MirrorSnapshot()
		return MirrorSnapshot(
			data=list(payload.get("data") or []),
			pending_sync=bool(payload.get("pendingSync")),
			timestamp=payload.get("timestamp"),
		)

	async def write(self, collection: str, data: list[dict[str, Any]], pending_sync: bool) -> None:
		payload = {
			"data": data,
			"pendingSync": pending_sync,
			"timestamp": int(time.time() * 1000),
		}
		await self.redis_client.set(self._key(collection), json.dumps(payload))
		if pending_sync:
			await self.redis_client.sadd(self._pending_key, collection)
		else:
			await self.redis_client.srem(self._pending_key, collection)

	async def pending_collections(self) -> set[str]:
		members = await self.redis_client.smembers(self._pending_key)
		return {member.decode("utf-8") if isinstance(member, bytes) else member for member in members}


class LocalMirror:
	"""A MirrorStore view bound to a single collection."""

	def __init__(self, store: MirrorStore, name: str):
		self.store = store
		self.name = name

	async def read(self) -> MirrorSnapshot:
		return await self.store.read(self.name)

	async def write(self, data: list[dict[str, Any]], pending_sync: bool) -> None:
		await self.store.write(self.name, data, pending_sync)
