"""Connectivity monitor: online/offline state, transition timestamps, quality hints."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import structlog

from farmsync.config import get_settings
from farmsync.schemas.sync import ConnectivityRead
from farmsync.services.events import APP_OFFLINE, APP_ONLINE, EventBus

SLOW_CONNECTION_TYPES = frozenset({"slow-2g", "2g", "3g"})

logger = structlog.get_logger("farmsync.connectivity")


class ConnectivityMonitor:
	"""Republishes platform-level transitions as ``app:online`` / ``app:offline``.

	Platform signals arrive through :meth:`set_online` / :meth:`set_offline`
	(from the HTTP edge or the optional :meth:`probe` loop).  Repeated
	signals for the current state update quality hints but do not emit.
	"""

	def __init__(self, events: EventBus, *, initially_online: bool = True):
		self.events = events
		self.is_online = initially_online
		now = datetime.now(UTC)
		self.last_online_at: datetime | None = now if initially_online else None
		self.last_offline_at: datetime | None = None if initially_online else now
		self.connection_type: str | None = None
		self.downlink_mbps: float | None = None

	@property
	def connection_speed(self) -> str | None:
		if self.downlink_mbps is None:
			return None
		return f"{self.downlink_mbps:g} Mbps"

	@property
	def is_slow_connection(self) -> bool:
		if not self.connection_type:
			return False
		return self.connection_type in SLOW_CONNECTION_TYPES

	def seconds_since_last_change(self) -> int:
		since = self.last_online_at if self.is_online else self.last_offline_at
		if since is None:
			return 0
		return int((datetime.now(UTC) - since).total_seconds())

	def update_quality(self, connection_type: str | None = None, downlink_mbps: float | None = None) -> None:
		if connection_type is not None:
			self.connection_type = connection_type
		if downlink_mbps is not None:
			self.downlink_mbps = downlink_mbps

	async def set_online(self) -> None:
		if self.is_online:
			return
		self.is_online = True
		self.last_online_at = datetime.now(UTC)
		logger.info("connectivity_online")
		await self.events.publish(APP_ONLINE, {"at": self.last_online_at.isoformat()})

	async def set_offline(self) -> None:
		if not self.is_online:
			return
		self.is_online = False
		self.last_offline_at = datetime.now(UTC)
		logger.info("connectivity_offline")
		await self.events.publish(APP_OFFLINE, {"at": self.last_offline_at.isoformat()})

	async def report(
		self,
		is_online: bool,
		connection_type: str | None = None,
		downlink_mbps: float | None = None,
	) -> None:
		self.update_quality(connection_type, downlink_mbps)
		if is_online:
			await self.set_online()
		else:
			await self.set_offline()

	async def probe(self, client: httpx.AsyncClient, url: str | None = None) -> bool:
		"""One reachability check against the remote store; updates state."""
		settings = get_settings()
		target = url or settings.connectivity_probe_url
		try:
			response = await client.get(target, timeout=settings.connectivity_probe_timeout_seconds)
			reachable = response.status_code < 500
		except httpx.HTTPError as exc:
			logger.debug("connectivity_probe_failed", url=target, error=str(exc))
			reachable = False
		await self.report(reachable)
		return reachable

	async def run_probe_loop(self, client: httpx.AsyncClient) -> None:
		interval = get_settings().connectivity_probe_interval_seconds
		while True:
			await self.probe(client)
			await asyncio.sleep(interval)

	def snapshot(self) -> ConnectivityRead:
		return ConnectivityRead(
			is_online=self.is_online,
			connection_type=self.connection_type,
			connection_speed=self.connection_speed,
			is_slow_connection=self.is_slow_connection,
			last_online_at=self.last_online_at,
			last_offline_at=self.last_offline_at,
			seconds_since_last_change=self.seconds_since_last_change(),
		)
