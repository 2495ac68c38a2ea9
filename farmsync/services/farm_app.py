"""Application facade over the mirrored repositories and the sync engine."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import structlog

from farmsync.auth.context import AuthorizationError
from farmsync.config import Settings, get_settings
from farmsync.models.enums import SYNC_ORDER, CollectionEnum
from farmsync.remote.base import RemoteClient, RemoteError
from farmsync.repositories.areas import AreaRepository
from farmsync.repositories.base import EntityRepository, LocalIdFactory
from farmsync.repositories.machinery import (
	MachineryRepository,
	MaintenanceRepository,
	MaintenanceTypeRepository,
)
from farmsync.repositories.operations import OperationRepository
from farmsync.repositories.products import ProductRepository
from farmsync.repositories.seasons import SeasonRepository
from farmsync.schemas.farm import Area, Operation, Season
from farmsync.schemas.inventory import Product
from farmsync.schemas.machinery import Machinery, Maintenance
from farmsync.schemas.sync import SyncReport, SyncStatusRead
from farmsync.services.connectivity import ConnectivityMonitor
from farmsync.services.errors import OfflineError, SyncFailedError
from farmsync.services.events import APP_ONLINE, EventBus
from farmsync.services.mirror_store import MirrorStore
from farmsync.services.reconciliation_service import ReconciliationService
from farmsync.services.stock_ledger import StockLedger

logger = structlog.get_logger("farmsync.app")

RETRYABLE_SYNC_ERRORS = (SyncFailedError, AuthorizationError, RemoteError)


class FarmApp:
	"""One surface for the HTTP layer: repositories, stock, sync status.

	At most one reconciliation pass runs at a time; a ``sync_data()`` call
	made while a pass is in flight awaits that pass instead of starting
	another.  When ``sync_on_reconnect`` is set, an ``app:online`` event
	starts a background sync retried with capped exponential backoff.
	"""

	def __init__(
		self,
		remote: RemoteClient,
		mirror_store: MirrorStore,
		connectivity: ConnectivityMonitor,
		events: EventBus,
		*,
		ids: LocalIdFactory | None = None,
		settings: Settings | None = None,
	):
		self.remote = remote
		self.mirror_store = mirror_store
		self.connectivity = connectivity
		self.events = events
		self.settings = settings or get_settings()
		self.ids = ids or LocalIdFactory(self.settings.local_id_prefix)

		shared = (remote, mirror_store, connectivity)
		self.areas = AreaRepository(*shared, ids=self.ids)
		self.seasons = SeasonRepository(*shared, ids=self.ids)
		self.products = ProductRepository(*shared, ids=self.ids)
		self.ledger = StockLedger(self.products)
		self.operations = OperationRepository(
			*shared,
			ids=self.ids,
			ledger=self.ledger,
			areas=self.areas,
			seasons=self.seasons,
		)
		self.machinery = MachineryRepository(*shared, ids=self.ids)
		self.maintenance_types = MaintenanceTypeRepository(*shared, ids=self.ids)
		self.maintenances = MaintenanceRepository(*shared, ids=self.ids)

		self.reconciliation = ReconciliationService(remote, events)
		self.last_report: SyncReport | None = None
		self._sync_task: asyncio.Task[SyncReport] | None = None
		self._auto_sync_task: asyncio.Task[None] | None = None
		self._unsubscribe: list[Any] = []

	@property
	def repositories(self) -> list[EntityRepository[Any]]:
		"""Repositories in reconciliation order."""
		by_collection: dict[CollectionEnum, EntityRepository[Any]] = {
			CollectionEnum.areas: self.areas,
			CollectionEnum.operations: self.operations,
			CollectionEnum.products: self.products,
			CollectionEnum.seasons: self.seasons,
			CollectionEnum.machinery: self.machinery,
			CollectionEnum.maintenance_types: self.maintenance_types,
			CollectionEnum.maintenances: self.maintenances,
		}
		return [by_collection[collection] for collection in SYNC_ORDER]

	# ── Lifecycle ───────────────────────────────────────────────────────────

	async def start(self) -> None:
		self._unsubscribe.append(self.events.subscribe(APP_ONLINE, self._on_online))
		pending = await self.mirror_store.pending_collections()
		if pending:
			logger.info("pending_sync_found", collections=sorted(pending))
		await self.load_all()
		if self.settings.sync_on_reconnect and self.connectivity.is_online and pending:
			self._schedule_auto_sync()

	async def load_all(self) -> None:
		for repo in self.repositories:
			await repo.load()
		logger.info(
			"collections_loaded",
			online=self.connectivity.is_online,
			pending=self.pending_collections,
		)

	async def close(self) -> None:
		for unsubscribe in self._unsubscribe:
			unsubscribe()
		self._unsubscribe.clear()
		for task in (self._auto_sync_task, self._sync_task):
			if task is not None and not task.done():
				task.cancel()
				with contextlib.suppress(asyncio.CancelledError):
					await task

	# ── Derived state ───────────────────────────────────────────────────────

	@property
	def is_online(self) -> bool:
		return self.connectivity.is_online

	@property
	def has_pending_sync(self) -> bool:
		return any(repo.pending_sync for repo in self.repositories)

	@property
	def pending_collections(self) -> list[str]:
		return [repo.collection.value for repo in self.repositories if repo.pending_sync]

	@property
	def sync_in_progress(self) -> bool:
		return self._sync_task is not None and not self._sync_task.done()

	def status(self) -> SyncStatusRead:
		return SyncStatusRead(
			is_online=self.is_online,
			has_pending_sync=self.has_pending_sync,
			pending_collections=self.pending_collections,
			sync_in_progress=self.sync_in_progress,
			last_report=self.last_report,
		)

	@property
	def active_season(self) -> Season | None:
		return self.seasons.active_season

	def operations_in_active_season(self) -> list[Operation]:
		return self.operations.active()

	def low_stock_products(self) -> list[Product]:
		return self.products.low_stock()

	def get_area(self, area_id: str) -> Area | None:
		return self.areas.get(area_id)

	def get_product(self, product_id: str) -> Product | None:
		return self.products.get(product_id)

	def get_machinery(self, machinery_id: str) -> Machinery | None:
		return self.machinery.get(machinery_id)

	def operations_by_area(self, area_id: str) -> list[Operation]:
		return self.operations.for_area(area_id)

	def maintenances_by_machinery(self, machinery_id: str) -> list[Maintenance]:
		return self.maintenances.for_machinery(machinery_id)

	async def set_active_season(self, season_id: str | None) -> Season | None:
		return await self.seasons.set_active(season_id)

	# ── Sync ────────────────────────────────────────────────────────────────

	async def sync_data(self) -> SyncReport:
		"""Reconcile every pending collection, joining a pass already in flight."""
		if not self.connectivity.is_online:
			raise OfflineError("Offline, cannot sync")

		if self._sync_task is None or self._sync_task.done():
			self._sync_task = asyncio.create_task(self._run_sync())
		else:
			logger.info("sync_joined_in_flight_pass")
		return await asyncio.shield(self._sync_task)

	async def _run_sync(self) -> SyncReport:
		report = await self.reconciliation.reconcile(self.repositories)
		self.last_report = report
		return report

	async def _on_online(self, event: str, payload: dict[str, Any]) -> None:
		if self.settings.sync_on_reconnect:
			self._schedule_auto_sync()

	def _schedule_auto_sync(self) -> None:
		if self._auto_sync_task is not None and not self._auto_sync_task.done():
			return
		self._auto_sync_task = asyncio.create_task(self._auto_sync())

	def _retry_delay(self, attempt: int) -> float:
		delay = self.settings.sync_retry_base_seconds * (2 ** (attempt - 1))
		return min(delay, self.settings.sync_retry_max_seconds)

	async def _auto_sync(self) -> None:
		max_attempts = self.settings.sync_max_attempts
		for attempt in range(1, max_attempts + 1):
			if not self.has_pending_sync:
				return
			try:
				await self.sync_data()
				return
			except OfflineError:
				logger.info("auto_sync_abandoned_offline", attempt=attempt)
				return
			except RETRYABLE_SYNC_ERRORS as exc:
				if attempt == max_attempts:
					logger.error("auto_sync_gave_up", attempts=attempt, error=str(exc))
					return
				delay = self._retry_delay(attempt)
				logger.warning("auto_sync_retry_scheduled", attempt=attempt, delay_seconds=delay, error=str(exc))
				await asyncio.sleep(delay)
			except Exception as exc:
				logger.exception("auto_sync_failed", attempt=attempt, error=str(exc))
				return
