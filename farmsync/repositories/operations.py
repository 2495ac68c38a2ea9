"""Operation repository: season scoping and stock-ledger side effects."""

from __future__ import annotations

import structlog

from farmsync.auth.context import ActingContext, resolve_acting_context
from farmsync.models.enums import CollectionEnum
from farmsync.repositories.areas import AreaRepository
from farmsync.repositories.base import EntityRepository
from farmsync.repositories.seasons import SeasonRepository
from farmsync.schemas.farm import Operation, OperationCreate, OperationUpdate, ProductUsage
from farmsync.services.errors import RemoteWriteFailure
from farmsync.services.stock_ledger import StockLedger, usages_changed

logger = structlog.get_logger("farmsync.repository")


class OperationRepository(EntityRepository[Operation]):
	collection = CollectionEnum.operations
	table = "operations"
	entity_model = Operation
	entity_label = "operation"
	columns = (
		"area_id",
		"season_id",
		"type",
		"start_date",
		"end_date",
		"next_operation_date",
		"description",
		"operated_by",
		"products_used",
		"operation_size",
		"yield_per_hectare",
		"seeds_per_hectare",
		"notes",
	)
	reference_fields = ("area_id", "season_id")

	def __init__(
		self,
		*args,
		ledger: StockLedger,
		areas: AreaRepository,
		seasons: SeasonRepository,
		**kwargs,
	) -> None:
		super().__init__(*args, **kwargs)
		self.ledger = ledger
		self.areas = areas
		self.seasons = seasons

	# ── Season scoping ──────────────────────────────────────────────────────

	def active(self) -> list[Operation]:
		"""Operations of the active season (all of them when none is selected)."""
		season_id = self.seasons.active_season_id
		if season_id is None:
			return self.list()
		return [item for item in self.items if item.season_id == season_id]

	def for_area(self, area_id: str) -> list[Operation]:
		return [item for item in self.active() if item.area_id == area_id]

	# ── Reconciliation hooks ────────────────────────────────────────────────

	def remap_references(self, entity: Operation, id_map: dict[str, str]) -> Operation:
		entity = super().remap_references(entity, id_map)
		if not any(usage.product_id in id_map for usage in entity.products_used):
			return entity
		usages = [
			usage.model_copy(update={"product_id": id_map.get(usage.product_id, usage.product_id)})
			for usage in entity.products_used
		]
		return entity.model_copy(update={"products_used": usages})

	def replay_problem(self, entity: Operation) -> str | None:
		if entity.operation_size <= 0:
			return "operation_size must be greater than zero"
		area = self.areas.get(entity.area_id)
		if area is not None and entity.operation_size > area.size:
			return f"operation_size {entity.operation_size:g} exceeds area size {area.size:g}"
		return None

	# ── Writes ──────────────────────────────────────────────────────────────

	async def create(  # type: ignore[override]
		self,
		payload: OperationCreate,
		context: ActingContext | None = None,
	) -> Operation:
		season = self.seasons.active_season
		if season is None:
			raise ValueError("No active season selected")
		if self.connectivity.is_online and context is None:
			context = await resolve_acting_context(self.remote)

		row = {**self.to_row(payload), "season_id": season.id}
		async with self.ledger.hold():
			await self.ledger.reserve(payload.products_used)
			try:
				return await self.create_row(row, context)
			except RemoteWriteFailure:
				await self._compensate(release=payload.products_used, reserve=[])
				raise

	async def update(self, record_id: str, payload: OperationUpdate) -> Operation:  # type: ignore[override]
		async with self.ledger.hold():
			current = self.require(record_id)
			patch = self.to_row(payload, exclude_unset=True)

			old_usages = current.products_used
			new_usages = payload.products_used
			if new_usages is not None and not usages_changed(old_usages, new_usages):
				new_usages = None
			if new_usages is not None:
				self.ledger.check(new_usages, credit=old_usages)
				await self.ledger.release(old_usages)
				await self.ledger.reserve(new_usages)

			try:
				return await self.update_row(record_id, patch)
			except RemoteWriteFailure:
				if new_usages is not None:
					await self._compensate(release=new_usages, reserve=old_usages)
				raise

	async def delete(self, record_id: str) -> None:
		async with self.ledger.hold():
			current = self.get(record_id)
			usages = current.products_used if current is not None else []
			await self.ledger.release(usages)
			try:
				await super().delete(record_id)
			except RemoteWriteFailure:
				await self._compensate(release=[], reserve=usages)
				raise

	async def _compensate(self, *, release: list[ProductUsage], reserve: list[ProductUsage]) -> None:
		"""Undo stock movements for an operation write that did not persist."""
		try:
			await self.ledger.release(release)
			await self.ledger.reserve(reserve)
		except Exception as exc:
			logger.error("stock_compensation_failed", collection=self.collection.value, error=str(exc))
			return
		logger.info("stock_compensated", collection=self.collection.value)
