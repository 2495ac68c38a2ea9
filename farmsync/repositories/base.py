"""Generic mirrored repository over one remote table."""

from __future__ import annotations

import itertools
import time
from typing import Any, ClassVar, Generic, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from farmsync.auth.context import ActingContext
from farmsync.config import get_settings
from farmsync.models.enums import CollectionEnum
from farmsync.remote.base import RemoteClient, RemoteError, Row
from farmsync.repositories.write_strategy import MirrorOnlyPending, RemoteThenMirror, WriteStrategy
from farmsync.schemas.common import MirrorEntity
from farmsync.services.connectivity import ConnectivityMonitor
from farmsync.services.mirror_store import MirrorStore

E = TypeVar("E", bound=MirrorEntity)

logger = structlog.get_logger("farmsync.repository")


class LocalIdFactory:
	"""Temporary identifiers for records created offline: ``<prefix><ns>-<n>``."""

	def __init__(self, prefix: str | None = None):
		self.prefix = prefix or get_settings().local_id_prefix
		self._counter = itertools.count(1)

	def new(self) -> str:
		return f"{self.prefix}{time.time_ns()}-{next(self._counter)}"

	def is_local(self, record_id: str) -> bool:
		return record_id.startswith(self.prefix)


class EntityRepository(Generic[E]):
	"""Mirror-backed CRUD for one entity family.

	Subclasses declare the remote ``table``, the mirror ``collection``, the
	pydantic ``entity_model`` and the writable ``columns``.  Those columns
	drive both directions of the wire mapping, so whatever ``to_row``
	emits ``from_row`` reads back unchanged.
	"""

	collection: ClassVar[CollectionEnum]
	table: ClassVar[str]
	entity_model: ClassVar[type[MirrorEntity]]
	entity_label: ClassVar[str]
	columns: ClassVar[tuple[str, ...]]
	owner_columns: ClassVar[tuple[str, ...]] = ("user_id", "institution_id")
	reference_fields: ClassVar[tuple[str, ...]] = ()
	order_by: ClassVar[str] = "created_at"
	order_descending: ClassVar[bool] = True

	def __init__(
		self,
		remote: RemoteClient,
		mirror_store: MirrorStore,
		connectivity: ConnectivityMonitor,
		ids: LocalIdFactory | None = None,
	):
		self.remote = remote
		self.mirror = mirror_store.collection(self.collection.value)
		self.connectivity = connectivity
		self.ids = ids or LocalIdFactory()
		self.items: list[E] = []
		self.pending_sync = False
		self._remote_then_mirror: WriteStrategy[E] = RemoteThenMirror()
		self._mirror_only: WriteStrategy[E] = MirrorOnlyPending()

	# ── Mapping ─────────────────────────────────────────────────────────────

	def from_row(self, row: Row) -> E:
		return self.entity_model.model_validate(row)  # type: ignore[return-value]

	def to_row(self, source: BaseModel, *, exclude_unset: bool = False) -> dict[str, Any]:
		"""Remote-shaped writable columns (no id, timestamps or owner columns)."""
		fields = set(self.columns) & set(type(source).model_fields)
		return source.model_dump(mode="json", include=fields, exclude_unset=exclude_unset)

	def to_record(self, entity: E) -> dict[str, Any]:
		return entity.model_dump(mode="json")

	def to_mirror(self, entity: E) -> dict[str, Any]:
		return entity.model_dump(mode="json", by_alias=True)

	def from_mirror(self, record: dict[str, Any]) -> E:
		return self.entity_model.model_validate(record)  # type: ignore[return-value]

	def owner_values(self, context: ActingContext) -> dict[str, str]:
		values = {"user_id": context.user_id, "institution_id": context.institution_id}
		return {key: values[key] for key in self.owner_columns}

	def remap_references(self, entity: E, id_map: dict[str, str]) -> E:
		changes = {
			field: id_map[value]
			for field in self.reference_fields
			if isinstance(value := getattr(entity, field, None), str) and value in id_map
		}
		return entity.model_copy(update=changes) if changes else entity

	def replay_problem(self, entity: E) -> str | None:
		"""Reason a mirrored record must not be replayed, if any."""
		return None

	# ── In-memory view ──────────────────────────────────────────────────────

	def list(self) -> list[E]:
		return list(self.items)

	def get(self, record_id: str) -> E | None:
		return next((item for item in self.items if item.id == record_id), None)

	def require(self, record_id: str) -> E:
		entity = self.get(record_id)
		if entity is None:
			raise LookupError(f"{self.entity_label.capitalize()} {record_id} not found")
		return entity

	def replaced(self, record_id: str, entity: E) -> list[E]:
		if self.get(record_id) is None:
			return [entity, *self.items]
		return [entity if item.id == record_id else item for item in self.items]

	def without(self, record_id: str) -> list[E]:
		return [item for item in self.items if item.id != record_id]

	# ── Mirror persistence ──────────────────────────────────────────────────

	async def commit(self, items: list[E], *, pending: bool) -> None:
		"""Persist ``items`` to the mirror; an already-set pending flag is kept."""
		flag = pending or self.pending_sync
		await self.mirror.write([self.to_mirror(item) for item in items], flag)
		self.items = items
		self.pending_sync = flag

	async def load(self) -> list[E]:
		"""Populate the view from the mirror, then from the remote store when online."""
		snapshot = await self.mirror.read()
		items: list[E] = []
		for record in snapshot.data:
			try:
				items.append(self.from_mirror(record))
			except ValidationError as exc:
				logger.warning(
					"mirror_record_invalid",
					collection=self.collection.value,
					record_id=record.get("id"),
					error=str(exc),
				)
		self.items = items
		self.pending_sync = snapshot.pending_sync

		if self.connectivity.is_online and not self.pending_sync:
			try:
				await self.refresh()
			except RemoteError as exc:
				logger.error("collection_load_failed", collection=self.collection.value, error=str(exc))
		return self.list()

	async def refresh(self) -> list[E]:
		"""Replace the mirror with a fresh remote read and clear the pending flag."""
		rows = await self.remote.query(self.table, order=self.order_by, descending=self.order_descending)
		items = [self.from_row(row) for row in rows]
		await self.mirror.write([self.to_mirror(item) for item in items], False)
		self.items = items
		self.pending_sync = False
		self._after_refresh()
		return self.list()

	def _after_refresh(self) -> None:
		return None

	# ── Writes ──────────────────────────────────────────────────────────────

	def strategy(self, record_id: str | None = None) -> WriteStrategy[E]:
		# a record created offline has no remote row yet; it only exists in the mirror
		if record_id is not None and self.ids.is_local(record_id):
			return self._mirror_only
		return self._remote_then_mirror if self.connectivity.is_online else self._mirror_only

	async def create(self, payload: BaseModel, context: ActingContext | None = None) -> E:
		return await self.create_row(self.to_row(payload), context)

	async def create_row(self, row: dict[str, Any], context: ActingContext | None = None) -> E:
		entity = await self.strategy().create(self, row, context)
		logger.info(
			"record_created",
			collection=self.collection.value,
			record_id=entity.id,
			offline=not self.connectivity.is_online,
		)
		return entity

	async def update(self, record_id: str, payload: BaseModel) -> E:
		return await self.update_row(record_id, self.to_row(payload, exclude_unset=True))

	async def update_row(self, record_id: str, patch: dict[str, Any]) -> E:
		entity = await self.strategy(record_id).update(self, record_id, patch)
		logger.info(
			"record_updated",
			collection=self.collection.value,
			record_id=record_id,
			offline=not self.connectivity.is_online,
		)
		return entity

	async def delete(self, record_id: str) -> None:
		await self.strategy(record_id).delete(self, record_id)
		logger.info(
			"record_deleted",
			collection=self.collection.value,
			record_id=record_id,
			offline=not self.connectivity.is_online,
		)
