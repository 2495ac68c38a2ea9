"""Online/offline write paths shared by every repository.

``RemoteThenMirror`` writes to the remote store first and only then updates
the mirror; ``MirrorOnlyPending`` touches the mirror alone and tags the
collection pending.  The repository picks one per call from the
connectivity monitor's current state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from farmsync.auth.context import ActingContext, resolve_acting_context
from farmsync.remote.base import RemoteError
from farmsync.services.errors import RemoteWriteFailure

if TYPE_CHECKING:
	from farmsync.repositories.base import EntityRepository

E = TypeVar("E")


class WriteStrategy(Generic[E]):
	pending = False

	async def create(
		self,
		repo: EntityRepository[E],
		row: dict[str, Any],
		context: ActingContext | None,
	) -> E:
		raise NotImplementedError

	async def update(self, repo: EntityRepository[E], record_id: str, patch: dict[str, Any]) -> E:
		raise NotImplementedError

	async def delete(self, repo: EntityRepository[E], record_id: str) -> None:
		raise NotImplementedError


class RemoteThenMirror(WriteStrategy[E]):
	pending = False

	async def create(
		self,
		repo: EntityRepository[E],
		row: dict[str, Any],
		context: ActingContext | None,
	) -> E:
		if context is None:
			context = await resolve_acting_context(repo.remote)
		payload = {**row, **repo.owner_values(context)}
		try:
			created = await repo.remote.insert(repo.table, payload)
		except RemoteError as exc:
			raise RemoteWriteFailure(
				f"Error adding {repo.entity_label}: {exc}",
				table=repo.table,
				action="insert",
			) from exc
		entity = repo.from_row(created)
		await repo.commit([entity, *repo.items], pending=False)
		return entity

	async def update(self, repo: EntityRepository[E], record_id: str, patch: dict[str, Any]) -> E:
		try:
			updated = await repo.remote.update(repo.table, record_id, patch)
		except RemoteError as exc:
			raise RemoteWriteFailure(
				f"Error updating {repo.entity_label} {record_id}: {exc}",
				table=repo.table,
				action="update",
				record_id=record_id,
			) from exc
		entity = repo.from_row(updated)
		await repo.commit(repo.replaced(record_id, entity), pending=False)
		return entity

	async def delete(self, repo: EntityRepository[E], record_id: str) -> None:
		try:
			await repo.remote.delete(repo.table, record_id)
		except RemoteError as exc:
			raise RemoteWriteFailure(
				f"Error deleting {repo.entity_label} {record_id}: {exc}",
				table=repo.table,
				action="delete",
				record_id=record_id,
			) from exc
		await repo.commit(repo.without(record_id), pending=False)


class MirrorOnlyPending(WriteStrategy[E]):
	pending = True

	async def create(
		self,
		repo: EntityRepository[E],
		row: dict[str, Any],
		context: ActingContext | None,
	) -> E:
		now = datetime.now(UTC)
		record = {
			**row,
			**(repo.owner_values(context) if context is not None else {}),
			"id": repo.ids.new(),
			"created_at": now,
			"updated_at": now,
		}
		entity = repo.from_row(record)
		await repo.commit([entity, *repo.items], pending=True)
		return entity

	async def update(self, repo: EntityRepository[E], record_id: str, patch: dict[str, Any]) -> E:
		current = repo.require(record_id)
		merged = {**repo.to_record(current), **patch, "updated_at": datetime.now(UTC)}
		entity = repo.from_row(merged)
		await repo.commit(repo.replaced(record_id, entity), pending=True)
		return entity

	async def delete(self, repo: EntityRepository[E], record_id: str) -> None:
		repo.require(record_id)
		await repo.commit(repo.without(record_id), pending=True)
