"""Reconciliation: replay pending mirrored collections against the remote store."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from farmsync.auth.context import ActingContext, resolve_acting_context
from farmsync.remote.base import RemoteClient, RemoteError
from farmsync.repositories.base import EntityRepository
from farmsync.schemas.sync import CollectionSyncResult, SyncReport
from farmsync.services.errors import SyncFailedError
from farmsync.services.events import SYNC_COLLECTION, SYNC_COMPLETE, EventBus

logger = structlog.get_logger("farmsync.sync")


class ReconciliationService:
	"""Best-effort replay of pending collections, one collection at a time.

	Per record: temporary ids are inserted, server ids are existence-checked
	and updated.  A record that fails is logged and skipped; the trailing
	full reload then replaces the mirror with remote truth and clears the
	pending flag, so a failed record does not survive the pass.  Only a
	context or reload failure aborts, and then the flag stays set.
	"""

	def __init__(self, remote: RemoteClient, events: EventBus):
		self.remote = remote
		self.events = events

	async def reconcile(self, repositories: Sequence[EntityRepository[Any]]) -> SyncReport:
		report = SyncReport(started_at=datetime.now(UTC))
		pass_id = str(uuid.uuid4())
		structlog.contextvars.bind_contextvars(sync_pass_id=pass_id)
		pending = [repo for repo in repositories if repo.pending_sync]
		try:
			if pending:
				await self._reconcile_pending(pending, report)
			else:
				logger.info("sync_nothing_pending")
		finally:
			structlog.contextvars.unbind_contextvars("sync_pass_id")

		report.completed_at = datetime.now(UTC)
		logger.info("sync_completed", failed=report.failed, collections=len(report.collections))
		await self.events.publish(SYNC_COMPLETE, report.model_dump(mode="json"))
		return report

	async def _reconcile_pending(self, pending: list[EntityRepository[Any]], report: SyncReport) -> None:
		context = await resolve_acting_context(self.remote)
		logger.info("sync_started", collections=[repo.collection.value for repo in pending])

		id_map: dict[str, str] = {}
		for index, repo in enumerate(pending):
			result = await self.reconcile_collection(repo, context, id_map)
			report.collections.append(result)
			await self.events.publish(
				SYNC_COLLECTION,
				{
					"collection": repo.collection.value,
					"remaining": len(pending) - index - 1,
					"result": result.model_dump(),
				},
			)

	async def reconcile_collection(
		self,
		repo: EntityRepository[Any],
		context: ActingContext,
		id_map: dict[str, str] | None = None,
	) -> CollectionSyncResult:
		id_map = id_map if id_map is not None else {}
		name = repo.collection.value
		result = CollectionSyncResult(collection=name)
		snapshot = await repo.mirror.read()

		for record in snapshot.data:
			record_id = record.get("id")
			try:
				entity = repo.from_mirror(record)
			except ValidationError as exc:
				logger.error("sync_record_invalid", collection=name, record_id=record_id, error=str(exc))
				result.failed += 1
				continue

			entity = repo.remap_references(entity, id_map)
			problem = repo.replay_problem(entity)
			if problem is not None:
				logger.error("sync_record_rejected", collection=name, record_id=entity.id, reason=problem)
				result.failed += 1
				continue

			if repo.ids.is_local(entity.id):
				await self._replay_insert(repo, entity, context, id_map, result)
			else:
				await self._replay_update(repo, entity, result)

		try:
			await repo.refresh()
		except RemoteError as exc:
			logger.error("sync_reload_failed", collection=name, error=str(exc))
			raise SyncFailedError(f"Error reloading {name} after sync: {exc}", collection=name) from exc

		logger.info(
			"sync_collection_completed",
			collection=name,
			inserted=result.inserted,
			updated=result.updated,
			skipped=result.skipped,
			failed=result.failed,
		)
		return result

	async def _replay_insert(
		self,
		repo: EntityRepository[Any],
		entity: Any,
		context: ActingContext,
		id_map: dict[str, str],
		result: CollectionSyncResult,
	) -> None:
		payload = {**repo.to_row(entity), **repo.owner_values(context)}
		try:
			created = await self.remote.insert(repo.table, payload)
		except RemoteError as exc:
			logger.error("sync_insert_failed", collection=repo.collection.value, record_id=entity.id, error=str(exc))
			result.failed += 1
			return
		id_map[entity.id] = str(created["id"])
		result.id_map[entity.id] = id_map[entity.id]
		result.inserted += 1
		logger.info("sync_record_inserted", collection=repo.collection.value, local_id=entity.id, record_id=created["id"])

	async def _replay_update(
		self,
		repo: EntityRepository[Any],
		entity: Any,
		result: CollectionSyncResult,
	) -> None:
		name = repo.collection.value
		try:
			existing = await self.remote.query(repo.table, {"id": entity.id})
		except RemoteError as exc:
			logger.error("sync_existence_check_failed", collection=name, record_id=entity.id, error=str(exc))
			result.failed += 1
			return

		if not existing:
			logger.info("sync_record_gone_upstream", collection=name, record_id=entity.id)
			result.skipped += 1
			return

		try:
			await self.remote.update(repo.table, entity.id, repo.to_row(entity))
		except RemoteError as exc:
			logger.error("sync_update_failed", collection=name, record_id=entity.id, error=str(exc))
			result.failed += 1
			return
		result.updated += 1
