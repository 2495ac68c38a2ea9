"""Shared pytest fixtures — in-memory remote store, fake Redis, wired farm facade."""

from __future__ import annotations

import copy
import itertools
import uuid
from collections import defaultdict
from collections.abc import AsyncGenerator, Callable, Mapping
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from farmsync.config import Settings
from farmsync.main import app
from farmsync.remote.base import RemoteError, Row
from farmsync.repositories.base import LocalIdFactory
from farmsync.services.connectivity import ConnectivityMonitor
from farmsync.services.events import EventBus
from farmsync.services.farm_app import FarmApp
from farmsync.services.mirror_store import MirrorStore

USER_ID = "11111111-1111-1111-1111-111111111111"
INSTITUTION_ID = "22222222-2222-2222-2222-222222222222"

FailurePredicate = Callable[[str | None, Mapping[str, Any]], bool]


class FakeRemoteClient:
	"""In-memory stand-in for the hosted store, with failure injection."""

	def __init__(self, user_id: str | None = USER_ID, institution_id: str | None = INSTITUTION_ID) -> None:
		self.tables: dict[str, list[Row]] = defaultdict(list)
		self.user: Row | None = {"id": user_id} if user_id else None
		self.calls: list[tuple[str, dict[str, Any]]] = []
		self.writes: list[tuple[str, str, str | None]] = []
		self._failures: list[tuple[str, str, FailurePredicate]] = []
		self._clock = itertools.count(1)
		if user_id:
			self.tables["user_profiles"].append({"id": user_id, "institution_id": institution_id})

	def _now(self) -> str:
		base = datetime(2026, 1, 1, tzinfo=UTC)
		return (base + timedelta(seconds=next(self._clock))).isoformat()

	def fail(
		self,
		action: str,
		table: str,
		record_id: str | None = None,
		when: FailurePredicate | None = None,
	) -> None:
		"""Make matching calls raise ``RemoteError`` until :meth:`heal`."""

		def matches(target_id: str | None, row: Mapping[str, Any]) -> bool:
			if record_id is not None and target_id != record_id:
				return False
			return when(target_id, row) if when is not None else True

		self._failures.append((action, table, matches))

	def heal(self) -> None:
		self._failures.clear()

	def _check(self, action: str, table: str, record_id: str | None = None, row: Mapping[str, Any] | None = None) -> None:
		for failing_action, failing_table, matches in self._failures:
			if failing_action == action and failing_table == table and matches(record_id, row or {}):
				raise RemoteError(f"injected {action} failure on {table}", table=table, code="injected")

	def _find(self, table: str, record_id: str) -> Row | None:
		return next((row for row in self.tables[table] if row["id"] == record_id), None)

	def seed(self, table: str, **fields: Any) -> Row:
		now = self._now()
		row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **fields}
		self.tables[table].append(row)
		return copy.deepcopy(row)

	async def query(
		self,
		table: str,
		filters: Mapping[str, Any] | None = None,
		order: str | None = None,
		descending: bool = False,
	) -> list[Row]:
		self._check("query", table)
		rows = [
			row
			for row in self.tables[table]
			if all(row.get(key) == value for key, value in (filters or {}).items())
		]
		if order is not None:
			rows = sorted(rows, key=lambda row: (row.get(order) is None, str(row.get(order))), reverse=descending)
		return copy.deepcopy(rows)

	async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
		self._check("insert", table, None, row)
		created = self.seed(table, **copy.deepcopy(dict(row)))
		self.writes.append(("insert", table, created["id"]))
		return created

	async def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> Row:
		self._check("update", table, record_id, patch)
		row = self._find(table, record_id)
		if row is None:
			raise RemoteError(f"{table} {record_id} not found", table=table, code="not_found")
		row.update(copy.deepcopy(dict(patch)))
		row["updated_at"] = self._now()
		self.writes.append(("update", table, record_id))
		return copy.deepcopy(row)

	async def delete(self, table: str, record_id: str) -> None:
		self._check("delete", table, record_id)
		row = self._find(table, record_id)
		if row is None:
			raise RemoteError(f"{table} {record_id} not found", table=table, code="not_found")
		self.tables[table].remove(row)
		self.writes.append(("delete", table, record_id))

	async def call(self, procedure: str, args: Mapping[str, Any]) -> Any:
		self._check("call", procedure)
		self.calls.append((procedure, dict(args)))
		if procedure == "update_season_status":
			target = self._find("seasons", args["season_id_param"])
			if target is None:
				raise RemoteError("season not found", table="seasons", code="P0002")
			for season in self.tables["seasons"]:
				if season is not target and season.get("status") == "active":
					season["status"] = "completed"
			target["status"] = args["new_status"]
			return [copy.deepcopy(target)]
		return None

	async def current_user(self) -> Row | None:
		return copy.deepcopy(self.user)


class FakeRedis:
	"""The handful of Redis commands the mirror and event bus use."""

	def __init__(self) -> None:
		self.values: dict[str, str] = {}
		self.sets: dict[str, set[str]] = defaultdict(set)
		self.publish = AsyncMock(return_value=1)

	async def get(self, key: str) -> str | None:
		return self.values.get(key)

	async def set(self, key: str, value: str) -> bool:
		self.values[key] = value
		return True

	async def delete(self, *keys: str) -> int:
		return sum(1 for key in keys if self.values.pop(key, None) is not None)

	async def sadd(self, key: str, *members: str) -> int:
		before = len(self.sets[key])
		self.sets[key].update(members)
		return len(self.sets[key]) - before

	async def srem(self, key: str, *members: str) -> int:
		before = len(self.sets[key])
		self.sets[key].difference_update(members)
		return before - len(self.sets[key])

	async def smembers(self, key: str) -> set[str]:
		return set(self.sets[key])


@pytest.fixture
def settings() -> Settings:
	return Settings(
		sync_on_reconnect=False,
		sync_retry_base_seconds=0.0,
		sync_retry_max_seconds=0.0,
		sync_max_attempts=3,
		mirror_key_prefix="test:mirror",
		local_id_prefix="local-",
	)


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def remote() -> FakeRemoteClient:
	return FakeRemoteClient()


@pytest.fixture
def events(fake_redis: FakeRedis) -> EventBus:
	return EventBus(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def connectivity(events: EventBus) -> ConnectivityMonitor:
	return ConnectivityMonitor(events)


@pytest.fixture
def mirror_store(fake_redis: FakeRedis) -> MirrorStore:
	return MirrorStore(fake_redis, "test:mirror")  # type: ignore[arg-type]


@pytest.fixture
def ids() -> LocalIdFactory:
	return LocalIdFactory("local-")


@pytest.fixture
def farm(
	remote: FakeRemoteClient,
	mirror_store: MirrorStore,
	connectivity: ConnectivityMonitor,
	events: EventBus,
	ids: LocalIdFactory,
	settings: Settings,
) -> FarmApp:
	"""Facade over the fakes; call ``await farm.start()`` to load collections."""
	return FarmApp(remote, mirror_store, connectivity, events, ids=ids, settings=settings)


@pytest.fixture
async def client(farm: FarmApp) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the facade preloaded."""
	await farm.start()
	app.state.farm_app = farm
	app.state.connectivity = farm.connectivity
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	await farm.close()
