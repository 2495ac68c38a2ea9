from __future__ import annotations

import json

import pytest

from farmsync.services.mirror_store import MirrorStore


@pytest.mark.asyncio
async def test_read_never_written_collection_returns_empty_default(mirror_store: MirrorStore) -> None:
	snapshot = await mirror_store.read("areas")

	assert snapshot.data == []
	assert snapshot.pending_sync is False
	assert snapshot.timestamp is None


@pytest.mark.asyncio
async def test_write_persists_layout_and_pending_index(mirror_store: MirrorStore, fake_redis) -> None:
	await mirror_store.write("areas", [{"id": "local-1", "name": "North"}], True)

	stored = json.loads(fake_redis.values["test:mirror:areas"])
	assert stored["data"] == [{"id": "local-1", "name": "North"}]
	assert stored["pendingSync"] is True
	assert isinstance(stored["timestamp"], int)
	assert await mirror_store.pending_collections() == {"areas"}

	await mirror_store.write("areas", [{"id": "local-1", "name": "North"}], False)

	snapshot = await mirror_store.read("areas")
	assert snapshot.pending_sync is False
	assert snapshot.data == [{"id": "local-1", "name": "North"}]
	assert await mirror_store.pending_collections() == set()


@pytest.mark.asyncio
async def test_collections_are_independent(mirror_store: MirrorStore) -> None:
	areas = mirror_store.collection("areas")
	products = mirror_store.collection("products")

	await areas.write([{"id": "a"}], True)
	await products.write([{"id": "p"}], False)

	assert (await areas.read()).pending_sync is True
	assert (await products.read()).pending_sync is False
	assert (await products.read()).data == [{"id": "p"}]


@pytest.mark.asyncio
async def test_unreadable_snapshot_degrades_to_empty(mirror_store: MirrorStore, fake_redis) -> None:
	fake_redis.values["test:mirror:seasons"] = "{not json"

	snapshot = await mirror_store.read("seasons")

	assert snapshot.data == []
	assert snapshot.pending_sync is False

