from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from farmsync.config import Settings
from farmsync.schemas.farm import AreaCreate
from farmsync.schemas.sync import SyncReport
from farmsync.services.errors import OfflineError, SyncFailedError
from farmsync.services.farm_app import FarmApp
from tests.conftest import FakeRemoteClient


@pytest.fixture
def auto_farm(remote, mirror_store, connectivity, events, ids, settings: Settings) -> FarmApp:
	auto_settings = settings.model_copy(update={"sync_on_reconnect": True})
	return FarmApp(remote, mirror_store, connectivity, events, ids=ids, settings=auto_settings)


@pytest.mark.asyncio
async def test_sync_while_offline_is_distinguishable(farm: FarmApp) -> None:
	await farm.start()
	await farm.connectivity.set_offline()

	with pytest.raises(OfflineError, match="Offline, cannot sync"):
		await farm.sync_data()


@pytest.mark.asyncio
async def test_concurrent_sync_calls_share_one_pass(farm: FarmApp) -> None:
	await farm.start()
	release = asyncio.Event()
	report = SyncReport(started_at=datetime.now(UTC))
	calls = 0

	async def slow_reconcile(_repositories) -> SyncReport:
		nonlocal calls
		calls += 1
		await release.wait()
		return report

	farm.reconciliation.reconcile = slow_reconcile  # type: ignore[method-assign]

	first = asyncio.create_task(farm.sync_data())
	second = asyncio.create_task(farm.sync_data())
	await asyncio.sleep(0)
	assert farm.sync_in_progress is True
	assert farm.status().sync_in_progress is True

	release.set()
	results = await asyncio.gather(first, second)

	assert calls == 1
	assert results[0] is report
	assert results[1] is report
	assert farm.last_report is report
	assert farm.sync_in_progress is False


@pytest.mark.asyncio
async def test_reconnect_triggers_background_sync(auto_farm: FarmApp) -> None:
	await auto_farm.start()
	await auto_farm.connectivity.set_offline()
	await auto_farm.areas.create(AreaCreate(name="East", size=2))

	await auto_farm.connectivity.set_online()
	assert auto_farm._auto_sync_task is not None
	await auto_farm._auto_sync_task

	assert auto_farm.has_pending_sync is False
	assert auto_farm.last_report is not None
	assert auto_farm.last_report.collections[0].inserted == 1


@pytest.mark.asyncio
async def test_background_sync_retries_with_backoff(auto_farm: FarmApp, monkeypatch: pytest.MonkeyPatch) -> None:
	await auto_farm.start()
	await auto_farm.connectivity.set_offline()
	await auto_farm.areas.create(AreaCreate(name="East", size=2))
	original = auto_farm.reconciliation.reconcile
	attempts = 0

	async def flaky_reconcile(repositories) -> SyncReport:
		nonlocal attempts
		attempts += 1
		if attempts < 3:
			raise SyncFailedError("remote unavailable", collection="areas")
		return await original(repositories)

	auto_farm.reconciliation.reconcile = flaky_reconcile  # type: ignore[method-assign]

	await auto_farm.connectivity.set_online()
	await auto_farm._auto_sync_task

	assert attempts == 3
	assert auto_farm.has_pending_sync is False


@pytest.mark.asyncio
async def test_background_sync_gives_up_after_max_attempts(auto_farm: FarmApp, remote: FakeRemoteClient) -> None:
	await auto_farm.start()
	await auto_farm.connectivity.set_offline()
	await auto_farm.areas.create(AreaCreate(name="East", size=2))
	remote.fail("insert", "areas")
	remote.fail("query", "areas")

	await auto_farm.connectivity.set_online()
	await auto_farm._auto_sync_task

	assert auto_farm.has_pending_sync is True
	assert auto_farm.pending_collections == ["areas"]


def test_retry_delay_is_exponential_and_capped(auto_farm: FarmApp) -> None:
	auto_farm.settings = auto_farm.settings.model_copy(
		update={"sync_retry_base_seconds": 2.0, "sync_retry_max_seconds": 10.0}
	)

	assert [auto_farm._retry_delay(attempt) for attempt in range(1, 5)] == [2.0, 4.0, 8.0, 10.0]


@pytest.mark.asyncio
async def test_start_with_pending_mirror_syncs_when_online(auto_farm: FarmApp, mirror_store) -> None:
	await mirror_store.write(
		"areas",
		[{"id": "local-1-1", "name": "Saved", "size": 1, "unit": "hectare", "location": ""}],
		True,
	)

	await auto_farm.start()
	assert auto_farm._auto_sync_task is not None
	await auto_farm._auto_sync_task

	assert [area.name for area in auto_farm.areas.list()] == ["Saved"]
	assert not auto_farm.ids.is_local(auto_farm.areas.list()[0].id)


@pytest.mark.asyncio
async def test_status_reports_pending_collections(farm: FarmApp) -> None:
	await farm.start()
	await farm.connectivity.set_offline()
	await farm.areas.create(AreaCreate(name="East", size=2))

	status = farm.status()

	assert status.is_online is False
	assert status.has_pending_sync is True
	assert status.pending_collections == ["areas"]
	assert status.sync_in_progress is False
	assert status.last_report is None


@pytest.mark.asyncio
async def test_close_unsubscribes_from_connectivity_events(auto_farm: FarmApp) -> None:
	await auto_farm.start()
	await auto_farm.close()
	await auto_farm.connectivity.set_offline()
	await auto_farm.areas.create(AreaCreate(name="East", size=2))

	await auto_farm.connectivity.set_online()

	assert auto_farm._auto_sync_task is None


@pytest.mark.asyncio
async def test_start_without_pending_index_skips_background_sync(auto_farm: FarmApp, mirror_store) -> None:
	await mirror_store.write("areas", [], False)

	await auto_farm.start()

	assert await mirror_store.pending_collections() == set()
	assert auto_farm._auto_sync_task is None


@pytest.mark.asyncio
async def test_unexpected_background_sync_error_is_logged_not_leaked(auto_farm: FarmApp) -> None:
	await auto_farm.start()
	await auto_farm.connectivity.set_offline()
	await auto_farm.areas.create(AreaCreate(name="East", size=2))
	attempts = 0

	async def broken_reconcile(repositories) -> SyncReport:
		nonlocal attempts
		attempts += 1
		raise KeyError("unexpected remote row")

	auto_farm.reconciliation.reconcile = broken_reconcile  # type: ignore[method-assign]

	await auto_farm.connectivity.set_online()
	await auto_farm._auto_sync_task

	assert attempts == 1
	assert auto_farm._auto_sync_task.exception() is None
	assert auto_farm.has_pending_sync is True
