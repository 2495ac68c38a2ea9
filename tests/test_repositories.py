from __future__ import annotations

import json

import pytest

from farmsync.auth.context import AuthorizationError
from farmsync.schemas.farm import AreaCreate, AreaUpdate, SeasonCreate
from farmsync.schemas.inventory import ProductCreate
from farmsync.services.errors import RemoteWriteFailure
from farmsync.services.farm_app import FarmApp
from tests.conftest import INSTITUTION_ID, USER_ID, FakeRemoteClient


def _area_row(remote: FakeRemoteClient, name: str = "North", size: float = 12.5) -> dict:
    return remote.seed(
        "areas",
        name=name,
        size=size,
        unit="hectare",
        location="Lot 4",
        description=None,
        current_crop="soy",
        cultivar=None,
        user_id=USER_ID,
        institution_id=INSTITUTION_ID,
    )


@pytest.mark.asyncio
async def test_offline_create_uses_temporary_id_and_flags_pending(farm: FarmApp, fake_redis) -> None:
    await farm.start()
    await farm.connectivity.set_offline()

    area = await farm.areas.create(AreaCreate(name="East", size=4, location="Hill"))

    assert farm.ids.is_local(area.id)
    assert area.created_at is not None
    assert farm.areas.pending_sync is True
    assert farm.has_pending_sync is True
    stored = json.loads(fake_redis.values["test:mirror:areas"])
    assert stored["pendingSync"] is True
    assert stored["data"][0]["id"] == area.id
    assert stored["data"][0]["currentCrop"] is None
    assert "current_crop" not in stored["data"][0]


@pytest.mark.asyncio
async def test_online_create_inserts_with_acting_context(farm: FarmApp, remote: FakeRemoteClient) -> None:
    await farm.start()

    area = await farm.areas.create(AreaCreate(name="East", size=4, location="Hill"))

    assert not farm.ids.is_local(area.id)
    assert farm.areas.pending_sync is False
    row = remote.tables["areas"][0]
    assert row["id"] == area.id
    assert row["institution_id"] == INSTITUTION_ID
    assert row["user_id"] == USER_ID
    assert farm.areas.list()[0].id == area.id


@pytest.mark.asyncio
async def test_products_are_owned_by_institution_only(farm: FarmApp, remote: FakeRemoteClient) -> None:
    await farm.start()

    await farm.products.create(ProductCreate(name="Urea", unit="kg", quantity_in_stock=100, price=3))

    row = remote.tables["products"][0]
    assert row["institution_id"] == INSTITUTION_ID
    assert "user_id" not in row


@pytest.mark.asyncio
async def test_online_create_without_user_raises_authorization_error(farm: FarmApp, remote: FakeRemoteClient) -> None:
    await farm.start()
    remote.user = None

    with pytest.raises(AuthorizationError) as excinfo:
        await farm.areas.create(AreaCreate(name="East", size=4))

    assert excinfo.value.code == "auth_required"
    assert farm.areas.list() == []
    assert remote.tables["areas"] == []


@pytest.mark.asyncio
async def test_user_without_institution_is_rejected(farm: FarmApp, remote: FakeRemoteClient) -> None:
    await farm.start()
    remote.tables["user_profiles"][0]["institution_id"] = None

    with pytest.raises(AuthorizationError) as excinfo:
        await farm.seasons.create(SeasonCreate(name="2026", start_date="2026-01-01"))

    assert excinfo.value.code == "institution_missing"


@pytest.mark.asyncio
async def test_online_update_failure_leaves_mirror_unchanged(farm: FarmApp, remote: FakeRemoteClient) -> None:
    row = _area_row(remote)
    await farm.start()
    remote.fail("update", "areas", record_id=row["id"])

    with pytest.raises(RemoteWriteFailure) as excinfo:
        await farm.areas.update(row["id"], AreaUpdate(name="Renamed"))

    assert excinfo.value.action == "update"
    assert farm.areas.require(row["id"]).name == "North"
    snapshot = await farm.areas.mirror.read()
    assert snapshot.data[0]["name"] == "North"


@pytest.mark.asyncio
async def test_offline_update_patches_in_place(farm: FarmApp, remote: FakeRemoteClient) -> None:
    row = _area_row(remote)
    await farm.start()
    before = farm.areas.require(row["id"])
    await farm.connectivity.set_offline()

    updated = await farm.areas.update(row["id"], AreaUpdate(current_crop="corn"))

    assert updated.current_crop == "corn"
    assert updated.name == "North"
    assert updated.updated_at > before.updated_at
    assert farm.areas.pending_sync is True
    assert remote.tables["areas"][0]["current_crop"] == "soy"


@pytest.mark.asyncio
async def test_offline_delete_removes_from_mirror(farm: FarmApp, remote: FakeRemoteClient) -> None:
    row = _area_row(remote)
    await farm.start()
    await farm.connectivity.set_offline()

    await farm.areas.delete(row["id"])

    assert farm.areas.get(row["id"]) is None
    assert farm.areas.pending_sync is True
    with pytest.raises(LookupError):
        await farm.areas.delete(row["id"])


@pytest.mark.asyncio
async def test_online_writes_to_unsynced_record_stay_in_mirror(farm: FarmApp, remote: FakeRemoteClient) -> None:
    await farm.start()
    await farm.connectivity.set_offline()
    local = await farm.areas.create(AreaCreate(name="Offline", size=1))
    await farm.connectivity.set_online()

    updated = await farm.areas.update(local.id, AreaUpdate(name="Renamed"))

    assert updated.id == local.id
    assert farm.areas.get(local.id).name == "Renamed"

    await farm.areas.delete(local.id)

    assert farm.areas.list() == []
    assert farm.areas.pending_sync is True
    assert remote.writes == []


@pytest.mark.asyncio
async def test_online_write_keeps_existing_pending_flag(farm: FarmApp) -> None:
    await farm.start()
    await farm.connectivity.set_offline()
    await farm.areas.create(AreaCreate(name="Offline", size=1))
    await farm.connectivity.set_online()

    await farm.areas.create(AreaCreate(name="Online", size=2))

    assert farm.areas.pending_sync is True
    assert [area.name for area in farm.areas.list()] == ["Online", "Offline"]


@pytest.mark.asyncio
async def test_load_does_not_refresh_pending_collection(farm: FarmApp, remote: FakeRemoteClient) -> None:
    await farm.start()
    await farm.connectivity.set_offline()
    local = await farm.areas.create(AreaCreate(name="Offline", size=1))
    _area_row(remote, name="Server")
    await farm.connectivity.set_online()

    areas = await farm.areas.load()

    assert [area.id for area in areas] == [local.id]


@pytest.mark.asyncio
async def test_list_is_stable_across_repeated_online_loads(farm: FarmApp, remote: FakeRemoteClient) -> None:
    _area_row(remote, name="A")
    _area_row(remote, name="B")
    await farm.start()

    first = await farm.areas.load()
    second = await farm.areas.load()

    assert first == second
    assert [area.name for area in first] == ["B", "A"]


@pytest.mark.asyncio
async def test_wire_and_mirror_mapping_are_symmetric(farm: FarmApp, remote: FakeRemoteClient) -> None:
    row = _area_row(remote)
    await farm.start()
    repo = farm.areas

    entity = repo.from_row(row)
    wire = repo.to_row(entity)

    assert wire == {key: row[key] for key in repo.columns}
    assert repo.from_mirror(repo.to_mirror(entity)) == entity
    assert repo.from_row({**wire, "id": entity.id, "created_at": row["created_at"], "updated_at": row["updated_at"], "user_id": USER_ID, "institution_id": INSTITUTION_ID}) == entity


@pytest.mark.asyncio
async def test_invalid_mirror_record_is_skipped_on_load(farm: FarmApp, mirror_store) -> None:
    await mirror_store.write("areas", [{"id": "local-1", "name": "Ok", "size": 1, "unit": "acre"}, {"id": "broken"}], True)
    await farm.connectivity.set_offline()

    areas = await farm.areas.load()

    assert [area.id for area in areas] == ["local-1"]


@pytest.mark.asyncio
async def test_low_stock_lists_products_at_or_below_minimum(farm: FarmApp, remote: FakeRemoteClient) -> None:
    for name, stock in (("Low", 5), ("Edge", 20), ("Fine", 21)):
        remote.seed(
            "products",
            name=name,
            unit="kg",
            quantity_in_stock=stock,
            min_stock_level=20,
            price=1,
            institution_id=INSTITUTION_ID,
        )
    await farm.start()

    assert sorted(product.name for product in farm.low_stock_products()) == ["Edge", "Low"]
