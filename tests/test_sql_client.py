from __future__ import annotations

import uuid
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from farmsync.models import Base, SeasonStatusEnum
from farmsync.remote.base import RemoteError
from farmsync.remote.sql_client import SqlRemoteClient, _coerce, _row_to_dict


def _remote() -> tuple[SqlRemoteClient, MagicMock]:
    session_factory = MagicMock(side_effect=AssertionError("database should not be reached"))
    return SqlRemoteClient(session_factory, user_id="11111111-1111-1111-1111-111111111111"), session_factory


def test_registered_metadata_covers_every_synchronized_table() -> None:
    assert {
        "areas",
        "seasons",
        "operations",
        "products",
        "machinery",
        "maintenance_types",
        "maintenances",
        "user_profiles",
        "institutions",
    } <= set(Base.metadata.tables)


def test_coerce_converts_wire_values_to_column_types() -> None:
    seasons = Base.metadata.tables["seasons"]
    record_id = "3f0c9a55-2a55-4d8b-9d0e-3a5c1b7c2f10"

    assert _coerce(seasons.c.id, record_id) == uuid.UUID(record_id)
    assert _coerce(seasons.c.start_date, "2026-01-01") == date(2026, 1, 1)
    assert _coerce(seasons.c.status, "active") is SeasonStatusEnum.active
    assert _coerce(seasons.c.end_date, None) is None


def test_row_to_dict_returns_wire_shapes() -> None:
    record_id = uuid.uuid4()
    row = _row_to_dict(
        {
            "id": record_id,
            "start_date": date(2026, 1, 1),
            "created_at": datetime(2026, 1, 1, 8, 30),
            "status": SeasonStatusEnum.planned,
        }
    )

    assert row == {
        "id": str(record_id),
        "start_date": "2026-01-01",
        "created_at": "2026-01-01T08:30:00",
        "status": "planned",
    }


@pytest.mark.asyncio
async def test_query_with_non_uuid_id_matches_nothing() -> None:
    remote, session_factory = _remote()

    assert await remote.query("areas", {"id": "local-123-1"}) == []
    session_factory.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_table_and_column_are_rejected() -> None:
    remote, _ = _remote()

    with pytest.raises(RemoteError) as excinfo:
        await remote.query("notes")
    assert excinfo.value.code == "unknown_table"

    with pytest.raises(RemoteError) as excinfo:
        await remote.insert("areas", {"colour": "green"})
    assert excinfo.value.code == "unknown_column"


@pytest.mark.asyncio
async def test_update_of_local_id_is_not_found() -> None:
    remote, _ = _remote()

    with pytest.raises(RemoteError) as excinfo:
        await remote.update("areas", "local-1-1", {"name": "x"})

    assert excinfo.value.code == "not_found"


@pytest.mark.asyncio
async def test_procedure_names_are_validated() -> None:
    remote, _ = _remote()

    with pytest.raises(RemoteError) as excinfo:
        await remote.call("drop table areas; --", {})

    assert excinfo.value.code == "invalid_procedure"


@pytest.mark.asyncio
async def test_current_user_reflects_configured_identity() -> None:
    remote, _ = _remote()

    assert await remote.current_user() == {"id": "11111111-1111-1111-1111-111111111111"}
    assert await SqlRemoteClient(MagicMock()).current_user() is None


@pytest.mark.asyncio
async def test_delete_of_local_id_matches_no_rows() -> None:
    remote, session_factory = _remote()

    assert await remote.delete("areas", "local-1-1") is None
    session_factory.assert_not_called()
