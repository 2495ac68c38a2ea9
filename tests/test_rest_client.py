from __future__ import annotations

import json

import httpx
import pytest

from farmsync.remote.base import RemoteError
from farmsync.remote.rest_client import RestRemoteClient


def _client(handler) -> RestRemoteClient:
	http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
	return RestRemoteClient("http://remote.test/", "anon-key", "user-token", http_client=http_client)


@pytest.mark.asyncio
async def test_query_builds_postgrest_filters_and_order() -> None:
	seen: list[httpx.Request] = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		return httpx.Response(200, json=[{"id": "a1"}])

	remote = _client(handler)
	rows = await remote.query("areas", {"id": "a1", "cultivar": None}, order="created_at", descending=True)

	assert rows == [{"id": "a1"}]
	request = seen[0]
	assert request.url.path == "/rest/v1/areas"
	assert request.url.params["id"] == "eq.a1"
	assert request.url.params["cultivar"] == "is.null"
	assert request.url.params["order"] == "created_at.desc"
	assert request.headers["apikey"] == "anon-key"
	assert request.headers["authorization"] == "Bearer user-token"


@pytest.mark.asyncio
async def test_insert_and_update_ask_for_representation() -> None:
	seen: list[httpx.Request] = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		body = json.loads(request.content)
		row = body[0] if isinstance(body, list) else body
		return httpx.Response(201, json=[{"id": "p1", **row}])

	remote = _client(handler)
	created = await remote.insert("products", {"name": "Urea"})
	updated = await remote.update("products", "p1", {"quantity_in_stock": 70})

	assert created == {"id": "p1", "name": "Urea"}
	assert updated["quantity_in_stock"] == 70
	assert seen[0].method == "POST"
	assert seen[0].headers["prefer"] == "return=representation"
	assert seen[1].method == "PATCH"
	assert seen[1].url.params["id"] == "eq.p1"


@pytest.mark.asyncio
async def test_update_of_missing_row_raises_not_found() -> None:
	remote = _client(lambda _request: httpx.Response(200, json=[]))

	with pytest.raises(RemoteError) as excinfo:
		await remote.update("areas", "gone", {"name": "x"})

	assert excinfo.value.code == "not_found"
	assert excinfo.value.table == "areas"


@pytest.mark.asyncio
async def test_error_status_carries_backend_code() -> None:
	remote = _client(lambda _request: httpx.Response(409, json={"code": "23514", "message": "check violation"}))

	with pytest.raises(RemoteError) as excinfo:
		await remote.insert("products", {"quantity_in_stock": -1})

	assert excinfo.value.code == "23514"
	assert "check violation" in str(excinfo.value)


@pytest.mark.asyncio
async def test_rpc_call_posts_arguments() -> None:
	seen: list[httpx.Request] = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		return httpx.Response(200, json=[{"id": "s1", "status": "active"}])

	remote = _client(handler)
	result = await remote.call("update_season_status", {"season_id_param": "s1", "new_status": "active"})

	assert result == [{"id": "s1", "status": "active"}]
	assert seen[0].url.path == "/rest/v1/rpc/update_season_status"
	assert json.loads(seen[0].content) == {"season_id_param": "s1", "new_status": "active"}


@pytest.mark.asyncio
async def test_current_user_is_none_when_session_rejected() -> None:
	remote = _client(lambda _request: httpx.Response(401, json={"message": "invalid JWT"}))

	assert await remote.current_user() is None


@pytest.mark.asyncio
async def test_current_user_returns_identity() -> None:
	remote = _client(lambda _request: httpx.Response(200, json={"id": "u1", "email": "a@b.c"}))

	assert await remote.current_user() == {"id": "u1", "email": "a@b.c"}


@pytest.mark.asyncio
async def test_transport_failure_becomes_remote_error() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectError("offline", request=request)

	remote = _client(handler)

	with pytest.raises(RemoteError) as excinfo:
		await remote.delete("areas", "a1")

	assert excinfo.value.code == "transport"
