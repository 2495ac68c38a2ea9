"""httpx transport for a PostgREST-compatible hosted backend."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from farmsync.config import get_settings
from farmsync.remote.base import RemoteError, Row


def _filter_value(value: Any) -> str:
	if value is None:
		return "is.null"
	if isinstance(value, bool):
		return f"is.{str(value).lower()}"
	return f"eq.{value}"


class RestRemoteClient:
	"""Talks to ``/rest/v1`` (tables and ``rpc/``) and ``/auth/v1/user``."""

	def __init__(
		self,
		base_url: str | None = None,
		api_key: str | None = None,
		access_token: str | None = None,
		http_client: httpx.AsyncClient | None = None,
	):
		settings = get_settings()
		self.base_url = (base_url or settings.remote_rest_url).rstrip("/")
		self.api_key = api_key if api_key is not None else settings.remote_api_key
		self.access_token = access_token if access_token is not None else settings.remote_access_token
		self._client = http_client or httpx.AsyncClient(timeout=settings.remote_timeout_seconds)
		self._owns_client = http_client is None

	async def aclose(self) -> None:
		if self._owns_client:
			await self._client.aclose()

	def _headers(self, *, representation: bool = False) -> dict[str, str]:
		headers = {
			"apikey": self.api_key,
			"authorization": f"Bearer {self.access_token or self.api_key}",
			"content-type": "application/json",
		}
		if representation:
			headers["prefer"] = "return=representation"
		return headers

	async def _request(
		self,
		method: str,
		path: str,
		*,
		table: str | None = None,
		params: Mapping[str, str] | None = None,
		json_body: Any = None,
		representation: bool = False,
	) -> Any:
		try:
			response = await self._client.request(
				method,
				f"{self.base_url}{path}",
				params=dict(params or {}),
				json=json_body,
				headers=self._headers(representation=representation),
			)
		except httpx.HTTPError as exc:
			raise RemoteError(f"{method} {path} failed: {exc}", table=table, code="transport") from exc

		if response.status_code >= 400:
			code: str | None = None
			message = response.text
			try:
				payload = response.json()
				code = payload.get("code")
				message = payload.get("message") or message
			except (ValueError, AttributeError):
				pass
			raise RemoteError(message, table=table, code=code or str(response.status_code))

		if not response.content:
			return None
		return response.json()

	async def query(
		self,
		table: str,
		filters: Mapping[str, Any] | None = None,
		order: str | None = None,
		descending: bool = False,
	) -> list[Row]:
		params = {"select": "*"}
		for key, value in (filters or {}).items():
			params[key] = _filter_value(value)
		if order is not None:
			params["order"] = f"{order}.{'desc' if descending else 'asc'}"
		rows = await self._request("GET", f"/rest/v1/{table}", table=table, params=params)
		return list(rows or [])

	async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
		rows = await self._request(
			"POST",
			f"/rest/v1/{table}",
			table=table,
			json_body=[dict(row)],
			representation=True,
		)
		if not rows:
			raise RemoteError(f"insert into {table} returned no row", table=table, code="empty")
		return rows[0]

	async def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> Row:
		rows = await self._request(
			"PATCH",
			f"/rest/v1/{table}",
			table=table,
			params={"id": f"eq.{record_id}"},
			json_body=dict(patch),
			representation=True,
		)
		if not rows:
			raise RemoteError(f"{table} {record_id} not found", table=table, code="not_found")
		return rows[0]

	async def delete(self, table: str, record_id: str) -> None:
		await self._request("DELETE", f"/rest/v1/{table}", table=table, params={"id": f"eq.{record_id}"})

	async def call(self, procedure: str, args: Mapping[str, Any]) -> Any:
		return await self._request("POST", f"/rest/v1/rpc/{procedure}", json_body=dict(args))

	async def current_user(self) -> Row | None:
		if not self.access_token:
			return None
		try:
			payload = await self._request("GET", "/auth/v1/user")
		except RemoteError as exc:
			if exc.code in {"401", "403"}:
				return None
			raise
		if not payload or "id" not in payload:
			return None
		return {"id": str(payload["id"]), "email": payload.get("email")}
