"""Remote store contract consumed by repositories, ledger and reconciliation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

Row = dict[str, Any]


class RemoteError(RuntimeError):
	"""A remote select/insert/update/delete/procedure call failed."""

	def __init__(self, message: str, *, table: str | None = None, code: str | None = None):
		super().__init__(message)
		self.table = table
		self.code = code


class RemoteClient(Protocol):
	async def query(
		self,
		table: str,
		filters: Mapping[str, Any] | None = None,
		order: str | None = None,
		descending: bool = False,
	) -> list[Row]: ...

	async def insert(self, table: str, row: Mapping[str, Any]) -> Row: ...

	async def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> Row: ...

	async def delete(self, table: str, record_id: str) -> None: ...

	async def call(self, procedure: str, args: Mapping[str, Any]) -> Any: ...

	async def current_user(self) -> Row | None: ...
