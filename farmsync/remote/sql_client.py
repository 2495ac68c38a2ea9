"""SQLAlchemy Core transport over the ORM tables registered on Base.metadata."""

from __future__ import annotations

import re
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import Column, Date, DateTime, Table, delete, insert, select, text, update
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from farmsync.models import Base
from farmsync.remote.base import RemoteError, Row

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


class _NoMatch(Exception):
	"""A filter value cannot match any row (e.g. a non-UUID id)."""


def _plain(value: Any) -> Any:
	if isinstance(value, uuid.UUID):
		return str(value)
	if isinstance(value, datetime | date):
		return value.isoformat()
	if isinstance(value, Enum):
		return value.value
	return value


def _row_to_dict(mapping: Mapping[str, Any]) -> Row:
	return {key: _plain(value) for key, value in mapping.items()}


def _coerce(column: Column[Any], value: Any) -> Any:
	if value is None:
		return None
	column_type = column.type
	if isinstance(column_type, UUID) and not isinstance(value, uuid.UUID):
		try:
			return uuid.UUID(str(value))
		except ValueError as exc:
			raise _NoMatch(str(value)) from exc
	if isinstance(column_type, DateTime) and isinstance(value, str):
		return datetime.fromisoformat(value)
	if isinstance(column_type, Date) and isinstance(value, str):
		return date.fromisoformat(value[:10])
	enum_class = getattr(column_type, "enum_class", None)
	if enum_class is not None and isinstance(value, str):
		return enum_class(value)
	return value


class SqlRemoteClient:
	"""Remote client backed by an async SQLAlchemy session factory.

	Each call runs in its own transaction, matching the per-request
	semantics of the hosted backend.  ``user_id`` plays the role of the
	authenticated session.
	"""

	def __init__(
		self,
		session_factory: async_sessionmaker[AsyncSession],
		user_id: str | None = None,
	):
		self.session_factory = session_factory
		self.user_id = user_id

	def _table(self, name: str) -> Table:
		table = Base.metadata.tables.get(name)
		if table is None:
			raise RemoteError(f"unknown table: {name}", table=name, code="unknown_table")
		return table

	def _values(self, table: Table, row: Mapping[str, Any]) -> dict[str, Any]:
		values: dict[str, Any] = {}
		for key, value in row.items():
			if key not in table.c:
				raise RemoteError(f"unknown column {key!r} on {table.name}", table=table.name, code="unknown_column")
			try:
				values[key] = _coerce(table.c[key], value)
			except _NoMatch as exc:
				raise RemoteError(f"invalid value for {key}: {exc}", table=table.name, code="invalid_value") from exc
		return values

	async def query(
		self,
		table: str,
		filters: Mapping[str, Any] | None = None,
		order: str | None = None,
		descending: bool = False,
	) -> list[Row]:
		target = self._table(table)
		stmt = select(target)
		try:
			for key, value in (filters or {}).items():
				stmt = stmt.where(target.c[key] == _coerce(target.c[key], value))
		except _NoMatch:
			return []
		if order is not None:
			column = target.c[order]
			stmt = stmt.order_by(column.desc() if descending else column.asc())

		try:
			async with self.session_factory() as session:
				result = await session.execute(stmt)
				return [_row_to_dict(row) for row in result.mappings().all()]
		except SQLAlchemyError as exc:
			raise RemoteError(str(exc), table=table) from exc

	async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
		target = self._table(table)
		stmt = insert(target).values(**self._values(target, row)).returning(*target.c)
		return await self._write_one(table, stmt)

	async def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> Row:
		target = self._table(table)
		try:
			key = _coerce(target.c.id, record_id)
		except _NoMatch as exc:
			raise RemoteError(f"{table} {record_id} not found", table=table, code="not_found") from exc
		values = self._values(target, patch)
		values["updated_at"] = datetime.now().astimezone()
		stmt = update(target).where(target.c.id == key).values(**values).returning(*target.c)
		return await self._write_one(table, stmt, record_id=record_id)

	async def delete(self, table: str, record_id: str) -> None:
		target = self._table(table)
		try:
			key = _coerce(target.c.id, record_id)
		except _NoMatch:
			# zero rows match, same as a filtered REST delete
			return
		try:
			async with self.session_factory() as session:
				async with session.begin():
					await session.execute(delete(target).where(target.c.id == key))
		except SQLAlchemyError as exc:
			raise RemoteError(str(exc), table=table) from exc

	async def call(self, procedure: str, args: Mapping[str, Any]) -> Any:
		if not _IDENTIFIER.match(procedure) or not all(_IDENTIFIER.match(key) for key in args):
			raise RemoteError(f"invalid procedure call: {procedure}", code="invalid_procedure")
		arguments = ", ".join(f"{key} => :{key}" for key in args)
		stmt = text(f"SELECT * FROM {procedure}({arguments})")
		try:
			async with self.session_factory() as session:
				async with session.begin():
					result = await session.execute(stmt, dict(args))
					return [_row_to_dict(row) for row in result.mappings().all()]
		except SQLAlchemyError as exc:
			raise RemoteError(str(exc), code="procedure_failed") from exc

	async def current_user(self) -> Row | None:
		if not self.user_id:
			return None
		return {"id": self.user_id}

	async def _write_one(self, table: str, stmt: Any, record_id: str | None = None) -> Row:
		try:
			async with self.session_factory() as session:
				async with session.begin():
					result = await session.execute(stmt)
					row = result.mappings().one_or_none()
		except SQLAlchemyError as exc:
			raise RemoteError(str(exc), table=table) from exc
		if row is None:
			raise RemoteError(f"{table} {record_id} not found", table=table, code="not_found")
		return _row_to_dict(row)
