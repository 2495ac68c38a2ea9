"""Pydantic schemas for connectivity, sync status and reconciliation reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ConnectivityUpdate(BaseModel):
	is_online: bool
	connection_type: str | None = None
	downlink_mbps: float | None = Field(default=None, ge=0)


class ConnectivityRead(BaseModel):
	is_online: bool
	connection_type: str | None = None
	connection_speed: str | None = None
	is_slow_connection: bool = False
	last_online_at: datetime | None = None
	last_offline_at: datetime | None = None
	seconds_since_last_change: int = 0


class CollectionSyncResult(BaseModel):
	collection: str
	inserted: int = 0
	updated: int = 0
	skipped: int = 0
	failed: int = 0
	id_map: dict[str, str] = Field(default_factory=dict)


class SyncReport(BaseModel):
	started_at: datetime
	completed_at: datetime | None = None
	collections: list[CollectionSyncResult] = Field(default_factory=list)

	@property
	def failed(self) -> int:
		return sum(item.failed for item in self.collections)


class SyncStatusRead(BaseModel):
	is_online: bool
	has_pending_sync: bool
	pending_collections: list[str]
	sync_in_progress: bool
	last_report: SyncReport | None = None


class StockShortageRead(BaseModel):
	product_id: str
	product_name: str | None = None
	unit: str | None = None
	available: float
	required: float
