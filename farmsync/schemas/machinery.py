"""Pydantic schemas for machinery, maintenance types and maintenances."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from farmsync.schemas.common import MirrorModel, OwnedEntity


class MachineryCreate(MirrorModel):
	name: str = Field(min_length=1, max_length=255)
	description: str | None = None
	model: str | None = None
	year: int | None = Field(default=None, ge=1900, le=2100)


class MachineryUpdate(MirrorModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None
	model: str | None = None
	year: int | None = Field(default=None, ge=1900, le=2100)


class Machinery(OwnedEntity):
	name: str
	description: str | None = None
	model: str | None = None
	year: int | None = None


class MaintenanceTypeCreate(MirrorModel):
	name: str = Field(min_length=1, max_length=255)
	description: str | None = None


class MaintenanceTypeUpdate(MirrorModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None


class MaintenanceType(OwnedEntity):
	name: str
	description: str | None = None


class MaintenanceCreate(MirrorModel):
	machinery_id: str
	maintenance_type_id: str
	description: str | None = None
	material_used: str | None = None
	date: datetime
	machine_hours: float | None = Field(default=None, ge=0)
	cost: float = Field(default=0.0, ge=0)
	notes: str | None = None


class MaintenanceUpdate(MirrorModel):
	machinery_id: str | None = None
	maintenance_type_id: str | None = None
	description: str | None = None
	material_used: str | None = None
	date: datetime | None = None
	machine_hours: float | None = Field(default=None, ge=0)
	cost: float | None = Field(default=None, ge=0)
	notes: str | None = None


class Maintenance(OwnedEntity):
	machinery_id: str
	maintenance_type_id: str
	description: str | None = None
	material_used: str | None = None
	date: datetime
	machine_hours: float | None = None
	cost: float = 0.0
	notes: str | None = None
