"""Pydantic schemas for areas, seasons and operations."""

from __future__ import annotations

from datetime import date

from pydantic import Field, model_validator

from farmsync.models.enums import AreaUnitEnum, OperationTypeEnum, SeasonStatusEnum
from farmsync.schemas.common import MirrorModel, OwnedEntity

# ── Area ────────────────────────────────────────────────────────────────────


class AreaCreate(MirrorModel):
	name: str = Field(min_length=1, max_length=255)
	size: float = Field(gt=0)
	unit: AreaUnitEnum = AreaUnitEnum.hectare
	location: str = Field(default="", max_length=255)
	description: str | None = None
	current_crop: str | None = None
	cultivar: str | None = None


class AreaUpdate(MirrorModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	size: float | None = Field(default=None, gt=0)
	unit: AreaUnitEnum | None = None
	location: str | None = None
	description: str | None = None
	current_crop: str | None = None
	cultivar: str | None = None


class Area(OwnedEntity):
	name: str
	size: float
	unit: AreaUnitEnum
	location: str = ""
	description: str | None = None
	current_crop: str | None = None
	cultivar: str | None = None


# ── Season ──────────────────────────────────────────────────────────────────


class SeasonCreate(MirrorModel):
	name: str = Field(min_length=1, max_length=255)
	start_date: date
	end_date: date | None = None
	status: SeasonStatusEnum = SeasonStatusEnum.planned
	description: str | None = None


class SeasonUpdate(MirrorModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	start_date: date | None = None
	end_date: date | None = None
	status: SeasonStatusEnum | None = None
	description: str | None = None


class Season(OwnedEntity):
	name: str
	start_date: date
	end_date: date | None = None
	status: SeasonStatusEnum = SeasonStatusEnum.planned
	description: str | None = None


# ── Operation ───────────────────────────────────────────────────────────────


class ProductUsage(MirrorModel):
	product_id: str
	quantity: float = Field(gt=0)
	dose: float | None = None


class OperationCreate(MirrorModel):
	area_id: str
	type: str = Field(min_length=1, max_length=64)
	start_date: date
	end_date: date | None = None
	next_operation_date: date | None = None
	description: str = ""
	operated_by: str = ""
	products_used: list[ProductUsage] = Field(default_factory=list)
	operation_size: float = Field(gt=0)
	yield_per_hectare: float | None = Field(default=None, ge=0)
	seeds_per_hectare: float | None = Field(default=None, ge=0)
	notes: str | None = None

	@model_validator(mode="after")
	def _check_type_requirements(self) -> OperationCreate:
		if self.type == OperationTypeEnum.harvest and self.yield_per_hectare is None:
			raise ValueError("harvest operations require yield_per_hectare")
		if self.type == OperationTypeEnum.planting and self.seeds_per_hectare is None:
			raise ValueError("planting operations require seeds_per_hectare")
		return self


class OperationUpdate(MirrorModel):
	area_id: str | None = None
	type: str | None = Field(default=None, min_length=1, max_length=64)
	start_date: date | None = None
	end_date: date | None = None
	next_operation_date: date | None = None
	description: str | None = None
	operated_by: str | None = None
	products_used: list[ProductUsage] | None = None
	operation_size: float | None = Field(default=None, gt=0)
	yield_per_hectare: float | None = Field(default=None, ge=0)
	seeds_per_hectare: float | None = Field(default=None, ge=0)
	notes: str | None = None


class Operation(OwnedEntity):
	area_id: str
	season_id: str | None = None
	type: str
	start_date: date
	end_date: date | None = None
	next_operation_date: date | None = None
	description: str = ""
	operated_by: str = ""
	products_used: list[ProductUsage] = Field(default_factory=list)
	operation_size: float = 0.0
	yield_per_hectare: float | None = None
	seeds_per_hectare: float | None = None
	notes: str | None = None
