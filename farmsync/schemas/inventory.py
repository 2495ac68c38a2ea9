"""Pydantic schemas for inventory products."""

from __future__ import annotations

from pydantic import Field

from farmsync.models.enums import ProductCategoryEnum
from farmsync.schemas.common import MirrorModel, OwnedEntity


class ProductCreate(MirrorModel):
	name: str = Field(min_length=1, max_length=255)
	category: str = Field(default=ProductCategoryEnum.other.value, min_length=1, max_length=64)
	unit: str = Field(min_length=1, max_length=32)
	quantity_in_stock: float = Field(default=0.0, ge=0)
	min_stock_level: float = Field(default=0.0, ge=0)
	price: float = Field(gt=0)
	supplier: str | None = None
	description: str | None = None


class ProductUpdate(MirrorModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	category: str | None = Field(default=None, min_length=1, max_length=64)
	unit: str | None = Field(default=None, min_length=1, max_length=32)
	quantity_in_stock: float | None = Field(default=None, ge=0)
	min_stock_level: float | None = Field(default=None, ge=0)
	price: float | None = Field(default=None, gt=0)
	supplier: str | None = None
	description: str | None = None


class Product(OwnedEntity):
	name: str
	category: str = ProductCategoryEnum.other.value
	unit: str
	quantity_in_stock: float = Field(default=0.0, ge=0)
	min_stock_level: float = 0.0
	price: float = 0.0
	supplier: str | None = None
	description: str | None = None

	@property
	def is_low_stock(self) -> bool:
		return self.quantity_in_stock <= self.min_stock_level
