"""Domain errors raised by repositories, the stock ledger and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StockShortage:
	product_id: str
	product_name: str | None
	unit: str | None
	available: float
	required: float

	def describe(self) -> str:
		name = self.product_name or f"unknown product {self.product_id}"
		unit = f" {self.unit}" if self.unit else ""
		return f"{name} (available: {self.available:g}{unit}, required: {self.required:g}{unit})"


class InsufficientStockError(ValueError):
	"""A reservation would drive at least one product below zero."""

	def __init__(self, shortages: list[StockShortage]):
		self.shortages = shortages
		details = ", ".join(shortage.describe() for shortage in shortages)
		super().__init__(f"Insufficient product quantity in stock: {details}")


class RemoteWriteFailure(RuntimeError):
	"""A remote insert/update/delete issued on behalf of a caller failed."""

	def __init__(self, message: str, *, table: str, action: str, record_id: str | None = None):
		super().__init__(message)
		self.table = table
		self.action = action
		self.record_id = record_id


class PartialStockApplicationError(RemoteWriteFailure):
	"""Some per-product stock writes landed remotely and some did not.

	Already-applied writes are not rolled back; callers must treat product
	stock as possibly inconsistent and rely on the reloaded mirror.
	"""

	def __init__(self, action: str, applied: list[str], failed: list[str]):
		super().__init__(
			f"Stock {action} partially applied: {len(applied)} succeeded, {len(failed)} failed",
			table="products",
			action=action,
		)
		self.applied = applied
		self.failed = failed


class OfflineError(RuntimeError):
	"""Synchronization requested while offline."""


class SyncFailedError(RuntimeError):
	"""A reconciliation pass aborted while online; pending flags are kept."""

	def __init__(self, message: str, *, collection: str | None = None):
		super().__init__(message)
		self.collection = collection
