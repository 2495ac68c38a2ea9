"""Stock ledger: debit and credit product stock for operation product usage."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Iterable

import structlog

from farmsync.remote.base import RemoteError, Row
from farmsync.repositories.products import ProductRepository
from farmsync.schemas.farm import ProductUsage
from farmsync.services.errors import (
	InsufficientStockError,
	PartialStockApplicationError,
	StockShortage,
)

logger = structlog.get_logger("farmsync.stock")


def aggregate_usages(usages: Iterable[ProductUsage]) -> dict[str, float]:
	"""Total quantity per product id, preserving first-seen order."""
	totals: dict[str, float] = {}
	for usage in usages:
		totals[usage.product_id] = totals.get(usage.product_id, 0.0) + usage.quantity
	return totals


def usages_changed(old: Iterable[ProductUsage], new: Iterable[ProductUsage]) -> bool:
	def key(items: Iterable[ProductUsage]) -> list[tuple[str, float, float | None]]:
		return [(item.product_id, item.quantity, item.dose) for item in items]

	return key(old) != key(new)


class StockLedger:
	"""All-or-nothing stock decisions over the products mirror.

	The sufficiency decision for :meth:`reserve` is taken before any write
	is issued.  Online, each product's new level is written with its own
	remote update, all issued concurrently; a failure in any of them raises
	:class:`PartialStockApplicationError` after reloading products from the
	remote store.  Writes that already landed are not rolled back.

	Levels are written as absolute values, so every check-then-write runs
	under one lock.  Callers that pair stock movements with their own writes
	hold it across both with :meth:`hold`; the lock is re-entrant for the
	task that holds it.
	"""

	def __init__(self, products: ProductRepository):
		self.products = products
		self._lock = asyncio.Lock()
		self._holder: asyncio.Task | None = None

	@contextlib.asynccontextmanager
	async def hold(self) -> AsyncIterator[None]:
		task = asyncio.current_task()
		if task is not None and self._holder is task:
			yield
			return
		async with self._lock:
			self._holder = task
			try:
				yield
			finally:
				self._holder = None

	def shortages(
		self,
		usages: Iterable[ProductUsage],
		credit: Iterable[ProductUsage] = (),
	) -> list[StockShortage]:
		credits = aggregate_usages(credit)
		shortages: list[StockShortage] = []
		for product_id, required in aggregate_usages(usages).items():
			product = self.products.get(product_id)
			if product is None:
				shortages.append(
					StockShortage(
						product_id=product_id,
						product_name=None,
						unit=None,
						available=0.0,
						required=required,
					)
				)
				continue
			available = product.quantity_in_stock + credits.get(product_id, 0.0)
			if available < required:
				shortages.append(
					StockShortage(
						product_id=product_id,
						product_name=product.name,
						unit=product.unit,
						available=available,
						required=required,
					)
				)
		return shortages

	def check(self, usages: Iterable[ProductUsage], credit: Iterable[ProductUsage] = ()) -> None:
		"""Raise if ``usages`` cannot be covered once ``credit`` is returned to stock."""
		shortages = self.shortages(usages, credit)
		if shortages:
			for shortage in shortages:
				logger.warning(
					"stock_insufficient",
					product_id=shortage.product_id,
					available=shortage.available,
					required=shortage.required,
				)
			raise InsufficientStockError(shortages)

	async def reserve(self, usages: list[ProductUsage]) -> None:
		if not usages:
			return
		usages = list(usages)
		async with self.hold():
			self.check(usages)
			quantities = {
				product_id: self.products.require(product_id).quantity_in_stock - quantity
				for product_id, quantity in aggregate_usages(usages).items()
			}
			await self._apply("reserve", quantities)

	async def release(self, usages: list[ProductUsage]) -> None:
		if not usages:
			return
		async with self.hold():
			quantities: dict[str, float] = {}
			for product_id, quantity in aggregate_usages(usages).items():
				product = self.products.get(product_id)
				if product is None:
					logger.info("stock_release_skipped", product_id=product_id, reason="product_missing")
					continue
				quantities[product_id] = product.quantity_in_stock + quantity
			if quantities:
				await self._apply("release", quantities)

	async def _apply(self, action: str, quantities: dict[str, float]) -> None:
		if not self.products.connectivity.is_online:
			await self.products.apply_stock_levels(quantities, pending=True)
			logger.info("stock_applied_offline", action=action, products=list(quantities))
			return

		product_ids = list(quantities)
		results = await asyncio.gather(
			*(
				self.products.remote.update(
					self.products.table,
					product_id,
					{"quantity_in_stock": quantities[product_id]},
				)
				for product_id in product_ids
			),
			return_exceptions=True,
		)

		applied: dict[str, Row] = {}
		failed: list[str] = []
		for product_id, result in zip(product_ids, results, strict=True):
			if isinstance(result, BaseException):
				if not isinstance(result, RemoteError):
					raise result
				logger.error("stock_write_failed", action=action, product_id=product_id, error=str(result))
				failed.append(product_id)
			else:
				applied[product_id] = result

		if failed:
			await self._reload_after_partial_write(action, applied)
			raise PartialStockApplicationError(action, applied=list(applied), failed=failed)

		await self.products.apply_stock_levels(quantities, remote_rows=applied, pending=False)
		logger.info("stock_applied", action=action, products=product_ids)

	async def _reload_after_partial_write(self, action: str, applied: dict[str, Row]) -> None:
		if self.products.pending_sync:
			# a refresh would discard unsynced offline edits; record what landed instead
			await self.products.apply_stock_levels({}, remote_rows=applied, pending=False)
			return
		try:
			await self.products.refresh()
		except RemoteError as exc:
			logger.error("stock_reload_failed", action=action, error=str(exc))
