"""Product repository, including the stock-level writes used by the ledger."""

from __future__ import annotations

from datetime import UTC, datetime

from farmsync.models.enums import CollectionEnum
from farmsync.remote.base import Row
from farmsync.repositories.base import EntityRepository
from farmsync.schemas.inventory import Product


class ProductRepository(EntityRepository[Product]):
	collection = CollectionEnum.products
	table = "products"
	entity_model = Product
	entity_label = "product"
	owner_columns = ("institution_id",)
	columns = (
		"name",
		"category",
		"unit",
		"quantity_in_stock",
		"min_stock_level",
		"price",
		"supplier",
		"description",
	)

	def low_stock(self) -> list[Product]:
		return [product for product in self.items if product.is_low_stock]

	async def apply_stock_levels(
		self,
		quantities: dict[str, float],
		*,
		remote_rows: dict[str, Row] | None = None,
		pending: bool,
	) -> None:
		"""Set new stock levels in the view and mirror in a single write."""
		now = datetime.now(UTC)
		remote_rows = remote_rows or {}
		items: list[Product] = []
		for product in self.items:
			if product.id in remote_rows:
				items.append(self.from_row(remote_rows[product.id]))
			elif product.id in quantities:
				items.append(
					product.model_copy(update={"quantity_in_stock": quantities[product.id], "updated_at": now})
				)
			else:
				items.append(product)
		await self.commit(items, pending=pending)
