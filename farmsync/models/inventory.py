"""Product ORM model — inventory items consumed by operations."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from farmsync.models.base import (
    Base,
    InstitutionScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class Product(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """Stocked product with a low-stock threshold."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity_in_stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="other")
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity_in_stock: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    min_stock_level: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.quantity_in_stock}>"
