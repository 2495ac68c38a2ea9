"""Area, Season, Operation ORM models — the field-work side of the farm.

Operations keep their product consumption as a JSONB list of
``{"product_id", "quantity", "dose"}`` objects in wire form;
stock adjustments happen in the client-side ledger, not in triggers.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Date, Enum, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from farmsync.models.base import (
    Base,
    InstitutionScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from farmsync.models.enums import AreaUnitEnum, SeasonStatusEnum

# ═══════════════════════════════════════════════════════════════════════════
# Area
# ═══════════════════════════════════════════════════════════════════════════


class Area(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """A cultivated plot owned by an institution."""

    __tablename__ = "areas"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[AreaUnitEnum] = mapped_column(
        Enum(
            AreaUnitEnum,
            name="area_unit",
            values_callable=lambda enum: [member.value for member in enum],
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_crop: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cultivar: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Area id={self.id} name={self.name!r} size={self.size}{self.unit}>"


# ═══════════════════════════════════════════════════════════════════════════
# Season
# ═══════════════════════════════════════════════════════════════════════════


class Season(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """A crop season; one per institution is ``active`` by convention."""

    __tablename__ = "seasons"
    __table_args__ = (
        Index("ix_seasons_institution_status", "institution_id", "status"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[SeasonStatusEnum] = mapped_column(
        Enum(
            SeasonStatusEnum,
            name="season_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=SeasonStatusEnum.planned,
        server_default=SeasonStatusEnum.planned.value,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Season id={self.id} name={self.name!r} status={self.status}>"


# ═══════════════════════════════════════════════════════════════════════════
# Operation
# ═══════════════════════════════════════════════════════════════════════════


class Operation(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """Field work performed on an area within a season."""

    __tablename__ = "operations"
    __table_args__ = (
        Index("ix_operations_area_season", "area_id", "season_id"),
    )

    area_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("areas.id", ondelete="CASCADE"),
        nullable=False,
    )
    season_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("seasons.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    next_operation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    operated_by: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    products_used: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    operation_size: Mapped[float] = mapped_column(Float, nullable=False)
    yield_per_hectare: Mapped[float | None] = mapped_column(Float, nullable=True)
    seeds_per_hectare: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Operation id={self.id} type={self.type!r} area={self.area_id}>"
