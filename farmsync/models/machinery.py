"""Machinery, MaintenanceType, Maintenance ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from farmsync.models.base import (
    Base,
    InstitutionScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class Machinery(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """A machine owned by an institution."""

    __tablename__ = "machinery"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Machinery id={self.id} name={self.name!r}>"


class MaintenanceType(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """Institution-defined maintenance category (oil change, tyres, ...)."""

    __tablename__ = "maintenance_types"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Maintenance(Base, UUIDPrimaryKeyMixin, TimestampMixin, InstitutionScopedMixin):
    """A maintenance event performed on a machine."""

    __tablename__ = "maintenances"

    machinery_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("machinery.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    maintenance_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("maintenance_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    material_used: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    machine_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Maintenance id={self.id} machinery={self.machinery_id} date={self.date}>"
