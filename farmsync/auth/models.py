"""Institution and UserProfile ORM models.

Authentication itself is delegated to the hosted backend; a ``UserProfile``
row shares its primary key with the backend's auth user and links the user
to the institution that scopes every farm record.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmsync.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Institution(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Farm, cooperative or company that owns data."""

    __tablename__ = "institutions"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # ── Relationships ────────────────────────────────────────────────────
    members: Mapped[list[UserProfile]] = relationship(
        back_populates="institution",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Institution id={self.id} name={self.name!r}>"


class UserProfile(Base, TimestampMixin):
    """Application-side profile for an authenticated user."""

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    institution_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("institutions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_admin: Mapped[bool] = mapped_column(
        default=False,
        server_default=text("false"),
        nullable=False,
    )

    # ── Relationships ────────────────────────────────────────────────────
    institution: Mapped[Institution | None] = relationship(back_populates="members")

    def __repr__(self) -> str:
        return f"<UserProfile id={self.id} institution={self.institution_id}>"
