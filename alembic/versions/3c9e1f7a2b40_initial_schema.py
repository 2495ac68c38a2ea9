"""initial_schema

Revision ID: 3c9e1f7a2b40
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the institution/user tables, the seven synchronized farm tables,
the ``area_unit`` and ``season_status`` enum types, and the
``update_season_status`` procedure used to switch the active season.
Requires the uuid-ossp extension.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c9e1f7a2b40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_AREA_UNIT = postgresql.ENUM(
    "hectare", "acre", "squareMeter", name="area_unit", create_type=False
)
ENUM_SEASON_STATUS = postgresql.ENUM(
    "planned", "active", "completed", name="season_status", create_type=False
)

# Marks every other season of the institution completed when one becomes active.
UPDATE_SEASON_STATUS_SQL = """
CREATE OR REPLACE FUNCTION update_season_status(season_id_param uuid, new_status text)
RETURNS SETOF seasons
LANGUAGE plpgsql
AS $$
DECLARE
    target_institution uuid;
BEGIN
    SELECT institution_id INTO target_institution FROM seasons WHERE id = season_id_param;
    IF target_institution IS NULL THEN
        RAISE EXCEPTION 'season % not found', season_id_param USING ERRCODE = 'P0002';
    END IF;

    IF new_status = 'active' THEN
        UPDATE seasons
           SET status = 'completed', updated_at = now()
         WHERE institution_id = target_institution
           AND status = 'active'
           AND id <> season_id_param;
    END IF;

    RETURN QUERY
        UPDATE seasons
           SET status = new_status::season_status, updated_at = now()
         WHERE id = season_id_param
     RETURNING *;
END;
$$;
"""


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _owner() -> list[sa.Column | sa.ForeignKeyConstraint]:
    return [
        sa.Column("institution_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(["institution_id"], ["institutions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user_profiles.id"], ondelete="SET NULL"),
    ]


def upgrade() -> None:
    # ── 1. Create enum types ────────────────────────────────────────────
    ENUM_AREA_UNIT.create(op.get_bind(), checkfirst=True)
    ENUM_SEASON_STATUS.create(op.get_bind(), checkfirst=True)

    # ── 2. Institutions and users ───────────────────────────────────────
    op.create_table(
        "institutions",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "user_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("role", sa.String(64), nullable=True),
        sa.Column("institution_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["institution_id"], ["institutions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_profiles_institution_id", "user_profiles", ["institution_id"])

    # ── 3. Field work ───────────────────────────────────────────────────
    op.create_table(
        "areas",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("size", sa.Float(), nullable=False),
        sa.Column("unit", ENUM_AREA_UNIT, nullable=False),
        sa.Column("location", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("current_crop", sa.String(255), nullable=True),
        sa.Column("cultivar", sa.String(255), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_areas_institution_id", "areas", ["institution_id"])

    op.create_table(
        "seasons",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            ENUM_SEASON_STATUS,
            server_default=sa.text("'planned'"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_seasons_institution_id", "seasons", ["institution_id"])
    op.create_index("ix_seasons_institution_status", "seasons", ["institution_id", "status"])

    op.create_table(
        "operations",
        _id(),
        sa.Column("area_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("season_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("next_operation_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("operated_by", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "products_used",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("operation_size", sa.Float(), nullable=False),
        sa.Column("yield_per_hectare", sa.Float(), nullable=True),
        sa.Column("seeds_per_hectare", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["area_id"], ["areas.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["season_id"], ["seasons.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_operations_institution_id", "operations", ["institution_id"])
    op.create_index("ix_operations_area_season", "operations", ["area_id", "season_id"])

    # ── 4. Inventory ────────────────────────────────────────────────────
    op.create_table(
        "products",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(64), nullable=False, server_default=sa.text("'other'")),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("quantity_in_stock", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("min_stock_level", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.CheckConstraint("quantity_in_stock >= 0", name="ck_products_stock_non_negative"),
        sa.CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_institution_id", "products", ["institution_id"])

    # ── 5. Machinery ────────────────────────────────────────────────────
    op.create_table(
        "machinery",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("model", sa.String(255), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_machinery_institution_id", "machinery", ["institution_id"])

    op.create_table(
        "maintenance_types",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_types_institution_id", "maintenance_types", ["institution_id"])

    op.create_table(
        "maintenances",
        _id(),
        sa.Column("machinery_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("maintenance_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("material_used", sa.Text(), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("machine_hours", sa.Float(), nullable=True),
        sa.Column("cost", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_owner(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["machinery_id"], ["machinery.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["maintenance_type_id"], ["maintenance_types.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenances_institution_id", "maintenances", ["institution_id"])
    op.create_index("ix_maintenances_machinery_id", "maintenances", ["machinery_id"])

    # ── 6. Procedures ───────────────────────────────────────────────────
    op.execute(UPDATE_SEASON_STATUS_SQL)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS update_season_status(uuid, text)")

    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("maintenances")
    op.drop_table("maintenance_types")
    op.drop_table("machinery")
    op.drop_table("products")
    op.drop_table("operations")
    op.drop_table("seasons")
    op.drop_table("areas")
    op.drop_table("user_profiles")
    op.drop_table("institutions")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_SEASON_STATUS.drop(op.get_bind(), checkfirst=True)
    ENUM_AREA_UNIT.drop(op.get_bind(), checkfirst=True)
