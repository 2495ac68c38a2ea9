"""Enum types shared by ORM models and pydantic schemas.

Closed enums (area unit, season status) map 1:1 to PostgreSQL enum types.
Operation type and product category are open vocabularies: the StrEnums
list the known values, but columns store plain strings so custom values
survive a round trip.
"""

from enum import StrEnum

# ── Field enums ─────────────────────────────────────────────────────────────


class AreaUnitEnum(StrEnum):
    """Unit an area's ``size`` is expressed in."""

    hectare = "hectare"
    acre = "acre"
    square_meter = "squareMeter"


class SeasonStatusEnum(StrEnum):
    """Lifecycle status of a season."""

    planned = "planned"
    active = "active"
    completed = "completed"


class OperationTypeEnum(StrEnum):
    """Known field operation types (open set)."""

    harrowing = "harrowing"
    subsoiling = "subsoiling"
    planting = "planting"
    harvest = "harvest"
    desiccation = "desiccation"
    herbicide = "herbicide"
    fungicide = "fungicide"


# ── Inventory enums ─────────────────────────────────────────────────────────


class ProductCategoryEnum(StrEnum):
    """Known product categories (open set)."""

    seed = "seed"
    fertilizer = "fertilizer"
    pesticide = "pesticide"
    herbicide = "herbicide"
    equipment = "equipment"
    other = "other"


# ── Sync enums ──────────────────────────────────────────────────────────────


class CollectionEnum(StrEnum):
    """Stable mirror keys, one per synchronized collection."""

    areas = "areas"
    operations = "operations"
    products = "products"
    seasons = "seasons"
    machinery = "machinery"
    maintenance_types = "maintenanceTypes"
    maintenances = "maintenances"


# Fixed reconciliation order: farm family first, machinery family after.
SYNC_ORDER: tuple[CollectionEnum, ...] = (
    CollectionEnum.areas,
    CollectionEnum.operations,
    CollectionEnum.products,
    CollectionEnum.seasons,
    CollectionEnum.machinery,
    CollectionEnum.maintenance_types,
    CollectionEnum.maintenances,
)
