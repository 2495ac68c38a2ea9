"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables, and ``SqlRemoteClient`` resolves table names
through the same metadata.
"""

# ── Auth models ─────────────────────────────────────────────────────────────
from farmsync.auth.models import Institution, UserProfile

# ── Base & Mixins ───────────────────────────────────────────────────────────
from farmsync.models.base import (
    Base,
    InstitutionScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Enums ───────────────────────────────────────────────────────────────────
from farmsync.models.enums import (
    AreaUnitEnum,
    CollectionEnum,
    OperationTypeEnum,
    ProductCategoryEnum,
    SeasonStatusEnum,
)

# ── Farm models ─────────────────────────────────────────────────────────────
from farmsync.models.farm import Area, Operation, Season

# ── Inventory ───────────────────────────────────────────────────────────────
from farmsync.models.inventory import Product

# ── Machinery ───────────────────────────────────────────────────────────────
from farmsync.models.machinery import Machinery, Maintenance, MaintenanceType

__all__ = [
    "Area",
    "AreaUnitEnum",
    # Base & mixins
    "Base",
    "CollectionEnum",
    "Institution",
    "InstitutionScopedMixin",
    "Machinery",
    "Maintenance",
    "MaintenanceType",
    "Operation",
    "OperationTypeEnum",
    "Product",
    "ProductCategoryEnum",
    "Season",
    "SeasonStatusEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "UserProfile",
]
