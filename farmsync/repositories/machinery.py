"""Machinery, maintenance type and maintenance repositories."""

from __future__ import annotations

from farmsync.models.enums import CollectionEnum
from farmsync.repositories.base import EntityRepository
from farmsync.schemas.machinery import Machinery, Maintenance, MaintenanceType


class MachineryRepository(EntityRepository[Machinery]):
	collection = CollectionEnum.machinery
	table = "machinery"
	entity_model = Machinery
	entity_label = "machinery"
	columns = ("name", "description", "model", "year")


class MaintenanceTypeRepository(EntityRepository[MaintenanceType]):
	collection = CollectionEnum.maintenance_types
	table = "maintenance_types"
	entity_model = MaintenanceType
	entity_label = "maintenance type"
	columns = ("name", "description")
	order_by = "name"
	order_descending = False


class MaintenanceRepository(EntityRepository[Maintenance]):
	collection = CollectionEnum.maintenances
	table = "maintenances"
	entity_model = Maintenance
	entity_label = "maintenance"
	columns = (
		"machinery_id",
		"maintenance_type_id",
		"description",
		"material_used",
		"date",
		"machine_hours",
		"cost",
		"notes",
	)
	reference_fields = ("machinery_id", "maintenance_type_id")
	order_by = "date"

	def for_machinery(self, machinery_id: str) -> list[Maintenance]:
		return [item for item in self.items if item.machinery_id == machinery_id]
