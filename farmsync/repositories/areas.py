"""Area repository."""

from __future__ import annotations

from farmsync.models.enums import CollectionEnum
from farmsync.repositories.base import EntityRepository
from farmsync.schemas.farm import Area


class AreaRepository(EntityRepository[Area]):
	collection = CollectionEnum.areas
	table = "areas"
	entity_model = Area
	entity_label = "area"
	columns = (
		"name",
		"size",
		"unit",
		"location",
		"description",
		"current_crop",
		"cultivar",
	)
