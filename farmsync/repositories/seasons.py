"""Season repository and active-season selection."""

from __future__ import annotations

import structlog

from farmsync.models.enums import CollectionEnum, SeasonStatusEnum
from farmsync.remote.base import RemoteError
from farmsync.repositories.base import EntityRepository
from farmsync.schemas.farm import Season
from farmsync.services.errors import RemoteWriteFailure

SET_SEASON_STATUS_PROCEDURE = "update_season_status"

logger = structlog.get_logger("farmsync.repository")


class SeasonRepository(EntityRepository[Season]):
	collection = CollectionEnum.seasons
	table = "seasons"
	entity_model = Season
	entity_label = "season"
	columns = ("name", "start_date", "end_date", "status", "description")
	order_by = "start_date"

	def __init__(self, *args, **kwargs) -> None:
		super().__init__(*args, **kwargs)
		self.active_season_id: str | None = None

	@property
	def active_season(self) -> Season | None:
		if self.active_season_id is None:
			return None
		return self.get(self.active_season_id)

	def _after_refresh(self) -> None:
		if self.active_season is not None:
			return
		active = next((season for season in self.items if season.status == SeasonStatusEnum.active), None)
		self.active_season_id = active.id if active is not None else None

	async def load(self) -> list[Season]:
		seasons = await super().load()
		self._after_refresh()
		return seasons

	async def set_active(self, season_id: str | None) -> Season | None:
		"""Select the active season; online, the remote procedure persists it."""
		if season_id is None:
			self.active_season_id = None
			return None

		season = self.require(season_id)
		if self.connectivity.is_online and not self.ids.is_local(season_id):
			try:
				await self.remote.call(
					SET_SEASON_STATUS_PROCEDURE,
					{"season_id_param": season_id, "new_status": SeasonStatusEnum.active.value},
				)
			except RemoteError as exc:
				raise RemoteWriteFailure(
					f"Error updating season status: {exc}",
					table=self.table,
					action="call",
					record_id=season_id,
				) from exc
			self.active_season_id = season_id
			if not self.pending_sync:
				await self.refresh()
			return self.active_season

		logger.info("active_season_selected_locally", season_id=season_id)
		self.active_season_id = season_id
		return season
