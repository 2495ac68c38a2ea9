"""Season CRUD routes and active-season selection."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from farmsync.routes.deps import get_farm_app, map_error
from farmsync.schemas.farm import Season, SeasonCreate, SeasonUpdate
from farmsync.services.farm_app import FarmApp

router = APIRouter(prefix="/seasons", tags=["seasons"])


@router.get("", response_model=list[Season])
async def list_seasons(farm: FarmApp = Depends(get_farm_app)) -> list[Season]:
	return farm.seasons.list()


@router.post("", response_model=Season, status_code=status.HTTP_201_CREATED)
async def create_season(payload: SeasonCreate, farm: FarmApp = Depends(get_farm_app)) -> Season:
	try:
		return await farm.seasons.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/active", response_model=Season)
async def get_active_season(farm: FarmApp = Depends(get_farm_app)) -> Season:
	season = farm.active_season
	if season is None:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active season selected")
	return season


@router.delete("/active", status_code=status.HTTP_204_NO_CONTENT)
async def clear_active_season(farm: FarmApp = Depends(get_farm_app)) -> Response:
	await farm.set_active_season(None)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{season_id}", response_model=Season)
async def get_season(season_id: str, farm: FarmApp = Depends(get_farm_app)) -> Season:
	try:
		return farm.seasons.require(season_id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.post("/{season_id}/activate", response_model=Season)
async def activate_season(season_id: str, farm: FarmApp = Depends(get_farm_app)) -> Season:
	try:
		season = await farm.set_active_season(season_id)
	except Exception as exc:
		raise map_error(exc) from exc
	if season is None:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Season {season_id} not found")
	return season


@router.patch("/{season_id}", response_model=Season)
async def update_season(season_id: str, payload: SeasonUpdate, farm: FarmApp = Depends(get_farm_app)) -> Season:
	try:
		return await farm.seasons.update(season_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/{season_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_season(season_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.seasons.delete(season_id)
	except Exception as exc:
		raise map_error(exc) from exc
	if farm.seasons.active_season_id == season_id:
		await farm.set_active_season(None)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
