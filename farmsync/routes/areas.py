"""Area CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from farmsync.routes.deps import get_farm_app, map_error
from farmsync.schemas.farm import Area, AreaCreate, AreaUpdate, Operation
from farmsync.services.farm_app import FarmApp

router = APIRouter(prefix="/areas", tags=["areas"])


@router.get("", response_model=list[Area])
async def list_areas(farm: FarmApp = Depends(get_farm_app)) -> list[Area]:
	return farm.areas.list()


@router.post("", response_model=Area, status_code=status.HTTP_201_CREATED)
async def create_area(payload: AreaCreate, farm: FarmApp = Depends(get_farm_app)) -> Area:
	try:
		return await farm.areas.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/{area_id}", response_model=Area)
async def get_area(area_id: str, farm: FarmApp = Depends(get_farm_app)) -> Area:
	try:
		return farm.areas.require(area_id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/{area_id}/operations", response_model=list[Operation])
async def list_area_operations(area_id: str, farm: FarmApp = Depends(get_farm_app)) -> list[Operation]:
	try:
		farm.areas.require(area_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return farm.operations_by_area(area_id)


@router.patch("/{area_id}", response_model=Area)
async def update_area(area_id: str, payload: AreaUpdate, farm: FarmApp = Depends(get_farm_app)) -> Area:
	try:
		return await farm.areas.update(area_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/{area_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_area(area_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.areas.delete(area_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
