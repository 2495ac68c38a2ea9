"""Machinery, maintenance type and maintenance routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from farmsync.routes.deps import get_farm_app, map_error
from farmsync.schemas.machinery import (
	Machinery,
	MachineryCreate,
	MachineryUpdate,
	Maintenance,
	MaintenanceCreate,
	MaintenanceType,
	MaintenanceTypeCreate,
	MaintenanceTypeUpdate,
	MaintenanceUpdate,
)
from farmsync.services.farm_app import FarmApp

router = APIRouter(tags=["machinery"])


# ── Machinery ───────────────────────────────────────────────────────────────


@router.get("/machinery", response_model=list[Machinery])
async def list_machinery(farm: FarmApp = Depends(get_farm_app)) -> list[Machinery]:
	return farm.machinery.list()


@router.post("/machinery", response_model=Machinery, status_code=status.HTTP_201_CREATED)
async def create_machinery(payload: MachineryCreate, farm: FarmApp = Depends(get_farm_app)) -> Machinery:
	try:
		return await farm.machinery.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/machinery/{machinery_id}", response_model=Machinery)
async def get_machinery(machinery_id: str, farm: FarmApp = Depends(get_farm_app)) -> Machinery:
	try:
		return farm.machinery.require(machinery_id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/machinery/{machinery_id}/maintenances", response_model=list[Maintenance])
async def list_machinery_maintenances(
	machinery_id: str,
	farm: FarmApp = Depends(get_farm_app),
) -> list[Maintenance]:
	try:
		farm.machinery.require(machinery_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return farm.maintenances_by_machinery(machinery_id)


@router.patch("/machinery/{machinery_id}", response_model=Machinery)
async def update_machinery(
	machinery_id: str,
	payload: MachineryUpdate,
	farm: FarmApp = Depends(get_farm_app),
) -> Machinery:
	try:
		return await farm.machinery.update(machinery_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/machinery/{machinery_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_machinery(machinery_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.machinery.delete(machinery_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Maintenance types ───────────────────────────────────────────────────────


@router.get("/maintenance-types", response_model=list[MaintenanceType])
async def list_maintenance_types(farm: FarmApp = Depends(get_farm_app)) -> list[MaintenanceType]:
	return farm.maintenance_types.list()


@router.post("/maintenance-types", response_model=MaintenanceType, status_code=status.HTTP_201_CREATED)
async def create_maintenance_type(
	payload: MaintenanceTypeCreate,
	farm: FarmApp = Depends(get_farm_app),
) -> MaintenanceType:
	try:
		return await farm.maintenance_types.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.patch("/maintenance-types/{type_id}", response_model=MaintenanceType)
async def update_maintenance_type(
	type_id: str,
	payload: MaintenanceTypeUpdate,
	farm: FarmApp = Depends(get_farm_app),
) -> MaintenanceType:
	try:
		return await farm.maintenance_types.update(type_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/maintenance-types/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance_type(type_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.maintenance_types.delete(type_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Maintenances ────────────────────────────────────────────────────────────


@router.get("/maintenances", response_model=list[Maintenance])
async def list_maintenances(farm: FarmApp = Depends(get_farm_app)) -> list[Maintenance]:
	return farm.maintenances.list()


@router.post("/maintenances", response_model=Maintenance, status_code=status.HTTP_201_CREATED)
async def create_maintenance(payload: MaintenanceCreate, farm: FarmApp = Depends(get_farm_app)) -> Maintenance:
	try:
		farm.machinery.require(payload.machinery_id)
		farm.maintenance_types.require(payload.maintenance_type_id)
		return await farm.maintenances.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.patch("/maintenances/{maintenance_id}", response_model=Maintenance)
async def update_maintenance(
	maintenance_id: str,
	payload: MaintenanceUpdate,
	farm: FarmApp = Depends(get_farm_app),
) -> Maintenance:
	try:
		return await farm.maintenances.update(maintenance_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/maintenances/{maintenance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance(maintenance_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.maintenances.delete(maintenance_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
