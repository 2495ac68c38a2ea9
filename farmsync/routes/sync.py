"""Sync status, manual sync trigger and connectivity reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from farmsync.routes.deps import get_farm_app, map_error
from farmsync.schemas.sync import ConnectivityRead, ConnectivityUpdate, SyncReport, SyncStatusRead
from farmsync.services.farm_app import FarmApp

router = APIRouter(tags=["sync"])


@router.get("/sync/status", response_model=SyncStatusRead)
async def get_sync_status(farm: FarmApp = Depends(get_farm_app)) -> SyncStatusRead:
	return farm.status()


@router.post("/sync", response_model=SyncReport)
async def trigger_sync(farm: FarmApp = Depends(get_farm_app)) -> SyncReport:
	try:
		return await farm.sync_data()
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/connectivity", response_model=ConnectivityRead)
async def get_connectivity(farm: FarmApp = Depends(get_farm_app)) -> ConnectivityRead:
	return farm.connectivity.snapshot()


@router.post("/connectivity", response_model=ConnectivityRead)
async def report_connectivity(
	payload: ConnectivityUpdate,
	farm: FarmApp = Depends(get_farm_app),
) -> ConnectivityRead:
	"""Platform online/offline signal plus optional quality hints."""
	await farm.connectivity.report(payload.is_online, payload.connection_type, payload.downlink_mbps)
	return farm.connectivity.snapshot()
