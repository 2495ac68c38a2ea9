"""Operation routes; writes move product stock through the ledger."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from farmsync.routes.deps import get_farm_app, map_error
from farmsync.schemas.farm import Operation, OperationCreate, OperationUpdate
from farmsync.services.farm_app import FarmApp

router = APIRouter(prefix="/operations", tags=["operations"])


@router.get("", response_model=list[Operation])
async def list_operations(
	all_seasons: bool = Query(default=False, alias="allSeasons"),
	farm: FarmApp = Depends(get_farm_app),
) -> list[Operation]:
	if all_seasons:
		return farm.operations.list()
	return farm.operations_in_active_season()


@router.post("", response_model=Operation, status_code=status.HTTP_201_CREATED)
async def create_operation(payload: OperationCreate, farm: FarmApp = Depends(get_farm_app)) -> Operation:
	try:
		return await farm.operations.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/{operation_id}", response_model=Operation)
async def get_operation(operation_id: str, farm: FarmApp = Depends(get_farm_app)) -> Operation:
	try:
		return farm.operations.require(operation_id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.patch("/{operation_id}", response_model=Operation)
async def update_operation(
	operation_id: str,
	payload: OperationUpdate,
	farm: FarmApp = Depends(get_farm_app),
) -> Operation:
	try:
		return await farm.operations.update(operation_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/{operation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_operation(operation_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.operations.delete(operation_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
