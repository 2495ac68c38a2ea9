"""Shared route dependencies and service-error mapping."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from farmsync.auth.context import AuthorizationError
from farmsync.remote.base import RemoteError
from farmsync.schemas.sync import StockShortageRead
from farmsync.services.errors import (
	InsufficientStockError,
	OfflineError,
	RemoteWriteFailure,
	SyncFailedError,
)
from farmsync.services.farm_app import FarmApp


def get_farm_app(request: Request) -> FarmApp:
	return request.app.state.farm_app


def map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, InsufficientStockError):
		return HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail={
				"error": "insufficient_stock",
				"message": str(exc),
				"shortages": [
					StockShortageRead(
						product_id=shortage.product_id,
						product_name=shortage.product_name,
						unit=shortage.unit,
						available=shortage.available,
						required=shortage.required,
					).model_dump()
					for shortage in exc.shortages
				],
			},
		)
	if isinstance(exc, AuthorizationError):
		return HTTPException(
			status_code=status.HTTP_403_FORBIDDEN,
			detail={"error": exc.code, "message": exc.detail},
		)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, OfflineError):
		return HTTPException(
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
			detail={"error": "offline", "message": str(exc)},
		)
	if isinstance(exc, (RemoteWriteFailure, SyncFailedError, RemoteError)):
		return HTTPException(
			status_code=status.HTTP_502_BAD_GATEWAY,
			detail={"error": "remote_failure", "message": str(exc)},
		)
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected farm service failure",
	)
