"""Product and stock routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from farmsync.routes.deps import get_farm_app, map_error
from farmsync.schemas.inventory import Product, ProductCreate, ProductUpdate
from farmsync.services.farm_app import FarmApp

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[Product])
async def list_products(farm: FarmApp = Depends(get_farm_app)) -> list[Product]:
	return farm.products.list()


@router.get("/low-stock", response_model=list[Product])
async def list_low_stock_products(farm: FarmApp = Depends(get_farm_app)) -> list[Product]:
	return farm.low_stock_products()


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, farm: FarmApp = Depends(get_farm_app)) -> Product:
	try:
		return await farm.products.create(payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, farm: FarmApp = Depends(get_farm_app)) -> Product:
	try:
		return farm.products.require(product_id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.patch("/{product_id}", response_model=Product)
async def update_product(
	product_id: str,
	payload: ProductUpdate,
	farm: FarmApp = Depends(get_farm_app),
) -> Product:
	try:
		return await farm.products.update(product_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, farm: FarmApp = Depends(get_farm_app)) -> Response:
	try:
		await farm.products.delete(product_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
