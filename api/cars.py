from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import require_role
from schemas.car import CarCreate, CarFilters
from schemas.user import UserRecord
from storage import Storage, get_storage

router = APIRouter(prefix="/api/cars", tags=["cars"])
admin_router = APIRouter(prefix="/api/admin/cars", tags=["admin"])


def car_filters(
    brand: Optional[str] = None,
    model: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    year: Optional[int] = None,
    is_new: Optional[bool] = Query(None, alias="isNew"),
) -> CarFilters:
    return CarFilters(
        brand=brand or None,
        model=model or None,
        min_price=min_price,
        max_price=max_price,
        year=year,
        is_new=is_new,
    )


@router.get("")
async def list_cars(filters: CarFilters = Depends(car_filters), storage: Storage = Depends(get_storage)):
    cars = await storage.get_all_cars() if filters.is_empty() else await storage.search_cars(filters)
    return [c.to_response() for c in cars]


@router.post("", status_code=201)
async def create_car(
    body: CarCreate,
    supplier: UserRecord = Depends(require_role("supplier")),
    storage: Storage = Depends(get_storage),
):
    car = await storage.create_car(body.model_copy(update={"supplier_id": supplier.id}))
    return car.to_response()


@router.get("/mine")
async def list_my_cars(
    supplier: UserRecord = Depends(require_role("supplier")),
    storage: Storage = Depends(get_storage),
):
    return [c.to_response() for c in await storage.get_cars_by_supplier(supplier.id)]


@admin_router.get("")
async def list_all_cars(_: UserRecord = Depends(require_role("admin")), storage: Storage = Depends(get_storage)):
    return [c.to_response() for c in await storage.get_all_cars()]
