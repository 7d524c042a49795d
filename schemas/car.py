from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import Field

from schemas.common import ApiModel

CarStatus = Literal["available", "sold", "reserved"]


class CarCreate(ApiModel):
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)
    price: Decimal = Field(..., ge=0)
    engine: Optional[str] = None
    transmission: Optional[str] = None
    drive: Optional[str] = None
    status: CarStatus = "available"
    is_new: bool = True
    supplier_id: Optional[int] = None
    images: Optional[list[Any]] = None
    specifications: Optional[dict[str, Any]] = None


class CarRecord(CarCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class CarFilters(ApiModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    year: Optional[int] = None
    is_new: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())
