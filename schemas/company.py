from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, ValidationInfo, field_validator

from schemas.common import ApiModel


class CompanyCreate(ApiModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool = True
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    min_term: Optional[int] = Field(None, ge=0)
    max_term: Optional[int] = Field(None, ge=0)
    interest_rate: Optional[Decimal] = None
    max_leasing_term: Optional[int] = None
    requirements: Optional[dict[str, Any]] = None
    work_with_used: bool = True
    work_with_auto: bool = True
    work_with_equipment: bool = True
    work_with_real_estate: bool = True


class CompanyUpdate(ApiModel):
    """Partial update. Omitted fields stay as they are; the nullable ones may be cleared with null."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    logo: Optional[str] = None
    is_active: Optional[bool] = None
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    min_term: Optional[int] = Field(None, ge=0)
    max_term: Optional[int] = Field(None, ge=0)
    interest_rate: Optional[Decimal] = None
    max_leasing_term: Optional[int] = None
    requirements: Optional[dict[str, Any]] = None
    work_with_used: Optional[bool] = None
    work_with_auto: Optional[bool] = None
    work_with_equipment: Optional[bool] = None
    work_with_real_estate: Optional[bool] = None

    @field_validator(
        "name", "is_active", "work_with_used", "work_with_auto", "work_with_equipment", "work_with_real_estate"
    )
    @classmethod
    def not_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class CompanyRecord(CompanyCreate):
    id: int
    created_at: datetime


class CriterionResultSchema(ApiModel):
    name: str
    met: bool
    reason: str
    expected: Optional[str] = None
    actual: Optional[str] = None


class CompanyMatchResultSchema(ApiModel):
    company_id: int
    company_name: str
    eligible: bool
    fit_score: int
    rejection_reasons: list[str] = Field(default_factory=list)
    criteria_results: list[CriterionResultSchema] = Field(default_factory=list)
