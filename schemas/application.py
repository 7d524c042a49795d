from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from schemas.common import ApiModel
from services.state_machine import ApplicationStatus

LeasingType = Literal["auto", "equipment", "real_estate"]


class ApplicationCreate(ApiModel):
    # client_id / agent_id are filled in by the route from the caller's identity.
    client_id: Optional[int] = None
    agent_id: Optional[int] = None
    object_cost: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    down_payment: Decimal = Field(..., ge=0, le=100, description="Down payment, percent of object cost")
    leasing_term: int = Field(..., gt=0, description="Term in months")
    leasing_type: LeasingType
    client_phone: str = Field(..., min_length=1)
    client_inn: str = Field(..., min_length=1)
    is_new_object: bool = True
    is_for_rental: bool = False
    comment: Optional[str] = None


class ApplicationRecord(ApiModel):
    id: int
    client_id: int
    agent_id: Optional[int] = None
    object_cost: Decimal
    down_payment: Decimal
    leasing_term: int
    leasing_type: LeasingType
    client_phone: str
    client_inn: str
    is_new_object: bool = True
    is_for_rental: bool = False
    comment: Optional[str] = None
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime


class StatusUpdate(ApiModel):
    status: ApplicationStatus
    force: bool = False


class RejectRequest(ApiModel):
    reason: Optional[str] = None


class OfferCreate(ApiModel):
    application_id: int
    company_id: int
    manager_id: Optional[int] = None
    monthly_payment: Decimal = Field(..., ge=0)
    first_payment: Decimal = Field(..., ge=0)
    buyout_payment: Decimal = Field(..., ge=0)
    total_cost: Decimal = Field(..., ge=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0)


class OfferRecord(ApiModel):
    id: int
    application_id: int
    company_id: int
    manager_id: Optional[int] = None
    monthly_payment: Decimal
    first_payment: Decimal
    buyout_payment: Decimal
    total_cost: Decimal
    interest_rate: Optional[Decimal] = None
    is_selected: bool = False
    created_at: datetime


class DocumentCreate(ApiModel):
    application_id: int
    file_name: str
    file_url: str
    document_type: str
    uploaded_by: Optional[int] = None


class DocumentRecord(ApiModel):
    id: int
    application_id: int
    file_name: str
    file_url: str
    document_type: str
    uploaded_by: int
    created_at: datetime


class MessageRequest(ApiModel):
    message: Optional[str] = None


class MessageCreate(ApiModel):
    application_id: int
    sender_id: int
    message: str
    is_system_message: bool = False


class MessageRecord(ApiModel):
    id: int
    application_id: int
    sender_id: int
    message: str
    is_system_message: bool = False
    created_at: datetime
