"""Schemas for the admin-managed content tables (pages, forms, parsers, settings, audit log)."""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from schemas.common import ApiModel

SettingType = Literal["string", "number", "boolean", "json"]


class PageCreate(ApiModel):
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9][a-z0-9-]*$")
    content: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_published: bool = False
    template: str = "default"


class PageUpdate(ApiModel):
    title: Optional[str] = None
    slug: Optional[str] = Field(None, pattern=r"^[a-z0-9][a-z0-9-]*$")
    content: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_published: Optional[bool] = None
    template: Optional[str] = None


class PageRecord(PageCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class FormCreate(ApiModel):
    name: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    fields: list[dict[str, Any]]
    is_active: bool = True


class FormUpdate(ApiModel):
    name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    fields: Optional[list[dict[str, Any]]] = None
    is_active: Optional[bool] = None


class FormRecord(FormCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class FormSubmissionCreate(ApiModel):
    form_id: int
    data: dict[str, Any]
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


class FormSubmissionRecord(FormSubmissionCreate):
    id: int
    created_at: datetime


class ParserCreate(ApiModel):
    name: str = Field(..., min_length=1)
    source_url: str = Field(..., min_length=1)
    is_active: bool = True
    config: dict[str, Any]
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None


class ParserUpdate(ApiModel):
    name: Optional[str] = None
    source_url: Optional[str] = None
    is_active: Optional[bool] = None
    config: Optional[dict[str, Any]] = None
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None


class ParserRecord(ParserCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class SettingUpsert(ApiModel):
    value: Optional[str] = None
    type: SettingType = "string"
    description: Optional[str] = None
    category: str = "general"


class SettingRecord(SettingUpsert):
    id: int
    key: str
    created_at: datetime
    updated_at: datetime


class AuditLogCreate(ApiModel):
    user_id: Optional[int] = None
    action: str
    table_name: Optional[str] = None
    record_id: Optional[int] = None
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditLogRecord(AuditLogCreate):
    id: int
    created_at: datetime


class AdminStats(ApiModel):
    total_users: int
    total_applications: int
    applications_by_status: dict[str, int]
    total_pages: int
    total_forms: int
    total_parsers: int
