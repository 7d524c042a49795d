from schemas.application import (
    ApplicationCreate,
    ApplicationRecord,
    DocumentCreate,
    DocumentRecord,
    MessageCreate,
    MessageRecord,
    MessageRequest,
    OfferCreate,
    OfferRecord,
    RejectRequest,
    StatusUpdate,
)
from schemas.car import CarCreate, CarFilters, CarRecord
from schemas.cms import (
    AdminStats,
    AuditLogCreate,
    AuditLogRecord,
    FormCreate,
    FormRecord,
    FormSubmissionCreate,
    FormSubmissionRecord,
    FormUpdate,
    PageCreate,
    PageRecord,
    PageUpdate,
    ParserCreate,
    ParserRecord,
    ParserUpdate,
    SettingRecord,
    SettingUpsert,
)
from schemas.company import (
    CompanyCreate,
    CompanyMatchResultSchema,
    CompanyRecord,
    CompanyUpdate,
    CriterionResultSchema,
)
from schemas.notification import NotificationCreate, NotificationRecord
from schemas.user import (
    AdminUserUpdate,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserCreate,
    UserRecord,
)

__all__ = [
    "AdminStats",
    "AdminUserUpdate",
    "ApplicationCreate",
    "ApplicationRecord",
    "AuditLogCreate",
    "AuditLogRecord",
    "CarCreate",
    "CarFilters",
    "CarRecord",
    "CompanyCreate",
    "CompanyMatchResultSchema",
    "CompanyRecord",
    "CompanyUpdate",
    "CriterionResultSchema",
    "DocumentCreate",
    "DocumentRecord",
    "FormCreate",
    "FormRecord",
    "FormSubmissionCreate",
    "FormSubmissionRecord",
    "FormUpdate",
    "LoginRequest",
    "MessageCreate",
    "MessageRecord",
    "MessageRequest",
    "NotificationCreate",
    "NotificationRecord",
    "OfferCreate",
    "OfferRecord",
    "PageCreate",
    "PageRecord",
    "PageUpdate",
    "ParserCreate",
    "ParserRecord",
    "ParserUpdate",
    "ProfileUpdate",
    "RegisterRequest",
    "RejectRequest",
    "SettingRecord",
    "SettingUpsert",
    "StatusUpdate",
    "UserCreate",
    "UserRecord",
]
