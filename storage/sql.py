"""
SQLAlchemy-backed storage. One instance wraps one AsyncSession (one request); the session
owner commits. Rows are converted to the same record models MemoryStorage returns.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import (
    ApplicationMessage,
    AuditLog,
    Car,
    Document,
    Form,
    FormSubmission,
    LeasingApplication,
    LeasingCompany,
    LeasingOffer,
    Notification,
    Page,
    Parser,
    SystemSetting,
    User,
)
from schemas import (
    ApplicationCreate,
    ApplicationRecord,
    AuditLogCreate,
    AuditLogRecord,
    CarCreate,
    CarFilters,
    CarRecord,
    CompanyCreate,
    CompanyRecord,
    DocumentCreate,
    DocumentRecord,
    FormCreate,
    FormRecord,
    FormSubmissionCreate,
    FormSubmissionRecord,
    MessageCreate,
    MessageRecord,
    NotificationCreate,
    NotificationRecord,
    OfferCreate,
    OfferRecord,
    PageCreate,
    PageRecord,
    ParserCreate,
    ParserRecord,
    SettingRecord,
    SettingUpsert,
    UserCreate,
    UserRecord,
)
from services.exceptions import ConflictError
from services.state_machine import ApplicationStatus
from storage.base import NOTIFICATION_LIMIT, Storage

R = TypeVar("R", bound=BaseModel)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SqlStorage(Storage):
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def transaction(self):
        async with self.session.begin_nested():
            yield

    async def _get(self, model, record_type: Type[R], pk: int) -> Optional[R]:
        obj = await self.session.get(model, pk)
        return record_type.model_validate(obj) if obj is not None else None

    async def _list(self, record_type: Type[R], stmt) -> list[R]:
        result = await self.session.execute(stmt)
        return [record_type.model_validate(obj) for obj in result.scalars().all()]

    async def _first(self, record_type: Type[R], stmt) -> Optional[R]:
        result = await self.session.execute(stmt.limit(1))
        obj = result.scalar_one_or_none()
        return record_type.model_validate(obj) if obj is not None else None

    async def _insert(self, model, record_type: Type[R], values: dict[str, Any]) -> R:
        now = _now()
        obj = model(**values, created_at=now)
        if hasattr(model, "updated_at"):
            obj.updated_at = now
        self.session.add(obj)
        await self.session.flush()
        return record_type.model_validate(obj)

    async def _update(self, model, record_type: Type[R], pk: int, changes: dict[str, Any]) -> Optional[R]:
        obj = await self.session.get(model, pk)
        if obj is None:
            return None
        for key, value in changes.items():
            setattr(obj, key, value)
        if hasattr(model, "updated_at"):
            obj.updated_at = _now()
        await self.session.flush()
        return record_type.model_validate(obj)

    async def _delete(self, model, pk: int) -> bool:
        obj = await self.session.get(model, pk)
        if obj is None:
            return False
        await self.session.delete(obj)
        await self.session.flush()
        return True

    # Users
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return await self._get(User, UserRecord, user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._first(UserRecord, select(User).where(User.username == username))

    async def create_user(self, data: UserCreate) -> UserRecord:
        return await self._insert(User, UserRecord, data.model_dump())

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> Optional[UserRecord]:
        return await self._update(User, UserRecord, user_id, changes)

    async def delete_user(self, user_id: int) -> bool:
        try:
            async with self.session.begin_nested():
                return await self._delete(User, user_id)
        except IntegrityError as e:
            raise ConflictError("User is still referenced by applications, offers or documents") from e

    async def list_users(self) -> list[UserRecord]:
        return await self._list(UserRecord, select(User).order_by(User.id))

    async def get_all_managers(self) -> list[UserRecord]:
        return await self._list(
            UserRecord,
            select(User).where(User.user_type == "manager", User.is_active.is_(True)).order_by(User.id),
        )

    # Applications
    async def create_application(self, data: ApplicationCreate) -> ApplicationRecord:
        values = {**data.model_dump(), "status": ApplicationStatus.PENDING.value}
        return await self._insert(LeasingApplication, ApplicationRecord, values)

    async def get_application(self, application_id: int) -> Optional[ApplicationRecord]:
        return await self._get(LeasingApplication, ApplicationRecord, application_id)

    async def get_applications_by_client(self, client_id: int) -> list[ApplicationRecord]:
        return await self._list(
            ApplicationRecord,
            select(LeasingApplication).where(LeasingApplication.client_id == client_id).order_by(LeasingApplication.id),
        )

    async def get_applications_by_agent(self, agent_id: int) -> list[ApplicationRecord]:
        return await self._list(
            ApplicationRecord,
            select(LeasingApplication).where(LeasingApplication.agent_id == agent_id).order_by(LeasingApplication.id),
        )

    async def get_all_applications(self) -> list[ApplicationRecord]:
        return await self._list(ApplicationRecord, select(LeasingApplication).order_by(LeasingApplication.id))

    async def update_application_status(self, application_id: int, status: str) -> Optional[ApplicationRecord]:
        status = ApplicationStatus(status).value
        return await self._update(LeasingApplication, ApplicationRecord, application_id, {"status": status})

    # Offers
    async def create_offer(self, data: OfferCreate) -> OfferRecord:
        return await self._insert(LeasingOffer, OfferRecord, {**data.model_dump(), "is_selected": False})

    async def get_offer(self, offer_id: int) -> Optional[OfferRecord]:
        return await self._get(LeasingOffer, OfferRecord, offer_id)

    async def get_offers_by_application(self, application_id: int) -> list[OfferRecord]:
        return await self._list(
            OfferRecord,
            select(LeasingOffer).where(LeasingOffer.application_id == application_id).order_by(LeasingOffer.id),
        )

    async def select_offer(self, offer_id: int) -> Optional[OfferRecord]:
        offer = await self.session.get(LeasingOffer, offer_id)
        if offer is None:
            return None
        await self.session.execute(
            update(LeasingOffer)
            .where(LeasingOffer.application_id == offer.application_id, LeasingOffer.id != offer_id)
            .values(is_selected=False)
        )
        offer.is_selected = True
        await self.session.flush()
        return OfferRecord.model_validate(offer)

    # Companies
    async def get_all_companies(self) -> list[CompanyRecord]:
        return await self._list(
            CompanyRecord,
            select(LeasingCompany).where(LeasingCompany.is_active.is_(True)).order_by(LeasingCompany.id),
        )

    async def list_companies(self) -> list[CompanyRecord]:
        return await self._list(CompanyRecord, select(LeasingCompany).order_by(LeasingCompany.id))

    async def get_company(self, company_id: int) -> Optional[CompanyRecord]:
        return await self._get(LeasingCompany, CompanyRecord, company_id)

    async def create_company(self, data: CompanyCreate) -> CompanyRecord:
        return await self._insert(LeasingCompany, CompanyRecord, data.model_dump())

    async def update_company(self, company_id: int, changes: dict[str, Any]) -> Optional[CompanyRecord]:
        return await self._update(LeasingCompany, CompanyRecord, company_id, changes)

    # Cars
    async def create_car(self, data: CarCreate) -> CarRecord:
        return await self._insert(Car, CarRecord, data.model_dump())

    async def get_all_cars(self) -> list[CarRecord]:
        return await self._list(CarRecord, select(Car).order_by(Car.id))

    async def get_cars_by_supplier(self, supplier_id: int) -> list[CarRecord]:
        return await self._list(CarRecord, select(Car).where(Car.supplier_id == supplier_id).order_by(Car.id))

    async def search_cars(self, filters: CarFilters) -> list[CarRecord]:
        stmt = select(Car)
        if filters.brand:
            stmt = stmt.where(func.lower(Car.brand) == filters.brand.lower())
        if filters.model:
            stmt = stmt.where(func.lower(Car.model) == filters.model.lower())
        if filters.year is not None:
            stmt = stmt.where(Car.year == filters.year)
        if filters.is_new is not None:
            stmt = stmt.where(Car.is_new.is_(filters.is_new))
        if filters.min_price is not None:
            stmt = stmt.where(Car.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(Car.price <= filters.max_price)
        return await self._list(CarRecord, stmt.order_by(Car.id))

    # Documents
    async def create_document(self, data: DocumentCreate) -> DocumentRecord:
        return await self._insert(Document, DocumentRecord, data.model_dump())

    async def get_documents_by_application(self, application_id: int) -> list[DocumentRecord]:
        return await self._list(
            DocumentRecord,
            select(Document).where(Document.application_id == application_id).order_by(Document.id),
        )

    # Notifications
    async def create_notification(self, data: NotificationCreate) -> NotificationRecord:
        return await self._insert(Notification, NotificationRecord, {**data.model_dump(), "is_read": False})

    async def get_user_notifications(self, user_id: int) -> list[NotificationRecord]:
        return await self._list(
            NotificationRecord,
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(NOTIFICATION_LIMIT),
        )

    async def get_notification(self, notification_id: int) -> Optional[NotificationRecord]:
        return await self._get(Notification, NotificationRecord, notification_id)

    async def mark_notification_as_read(self, notification_id: int) -> Optional[NotificationRecord]:
        return await self._update(Notification, NotificationRecord, notification_id, {"is_read": True})

    # Application messages
    async def create_application_message(self, data: MessageCreate) -> MessageRecord:
        return await self._insert(ApplicationMessage, MessageRecord, data.model_dump())

    async def get_application_messages(self, application_id: int) -> list[MessageRecord]:
        return await self._list(
            MessageRecord,
            select(ApplicationMessage)
            .where(ApplicationMessage.application_id == application_id)
            .order_by(ApplicationMessage.created_at, ApplicationMessage.id),
        )

    # Pages
    async def get_all_pages(self) -> list[PageRecord]:
        return await self._list(PageRecord, select(Page).order_by(Page.id))

    async def get_page(self, page_id: int) -> Optional[PageRecord]:
        return await self._get(Page, PageRecord, page_id)

    async def get_page_by_slug(self, slug: str) -> Optional[PageRecord]:
        return await self._first(PageRecord, select(Page).where(Page.slug == slug))

    async def create_page(self, data: PageCreate) -> PageRecord:
        return await self._insert(Page, PageRecord, data.model_dump())

    async def update_page(self, page_id: int, changes: dict[str, Any]) -> Optional[PageRecord]:
        return await self._update(Page, PageRecord, page_id, changes)

    async def delete_page(self, page_id: int) -> bool:
        return await self._delete(Page, page_id)

    # Forms
    async def get_all_forms(self) -> list[FormRecord]:
        return await self._list(FormRecord, select(Form).order_by(Form.id))

    async def get_form_by_name(self, name: str) -> Optional[FormRecord]:
        return await self._first(
            FormRecord, select(Form).where(Form.name == name, Form.is_active.is_(True)).order_by(Form.id)
        )

    async def create_form(self, data: FormCreate) -> FormRecord:
        return await self._insert(Form, FormRecord, data.model_dump())

    async def update_form(self, form_id: int, changes: dict[str, Any]) -> Optional[FormRecord]:
        return await self._update(Form, FormRecord, form_id, changes)

    async def delete_form(self, form_id: int) -> bool:
        if await self.session.get(Form, form_id) is None:
            return False
        await self.session.execute(delete(FormSubmission).where(FormSubmission.form_id == form_id))
        return await self._delete(Form, form_id)

    async def create_form_submission(self, data: FormSubmissionCreate) -> FormSubmissionRecord:
        return await self._insert(FormSubmission, FormSubmissionRecord, data.model_dump())

    async def get_form_submissions(self, form_id: int) -> list[FormSubmissionRecord]:
        return await self._list(
            FormSubmissionRecord,
            select(FormSubmission).where(FormSubmission.form_id == form_id).order_by(FormSubmission.id),
        )

    # Parsers
    async def get_all_parsers(self) -> list[ParserRecord]:
        return await self._list(ParserRecord, select(Parser).order_by(Parser.id))

    async def create_parser(self, data: ParserCreate) -> ParserRecord:
        return await self._insert(Parser, ParserRecord, data.model_dump())

    async def update_parser(self, parser_id: int, changes: dict[str, Any]) -> Optional[ParserRecord]:
        return await self._update(Parser, ParserRecord, parser_id, changes)

    async def delete_parser(self, parser_id: int) -> bool:
        return await self._delete(Parser, parser_id)

    # System settings
    async def get_all_settings(self) -> list[SettingRecord]:
        return await self._list(SettingRecord, select(SystemSetting).order_by(SystemSetting.category, SystemSetting.key))

    async def get_setting(self, key: str) -> Optional[SettingRecord]:
        return await self._first(SettingRecord, select(SystemSetting).where(SystemSetting.key == key))

    async def upsert_setting(self, key: str, data: SettingUpsert) -> SettingRecord:
        existing = await self.get_setting(key)
        if existing is None:
            return await self._insert(SystemSetting, SettingRecord, {**data.model_dump(), "key": key})
        return await self._update(SystemSetting, SettingRecord, existing.id, data.model_dump())

    # Audit log
    async def create_audit_log(self, data: AuditLogCreate) -> AuditLogRecord:
        return await self._insert(AuditLog, AuditLogRecord, data.model_dump())

    async def get_audit_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        return await self._list(
            AuditLogRecord,
            select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit),
        )
