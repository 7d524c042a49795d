"""
In-process storage back-end.

State lives on the instance (one per application lifetime, see main.create_app) and is lost on
restart. Requests are served on one event loop, so table access needs no locking.
"""
from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

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


class _Table(Generic[R]):
    def __init__(self, record_type: Type[R], timestamps: tuple[str, ...] = ("created_at",)):
        self.record_type = record_type
        self.timestamps = timestamps
        self.rows: dict[int, R] = {}
        self.next_id = 1

    def insert(self, values: dict[str, Any]) -> R:
        now = _now()
        row = self.record_type.model_validate(
            {**values, **{field: now for field in self.timestamps}, "id": self.next_id}
        )
        self.rows[row.id] = row
        self.next_id += 1
        return row

    def get(self, pk: int) -> Optional[R]:
        return self.rows.get(pk)

    def update(self, pk: int, changes: dict[str, Any]) -> Optional[R]:
        row = self.rows.get(pk)
        if row is None:
            return None
        values = {**row.model_dump(), **changes}
        if "updated_at" in self.timestamps:
            values["updated_at"] = _now()
        row = self.record_type.model_validate(values)
        self.rows[pk] = row
        return row

    def delete(self, pk: int) -> bool:
        return self.rows.pop(pk, None) is not None

    def all(self) -> list[R]:
        return list(self.rows.values())

    def where(self, predicate: Callable[[R], bool]) -> list[R]:
        return [row for row in self.rows.values() if predicate(row)]

    def first(self, predicate: Callable[[R], bool]) -> Optional[R]:
        return next((row for row in self.rows.values() if predicate(row)), None)


class MemoryStorage(Storage):
    def __init__(self) -> None:
        both = ("created_at", "updated_at")
        self.users = _Table(UserRecord, both)
        self.applications = _Table(ApplicationRecord, both)
        self.offers = _Table(OfferRecord)
        self.companies = _Table(CompanyRecord)
        self.cars = _Table(CarRecord, both)
        self.documents = _Table(DocumentRecord)
        self.notifications = _Table(NotificationRecord)
        self.messages = _Table(MessageRecord)
        self.pages = _Table(PageRecord, both)
        self.forms = _Table(FormRecord, both)
        self.form_submissions = _Table(FormSubmissionRecord)
        self.parsers = _Table(ParserRecord, both)
        self.settings = _Table(SettingRecord, both)
        self.audit_logs = _Table(AuditLogRecord)

    def _tables(self) -> dict[str, _Table]:
        return {name: t for name, t in vars(self).items() if isinstance(t, _Table)}

    @asynccontextmanager
    async def transaction(self):
        # Records are replaced, never mutated, so a shallow copy of each row dict is a full snapshot.
        snapshot = {name: (copy.copy(t.rows), t.next_id) for name, t in self._tables().items()}
        try:
            yield
        except Exception:
            for name, (rows, next_id) in snapshot.items():
                table = self._tables()[name]
                table.rows = rows
                table.next_id = next_id
            raise

    # Users
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self.users.first(lambda u: u.username == username)

    async def create_user(self, data: UserCreate) -> UserRecord:
        return self.users.insert(data.model_dump())

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> Optional[UserRecord]:
        return self.users.update(user_id, changes)

    async def delete_user(self, user_id: int) -> bool:
        if self.users.get(user_id) is None:
            return False
        referenced = (
            self.applications.first(lambda a: user_id in (a.client_id, a.agent_id))
            or self.offers.first(lambda o: o.manager_id == user_id)
            or self.documents.first(lambda d: d.uploaded_by == user_id)
            or self.messages.first(lambda m: m.sender_id == user_id)
        )
        if referenced is not None:
            raise ConflictError("User is still referenced by applications, offers or documents")
        for notification in self.notifications.where(lambda n: n.user_id == user_id):
            self.notifications.delete(notification.id)
        for car in self.cars.where(lambda c: c.supplier_id == user_id):
            self.cars.update(car.id, {"supplier_id": None})
        for log in self.audit_logs.where(lambda r: r.user_id == user_id):
            self.audit_logs.update(log.id, {"user_id": None})
        return self.users.delete(user_id)

    async def list_users(self) -> list[UserRecord]:
        return self.users.all()

    async def get_all_managers(self) -> list[UserRecord]:
        return self.users.where(lambda u: u.user_type == "manager" and u.is_active)

    # Applications
    async def create_application(self, data: ApplicationCreate) -> ApplicationRecord:
        return self.applications.insert({**data.model_dump(), "status": ApplicationStatus.PENDING})

    async def get_application(self, application_id: int) -> Optional[ApplicationRecord]:
        return self.applications.get(application_id)

    async def get_applications_by_client(self, client_id: int) -> list[ApplicationRecord]:
        return self.applications.where(lambda a: a.client_id == client_id)

    async def get_applications_by_agent(self, agent_id: int) -> list[ApplicationRecord]:
        return self.applications.where(lambda a: a.agent_id == agent_id)

    async def get_all_applications(self) -> list[ApplicationRecord]:
        return self.applications.all()

    async def update_application_status(self, application_id: int, status: str) -> Optional[ApplicationRecord]:
        return self.applications.update(application_id, {"status": ApplicationStatus(status)})

    # Offers
    async def create_offer(self, data: OfferCreate) -> OfferRecord:
        return self.offers.insert({**data.model_dump(), "is_selected": False})

    async def get_offer(self, offer_id: int) -> Optional[OfferRecord]:
        return self.offers.get(offer_id)

    async def get_offers_by_application(self, application_id: int) -> list[OfferRecord]:
        return self.offers.where(lambda o: o.application_id == application_id)

    async def select_offer(self, offer_id: int) -> Optional[OfferRecord]:
        offer = self.offers.get(offer_id)
        if offer is None:
            return None
        for sibling in self.offers.where(lambda o: o.application_id == offer.application_id and o.id != offer_id):
            if sibling.is_selected:
                self.offers.update(sibling.id, {"is_selected": False})
        return self.offers.update(offer_id, {"is_selected": True})

    # Companies
    async def get_all_companies(self) -> list[CompanyRecord]:
        return self.companies.where(lambda c: c.is_active)

    async def list_companies(self) -> list[CompanyRecord]:
        return self.companies.all()

    async def get_company(self, company_id: int) -> Optional[CompanyRecord]:
        return self.companies.get(company_id)

    async def create_company(self, data: CompanyCreate) -> CompanyRecord:
        return self.companies.insert(data.model_dump())

    async def update_company(self, company_id: int, changes: dict[str, Any]) -> Optional[CompanyRecord]:
        return self.companies.update(company_id, changes)

    # Cars
    async def create_car(self, data: CarCreate) -> CarRecord:
        return self.cars.insert(data.model_dump())

    async def get_all_cars(self) -> list[CarRecord]:
        return self.cars.all()

    async def get_cars_by_supplier(self, supplier_id: int) -> list[CarRecord]:
        return self.cars.where(lambda c: c.supplier_id == supplier_id)

    async def search_cars(self, filters: CarFilters) -> list[CarRecord]:
        def matches(car: CarRecord) -> bool:
            if filters.brand and car.brand.lower() != filters.brand.lower():
                return False
            if filters.model and car.model.lower() != filters.model.lower():
                return False
            if filters.year is not None and car.year != filters.year:
                return False
            if filters.is_new is not None and car.is_new != filters.is_new:
                return False
            if filters.min_price is not None and car.price < filters.min_price:
                return False
            if filters.max_price is not None and car.price > filters.max_price:
                return False
            return True

        return self.cars.where(matches)

    # Documents
    async def create_document(self, data: DocumentCreate) -> DocumentRecord:
        return self.documents.insert(data.model_dump())

    async def get_documents_by_application(self, application_id: int) -> list[DocumentRecord]:
        return self.documents.where(lambda d: d.application_id == application_id)

    # Notifications
    async def create_notification(self, data: NotificationCreate) -> NotificationRecord:
        return self.notifications.insert({**data.model_dump(), "is_read": False})

    async def get_user_notifications(self, user_id: int) -> list[NotificationRecord]:
        rows = self.notifications.where(lambda n: n.user_id == user_id)
        rows.sort(key=lambda n: (n.created_at, n.id), reverse=True)
        return rows[:NOTIFICATION_LIMIT]

    async def get_notification(self, notification_id: int) -> Optional[NotificationRecord]:
        return self.notifications.get(notification_id)

    async def mark_notification_as_read(self, notification_id: int) -> Optional[NotificationRecord]:
        return self.notifications.update(notification_id, {"is_read": True})

    # Application messages
    async def create_application_message(self, data: MessageCreate) -> MessageRecord:
        return self.messages.insert(data.model_dump())

    async def get_application_messages(self, application_id: int) -> list[MessageRecord]:
        rows = self.messages.where(lambda m: m.application_id == application_id)
        rows.sort(key=lambda m: (m.created_at, m.id))
        return rows

    # Pages
    async def get_all_pages(self) -> list[PageRecord]:
        return self.pages.all()

    async def get_page(self, page_id: int) -> Optional[PageRecord]:
        return self.pages.get(page_id)

    async def get_page_by_slug(self, slug: str) -> Optional[PageRecord]:
        return self.pages.first(lambda p: p.slug == slug)

    async def create_page(self, data: PageCreate) -> PageRecord:
        return self.pages.insert(data.model_dump())

    async def update_page(self, page_id: int, changes: dict[str, Any]) -> Optional[PageRecord]:
        return self.pages.update(page_id, changes)

    async def delete_page(self, page_id: int) -> bool:
        return self.pages.delete(page_id)

    # Forms
    async def get_all_forms(self) -> list[FormRecord]:
        return self.forms.all()

    async def get_form_by_name(self, name: str) -> Optional[FormRecord]:
        return self.forms.first(lambda f: f.name == name and f.is_active)

    async def create_form(self, data: FormCreate) -> FormRecord:
        return self.forms.insert(data.model_dump())

    async def update_form(self, form_id: int, changes: dict[str, Any]) -> Optional[FormRecord]:
        return self.forms.update(form_id, changes)

    async def delete_form(self, form_id: int) -> bool:
        if not self.forms.delete(form_id):
            return False
        for submission in self.form_submissions.where(lambda s: s.form_id == form_id):
            self.form_submissions.delete(submission.id)
        return True

    async def create_form_submission(self, data: FormSubmissionCreate) -> FormSubmissionRecord:
        return self.form_submissions.insert(data.model_dump())

    async def get_form_submissions(self, form_id: int) -> list[FormSubmissionRecord]:
        return self.form_submissions.where(lambda s: s.form_id == form_id)

    # Parsers
    async def get_all_parsers(self) -> list[ParserRecord]:
        return self.parsers.all()

    async def create_parser(self, data: ParserCreate) -> ParserRecord:
        return self.parsers.insert(data.model_dump())

    async def update_parser(self, parser_id: int, changes: dict[str, Any]) -> Optional[ParserRecord]:
        return self.parsers.update(parser_id, changes)

    async def delete_parser(self, parser_id: int) -> bool:
        return self.parsers.delete(parser_id)

    # System settings
    async def get_all_settings(self) -> list[SettingRecord]:
        return sorted(self.settings.all(), key=lambda s: (s.category, s.key))

    async def get_setting(self, key: str) -> Optional[SettingRecord]:
        return self.settings.first(lambda s: s.key == key)

    async def upsert_setting(self, key: str, data: SettingUpsert) -> SettingRecord:
        existing = await self.get_setting(key)
        if existing is None:
            return self.settings.insert({**data.model_dump(), "key": key})
        return self.settings.update(existing.id, data.model_dump())

    # Audit log
    async def create_audit_log(self, data: AuditLogCreate) -> AuditLogRecord:
        return self.audit_logs.insert(data.model_dump())

    async def get_audit_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        rows = sorted(self.audit_logs.all(), key=lambda r: (r.created_at, r.id), reverse=True)
        return rows[:limit]
