"""
Storage façade shared by the in-memory and SQL back-ends.

Lookups return None when the row does not exist; nothing here raises for "not found".
Partial updates take a dict of snake_case field -> value.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

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
from services.matching_engine import filter_compatible_companies

NOTIFICATION_LIMIT = 50


class Storage(ABC):
    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group several writes so they apply together or not at all."""

    # Users
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> UserRecord: ...

    @abstractmethod
    async def update_user(self, user_id: int, changes: dict[str, Any]) -> Optional[UserRecord]: ...

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool: ...

    @abstractmethod
    async def list_users(self) -> list[UserRecord]: ...

    @abstractmethod
    async def get_all_managers(self) -> list[UserRecord]:
        """Active users of type manager."""

    # Applications
    @abstractmethod
    async def create_application(self, data: ApplicationCreate) -> ApplicationRecord: ...

    @abstractmethod
    async def get_application(self, application_id: int) -> Optional[ApplicationRecord]: ...

    @abstractmethod
    async def get_applications_by_client(self, client_id: int) -> list[ApplicationRecord]: ...

    @abstractmethod
    async def get_applications_by_agent(self, agent_id: int) -> list[ApplicationRecord]: ...

    @abstractmethod
    async def get_all_applications(self) -> list[ApplicationRecord]: ...

    @abstractmethod
    async def update_application_status(self, application_id: int, status: str) -> Optional[ApplicationRecord]:
        """Overwrite the status field as-is. Transition rules live in services.workflow."""

    # Offers
    @abstractmethod
    async def create_offer(self, data: OfferCreate) -> OfferRecord: ...

    @abstractmethod
    async def get_offer(self, offer_id: int) -> Optional[OfferRecord]: ...

    @abstractmethod
    async def get_offers_by_application(self, application_id: int) -> list[OfferRecord]: ...

    @abstractmethod
    async def select_offer(self, offer_id: int) -> Optional[OfferRecord]:
        """Mark the offer selected and every sibling offer of the same application unselected."""

    # Companies
    @abstractmethod
    async def get_all_companies(self) -> list[CompanyRecord]:
        """Active companies only."""

    @abstractmethod
    async def list_companies(self) -> list[CompanyRecord]:
        """All companies, including inactive ones."""

    @abstractmethod
    async def get_company(self, company_id: int) -> Optional[CompanyRecord]: ...

    @abstractmethod
    async def create_company(self, data: CompanyCreate) -> CompanyRecord: ...

    @abstractmethod
    async def update_company(self, company_id: int, changes: dict[str, Any]) -> Optional[CompanyRecord]: ...

    async def get_compatible_companies(self, application: ApplicationRecord) -> list[CompanyRecord]:
        return filter_compatible_companies(application, await self.get_all_companies())

    # Cars
    @abstractmethod
    async def create_car(self, data: CarCreate) -> CarRecord: ...

    @abstractmethod
    async def get_all_cars(self) -> list[CarRecord]: ...

    @abstractmethod
    async def get_cars_by_supplier(self, supplier_id: int) -> list[CarRecord]: ...

    @abstractmethod
    async def search_cars(self, filters: CarFilters) -> list[CarRecord]: ...

    # Documents
    @abstractmethod
    async def create_document(self, data: DocumentCreate) -> DocumentRecord: ...

    @abstractmethod
    async def get_documents_by_application(self, application_id: int) -> list[DocumentRecord]: ...

    # Notifications
    @abstractmethod
    async def create_notification(self, data: NotificationCreate) -> NotificationRecord: ...

    @abstractmethod
    async def get_user_notifications(self, user_id: int) -> list[NotificationRecord]:
        """Newest first, at most NOTIFICATION_LIMIT."""

    @abstractmethod
    async def get_notification(self, notification_id: int) -> Optional[NotificationRecord]: ...

    @abstractmethod
    async def mark_notification_as_read(self, notification_id: int) -> Optional[NotificationRecord]: ...

    # Application messages
    @abstractmethod
    async def create_application_message(self, data: MessageCreate) -> MessageRecord: ...

    @abstractmethod
    async def get_application_messages(self, application_id: int) -> list[MessageRecord]:
        """Oldest first."""

    # Pages
    @abstractmethod
    async def get_all_pages(self) -> list[PageRecord]: ...

    @abstractmethod
    async def get_page(self, page_id: int) -> Optional[PageRecord]: ...

    @abstractmethod
    async def get_page_by_slug(self, slug: str) -> Optional[PageRecord]: ...

    @abstractmethod
    async def create_page(self, data: PageCreate) -> PageRecord: ...

    @abstractmethod
    async def update_page(self, page_id: int, changes: dict[str, Any]) -> Optional[PageRecord]: ...

    @abstractmethod
    async def delete_page(self, page_id: int) -> bool: ...

    # Forms
    @abstractmethod
    async def get_all_forms(self) -> list[FormRecord]: ...

    @abstractmethod
    async def get_form_by_name(self, name: str) -> Optional[FormRecord]:
        """Active form with this name."""

    @abstractmethod
    async def create_form(self, data: FormCreate) -> FormRecord: ...

    @abstractmethod
    async def update_form(self, form_id: int, changes: dict[str, Any]) -> Optional[FormRecord]: ...

    @abstractmethod
    async def delete_form(self, form_id: int) -> bool: ...

    @abstractmethod
    async def create_form_submission(self, data: FormSubmissionCreate) -> FormSubmissionRecord: ...

    @abstractmethod
    async def get_form_submissions(self, form_id: int) -> list[FormSubmissionRecord]: ...

    # Parsers
    @abstractmethod
    async def get_all_parsers(self) -> list[ParserRecord]: ...

    @abstractmethod
    async def create_parser(self, data: ParserCreate) -> ParserRecord: ...

    @abstractmethod
    async def update_parser(self, parser_id: int, changes: dict[str, Any]) -> Optional[ParserRecord]: ...

    @abstractmethod
    async def delete_parser(self, parser_id: int) -> bool: ...

    # System settings
    @abstractmethod
    async def get_all_settings(self) -> list[SettingRecord]: ...

    @abstractmethod
    async def get_setting(self, key: str) -> Optional[SettingRecord]: ...

    @abstractmethod
    async def upsert_setting(self, key: str, data: SettingUpsert) -> SettingRecord: ...

    # Audit log
    @abstractmethod
    async def create_audit_log(self, data: AuditLogCreate) -> AuditLogRecord: ...

    @abstractmethod
    async def get_audit_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        """Newest first."""
