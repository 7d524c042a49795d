"""
Leasing application workflow: admin review, dispatch to compatible companies, offers,
offer selection and later status changes.

Every action validates its status change through services.state_machine and runs inside
storage.transaction(), so a failed notification or audit write undoes the status change too.
Lookups that find nothing return None; the route layer turns that into 404.
"""
from __future__ import annotations

import logging
from typing import Optional

from schemas.application import ApplicationCreate, ApplicationRecord, MessageCreate, OfferCreate, OfferRecord
from schemas.user import UserRecord
from services.audit import record_audit
from services.exceptions import InvalidTransitionError, PermissionDeniedError, WorkflowError
from services.notifications import notify, notify_many
from services.state_machine import ApplicationStatus, WorkflowEvent, event_for, next_status
from storage.base import Storage

logger = logging.getLogger(__name__)


async def _transition(storage: Storage, app: ApplicationRecord, event: WorkflowEvent) -> ApplicationRecord:
    target = next_status(app.status, event)
    updated = await storage.update_application_status(app.id, target.value)
    logger.info("Application %s: %s --%s--> %s", app.id, app.status.value, event.value, target.value)
    return updated


async def _system_message(storage: Storage, application_id: int, sender_id: int, text: str) -> None:
    await storage.create_application_message(
        MessageCreate(application_id=application_id, sender_id=sender_id, message=text, is_system_message=True)
    )


async def submit_application(storage: Storage, data: ApplicationCreate) -> ApplicationRecord:
    """Store a new application (always pending) and let administrators know it is waiting for review."""
    async with storage.transaction():
        app = await storage.create_application(data)
        admins = [u.id for u in await storage.list_users() if u.user_type == "admin" and u.is_active]
        await notify_many(
            storage,
            admins,
            "New leasing application",
            f"Application #{app.id}: {app.leasing_type} worth {app.object_cost} awaits review",
            "info",
        )
        await record_audit(
            storage,
            "application.create",
            user_id=data.agent_id or data.client_id,
            table_name="leasing_applications",
            record_id=app.id,
            new_values={"status": app.status.value},
        )
    logger.info("Application %s submitted by client %s", app.id, app.client_id)
    return app


async def approve_application(storage: Storage, application_id: int, admin_id: int) -> Optional[ApplicationRecord]:
    """Admin approval of a pending application, followed by dispatch to compatible companies."""
    async with storage.transaction():
        app = await storage.get_application(application_id)
        if app is None:
            return None
        if app.status is not ApplicationStatus.PENDING:
            raise InvalidTransitionError(app.status.value, WorkflowEvent.APPROVE.value)
        app = await _transition(storage, app, WorkflowEvent.APPROVE)
        await _system_message(
            storage,
            app.id,
            admin_id,
            "Application approved by the administrator and forwarded to leasing company managers",
        )
        await notify(
            storage,
            app.client_id,
            "Application approved",
            f"Your application #{app.id} has been approved and sent to leasing companies",
            "success",
        )
        await record_audit(
            storage,
            "application.approve",
            user_id=admin_id,
            table_name="leasing_applications",
            record_id=app.id,
            old_values={"status": ApplicationStatus.PENDING.value},
            new_values={"status": app.status.value},
        )
        return await send_application_to_managers(storage, app.id)


async def send_application_to_managers(storage: Storage, application_id: int) -> Optional[ApplicationRecord]:
    """Notify managers of every compatible company and open the application for offers."""
    app = await storage.get_application(application_id)
    if app is None:
        return None
    companies = await storage.get_compatible_companies(app)
    company_ids = {c.id for c in companies}
    managers = [m for m in await storage.get_all_managers() if m.company_id in company_ids]
    await notify_many(
        storage,
        [m.id for m in managers],
        "New application",
        f"New application #{app.id} for {app.object_cost} ({app.leasing_type}, {app.leasing_term} months)",
        "info",
    )
    logger.info(
        "Application %s dispatched to %d compatible companies, %d managers notified",
        app.id,
        len(company_ids),
        len(managers),
    )
    return await _transition(storage, app, WorkflowEvent.DISPATCH)


async def reject_application(
    storage: Storage, application_id: int, admin_id: int, reason: str
) -> Optional[ApplicationRecord]:
    if not reason or not reason.strip():
        raise WorkflowError("A rejection reason is required")
    async with storage.transaction():
        app = await storage.get_application(application_id)
        if app is None:
            return None
        previous = app.status
        app = await _transition(storage, app, WorkflowEvent.REJECT)
        await _system_message(storage, app.id, admin_id, f"Application rejected by the administrator. Reason: {reason}")
        await notify(
            storage,
            app.client_id,
            "Application rejected",
            f"Your application #{app.id} has been rejected. Reason: {reason}",
            "error",
        )
        await record_audit(
            storage,
            "application.reject",
            user_id=admin_id,
            table_name="leasing_applications",
            record_id=app.id,
            old_values={"status": previous.value},
            new_values={"status": app.status.value, "reason": reason},
        )
    return app


async def change_application_status(
    storage: Storage,
    application_id: int,
    status: ApplicationStatus | str,
    actor: UserRecord,
    force: bool = False,
) -> Optional[ApplicationRecord]:
    """
    Move an application to `status` along a manual edge (revision, resubmission, final approval,
    issue or rejection). Approval, dispatch and offer selection have their own actions.
    Admins may pass force=True to overwrite the status regardless; the override is logged and audited.
    """
    target = ApplicationStatus(status)
    if force and actor.user_type != "admin":
        raise PermissionDeniedError("Only administrators can force a status change")
    async with storage.transaction():
        app = await storage.get_application(application_id)
        if app is None:
            return None
        previous = app.status
        if force:
            app = await storage.update_application_status(app.id, target.value)
            logger.warning(
                "Application %s status forced %s -> %s by user %s", app.id, previous.value, target.value, actor.id
            )
        else:
            app = await _transition(storage, app, event_for(previous, target))
        await notify(
            storage,
            app.client_id,
            "Application status changed",
            f"The status of your application #{app.id} changed to: {target.value}",
            "info",
        )
        await record_audit(
            storage,
            "application.force_status" if force else "application.status",
            user_id=actor.id,
            table_name="leasing_applications",
            record_id=app.id,
            old_values={"status": previous.value},
            new_values={"status": target.value},
        )
    return app


async def create_offer(storage: Storage, data: OfferCreate, manager: UserRecord) -> Optional[OfferRecord]:
    """
    Record a manager's offer. An application still waiting for dispatch is opened for offers first;
    the first offer moves it to reviewing_offers.
    """
    if manager.company_id is not None and manager.company_id != data.company_id:
        raise PermissionDeniedError("Managers can only submit offers on behalf of their own company")
    async with storage.transaction():
        app = await storage.get_application(data.application_id)
        if app is None:
            return None
        company = await storage.get_company(data.company_id)
        if company is None or not company.is_active:
            raise WorkflowError(f"Leasing company {data.company_id} does not exist or is inactive")
        if company.id not in {c.id for c in await storage.get_compatible_companies(app)}:
            raise WorkflowError(f"{company.name} does not match the terms of application #{app.id}")
        if app.status is ApplicationStatus.APPROVED_BY_ADMIN:
            app = await _transition(storage, app, WorkflowEvent.DISPATCH)
        # Validate before writing the offer so a closed application gets no new offers.
        next_status(app.status, WorkflowEvent.RECEIVE_OFFER)
        offer = await storage.create_offer(data.model_copy(update={"manager_id": manager.id}))
        await _transition(storage, app, WorkflowEvent.RECEIVE_OFFER)
        await notify(
            storage,
            app.client_id,
            "New leasing offer",
            f"{company.name} sent an offer for application #{app.id}",
            "success",
        )
        await record_audit(
            storage,
            "offer.create",
            user_id=manager.id,
            table_name="leasing_offers",
            record_id=offer.id,
            new_values={"application_id": app.id, "company_id": company.id},
        )
    return offer


async def select_offer(storage: Storage, offer_id: int, actor: UserRecord) -> Optional[OfferRecord]:
    """Select one offer (unselecting its siblings) and move the application to document collection."""
    offer = await storage.get_offer(offer_id)
    if offer is None:
        return None
    app = await storage.get_application(offer.application_id)
    if app is None:
        return None
    if actor.user_type != "admin" and actor.id not in (app.client_id, app.agent_id):
        raise PermissionDeniedError("Only the applicant can select an offer")
    async with storage.transaction():
        next_status(app.status, WorkflowEvent.SELECT_OFFER)
        selected = await storage.select_offer(offer_id)
        await _transition(storage, app, WorkflowEvent.SELECT_OFFER)
        if selected.manager_id is not None:
            await notify(
                storage,
                selected.manager_id,
                "Offer selected",
                f"The client selected your offer #{selected.id} for application #{app.id}",
                "success",
            )
        await record_audit(
            storage,
            "offer.select",
            user_id=actor.id,
            table_name="leasing_offers",
            record_id=selected.id,
            new_values={"application_id": app.id, "is_selected": True},
        )
    return selected
