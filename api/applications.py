from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, require_role
from schemas.application import (
    ApplicationCreate,
    ApplicationRecord,
    MessageCreate,
    MessageRequest,
    RejectRequest,
    StatusUpdate,
)
from schemas.user import UserRecord
from services import workflow
from services.matching_engine import rank_companies
from storage import Storage, get_storage

router = APIRouter(prefix="/api/applications", tags=["applications"])

MSG_APPLICATION_NOT_FOUND = "Application not found"


def can_view_application(app: ApplicationRecord, user: UserRecord) -> bool:
    """Admins and managers see every application; clients and agents only their own."""
    if user.user_type in ("admin", "manager"):
        return True
    return user.id in (app.client_id, app.agent_id)


async def get_visible_application(storage: Storage, application_id: int, user: UserRecord) -> ApplicationRecord:
    app = await storage.get_application(application_id)
    if app is None:
        raise HTTPException(status_code=404, detail=MSG_APPLICATION_NOT_FOUND)
    if not can_view_application(app, user):
        raise HTTPException(status_code=403, detail="Access denied")
    return app


@router.post("", status_code=201)
async def create_application(
    body: ApplicationCreate,
    user: UserRecord = Depends(require_role("client", "agent")),
    storage: Storage = Depends(get_storage),
):
    if user.user_type == "agent":
        if body.client_id is None:
            raise HTTPException(status_code=400, detail="clientId is required when an agent submits an application")
        client = await storage.get_user(body.client_id)
        if client is None or client.user_type != "client":
            raise HTTPException(status_code=400, detail="clientId must reference a client account")
        data = body.model_copy(update={"agent_id": user.id})
    else:
        data = body.model_copy(update={"client_id": user.id, "agent_id": None})
    app = await workflow.submit_application(storage, data)
    return app.to_response()


@router.get("")
async def list_applications(user: UserRecord = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    if user.user_type == "admin":
        apps = await storage.get_all_applications()
    elif user.user_type == "agent":
        apps = await storage.get_applications_by_agent(user.id)
    else:
        apps = await storage.get_applications_by_client(user.id)
    return [a.to_response() for a in apps]


@router.get("/{application_id}")
async def get_application(
    application_id: int,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    app = await get_visible_application(storage, application_id, user)
    return app.to_response()


@router.post("/{application_id}/approve")
async def approve_application(
    application_id: int,
    admin: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    app = await workflow.approve_application(storage, application_id, admin.id)
    if app is None:
        raise HTTPException(status_code=404, detail=MSG_APPLICATION_NOT_FOUND)
    return app.to_response()


@router.post("/{application_id}/reject")
async def reject_application(
    application_id: int,
    body: RejectRequest,
    admin: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    if not body.reason or not body.reason.strip():
        raise HTTPException(status_code=400, detail="A rejection reason is required")
    app = await workflow.reject_application(storage, application_id, admin.id, body.reason.strip())
    if app is None:
        raise HTTPException(status_code=404, detail=MSG_APPLICATION_NOT_FOUND)
    return app.to_response()


@router.patch("/{application_id}/status")
async def update_application_status(
    application_id: int,
    body: StatusUpdate,
    user: UserRecord = Depends(require_role("admin", "manager")),
    storage: Storage = Depends(get_storage),
):
    app = await workflow.change_application_status(storage, application_id, body.status, user, force=body.force)
    if app is None:
        raise HTTPException(status_code=404, detail=MSG_APPLICATION_NOT_FOUND)
    return app.to_response()


@router.get("/{application_id}/offers")
async def list_offers(
    application_id: int,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await get_visible_application(storage, application_id, user)
    return [o.to_response() for o in await storage.get_offers_by_application(application_id)]


@router.get("/{application_id}/compatible-companies")
async def compatible_companies(
    application_id: int,
    user: UserRecord = Depends(require_role("admin", "manager")),
    storage: Storage = Depends(get_storage),
):
    """Every active company evaluated against the application, eligible ones first."""
    app = await get_visible_application(storage, application_id, user)
    results = rank_companies(app, await storage.get_all_companies())
    return [r.to_response() for r in results]


@router.get("/{application_id}/messages")
async def list_messages(
    application_id: int,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await get_visible_application(storage, application_id, user)
    return [m.to_response() for m in await storage.get_application_messages(application_id)]


@router.post("/{application_id}/messages", status_code=201)
async def post_message(
    application_id: int,
    body: MessageRequest,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if not body.message or not body.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")
    await get_visible_application(storage, application_id, user)
    message = await storage.create_application_message(
        MessageCreate(application_id=application_id, sender_id=user.id, message=body.message)
    )
    return message.to_response()


@router.get("/{application_id}/documents")
async def list_documents(
    application_id: int,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await get_visible_application(storage, application_id, user)
    return [d.to_response() for d in await storage.get_documents_by_application(application_id)]
