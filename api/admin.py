import logging
from collections import Counter

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.deps import client_info, require_role
from schemas.cms import AdminStats
from schemas.user import AdminUserUpdate, UserRecord
from services.audit import record_audit
from storage import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

MSG_USER_NOT_FOUND = "User not found"


@router.get("/users")
async def list_users(_: UserRecord = Depends(require_role("admin")), storage: Storage = Depends(get_storage)):
    return [u.to_response() for u in await storage.list_users()]


@router.patch("/users/{user_id}")
async def update_user(
    user_id: int,
    body: AdminUserUpdate,
    request: Request,
    admin: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    changes = body.model_dump(exclude_unset=True)
    if changes.get("company_id") is not None and await storage.get_company(changes["company_id"]) is None:
        raise HTTPException(status_code=400, detail="Unknown leasing company")
    before = await storage.get_user(user_id)
    if before is None:
        raise HTTPException(status_code=404, detail=MSG_USER_NOT_FOUND)
    user = await storage.update_user(user_id, changes)
    ip, agent = client_info(request)
    await record_audit(
        storage,
        "user.update",
        user_id=admin.id,
        table_name="users",
        record_id=user_id,
        old_values={k: v for k, v in before.model_dump(mode="json").items() if k in changes},
        new_values=body.model_dump(mode="json", exclude_unset=True),
        ip_address=ip,
        user_agent=agent,
    )
    return user.to_response()


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    request: Request,
    admin: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Administrators cannot delete their own account")
    if not await storage.delete_user(user_id):
        raise HTTPException(status_code=404, detail=MSG_USER_NOT_FOUND)
    ip, agent = client_info(request)
    await record_audit(
        storage, "user.delete", user_id=admin.id, table_name="users", record_id=user_id, ip_address=ip, user_agent=agent
    )
    logger.info("User %s deleted by admin %s", user_id, admin.id)
    return {"message": "User deleted successfully"}


@router.get("/applications")
async def list_applications(_: UserRecord = Depends(require_role("admin")), storage: Storage = Depends(get_storage)):
    return [a.to_response() for a in await storage.get_all_applications()]


@router.get("/stats")
async def stats(_: UserRecord = Depends(require_role("admin")), storage: Storage = Depends(get_storage)):
    applications = await storage.get_all_applications()
    return AdminStats(
        total_users=len(await storage.list_users()),
        total_applications=len(applications),
        applications_by_status=dict(Counter(a.status.value for a in applications)),
        total_pages=len(await storage.get_all_pages()),
        total_forms=len(await storage.get_all_forms()),
        total_parsers=len(await storage.get_all_parsers()),
    ).to_response()


@router.get("/audit-logs")
async def audit_logs(
    limit: int = Query(100, ge=1, le=1000),
    _: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    return [r.to_response() for r in await storage.get_audit_logs(limit)]
