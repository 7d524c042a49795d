from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user
from schemas.user import UserRecord
from storage import Storage, get_storage

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(user: UserRecord = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    return [n.to_response() for n in await storage.get_user_notifications(user.id)]


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    notification = await storage.get_notification(notification_id)
    # Another user's notification is reported as missing.
    if notification is None or notification.user_id != user.id:
        raise HTTPException(status_code=404, detail="Notification not found")
    await storage.mark_notification_as_read(notification_id)
    return {"success": True}
