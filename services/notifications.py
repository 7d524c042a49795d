from __future__ import annotations

from typing import Iterable

from schemas.notification import NotificationCreate, NotificationRecord, NotificationType
from storage.base import Storage


async def notify(
    storage: Storage,
    user_id: int,
    title: str,
    message: str,
    type: NotificationType = "info",
) -> NotificationRecord:
    return await storage.create_notification(
        NotificationCreate(user_id=user_id, title=title, message=message, type=type)
    )


async def notify_many(
    storage: Storage,
    user_ids: Iterable[int],
    title: str,
    message: str,
    type: NotificationType = "info",
) -> list[NotificationRecord]:
    """One notification per distinct user, in first-seen order."""
    return [await notify(storage, uid, title, message, type) for uid in dict.fromkeys(user_ids)]
