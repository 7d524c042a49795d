from datetime import datetime
from typing import Literal

from schemas.common import ApiModel

NotificationType = Literal["info", "success", "warning", "error"]


class NotificationCreate(ApiModel):
    user_id: int
    title: str
    message: str
    type: NotificationType = "info"


class NotificationRecord(ApiModel):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool = False
    created_at: datetime
