from __future__ import annotations

from typing import Any, Optional

from schemas.cms import AuditLogCreate, AuditLogRecord
from storage.base import Storage


async def record_audit(
    storage: Storage,
    action: str,
    *,
    user_id: Optional[int] = None,
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    old_values: Optional[dict[str, Any]] = None,
    new_values: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLogRecord:
    return await storage.create_audit_log(
        AuditLogCreate(
            user_id=user_id,
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
