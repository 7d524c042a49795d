"""FastAPI dependencies shared by the routers: the current user and role checks."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schemas.user import UserRecord
from services.auth import InvalidTokenError, decode_access_token
from storage import Storage, get_storage

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

MSG_NOT_AUTHENTICATED = "Not authenticated"
MSG_FORBIDDEN = "Insufficient permissions"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: Storage = Depends(get_storage),
) -> UserRecord:
    if credentials is None:
        raise HTTPException(status_code=401, detail=MSG_NOT_AUTHENTICATED)
    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token") from e
    user = await storage.get_user(int(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    return user


def require_role(*roles: str):
    """Dependency factory: the current user must have one of `roles`."""

    async def checker(user: UserRecord = Depends(get_current_user)) -> UserRecord:
        if user.user_type not in roles:
            raise HTTPException(status_code=403, detail=MSG_FORBIDDEN)
        return user

    return checker


def client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    """(ip address, user agent) of the caller, for audit rows and form submissions."""
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")
