import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from api.deps import client_info, get_current_user
from schemas.user import LoginRequest, ProfileUpdate, RegisterRequest, UserCreate, UserRecord
from services.audit import record_audit
from services.auth import create_access_token, hash_password, verify_password
from storage import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: UserRecord) -> dict:
    return {"accessToken": create_access_token(user), "tokenType": "bearer", "user": user.to_response()}


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, request: Request, storage: Storage = Depends(get_storage)):
    if body.user_type == "admin":
        raise HTTPException(status_code=403, detail="Administrator accounts cannot be self-registered")
    if await storage.get_user_by_username(body.username):
        raise HTTPException(status_code=409, detail="Username is already taken")
    if body.company_id is not None and await storage.get_company(body.company_id) is None:
        raise HTTPException(status_code=400, detail="Unknown leasing company")
    user = await storage.create_user(
        UserCreate(
            **body.model_dump(exclude={"password"}),
            password_hash=hash_password(body.password),
        )
    )
    ip, agent = client_info(request)
    await record_audit(
        storage, "user.register", user_id=user.id, table_name="users", record_id=user.id, ip_address=ip, user_agent=agent
    )
    logger.info("Registered user %s (%s)", user.username, user.user_type)
    return _token_response(user)


@router.post("/login")
async def login(body: LoginRequest, storage: Storage = Depends(get_storage)):
    user = await storage.get_user_by_username(body.username)
    if user is None or not verify_password(body.password, user.password_hash):
        logger.warning("Failed login for %s", body.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    return _token_response(user)


@router.get("/user")
async def get_me(user: UserRecord = Depends(get_current_user)):
    return user.to_response()


@router.patch("/user")
async def update_me(
    body: ProfileUpdate,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        return user.to_response()
    updated = await storage.update_user(user.id, changes)
    return updated.to_response()


@router.post("/logout")
async def logout(user: UserRecord = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy.
    logger.info("User %s logged out", user.id)
    return {"message": "Logged out"}
