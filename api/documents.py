from fastapi import APIRouter, Depends

from api.applications import get_visible_application
from api.deps import get_current_user
from schemas.application import DocumentCreate
from schemas.user import UserRecord
from storage import Storage, get_storage

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("", status_code=201)
async def upload_document(
    body: DocumentCreate,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Register an uploaded file (stored elsewhere, referenced by fileUrl) against an application."""
    await get_visible_application(storage, body.application_id, user)
    document = await storage.create_document(body.model_copy(update={"uploaded_by": user.id}))
    return document.to_response()
