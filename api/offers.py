from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, require_role
from schemas.application import OfferCreate
from schemas.user import UserRecord
from services import workflow
from storage import Storage, get_storage

router = APIRouter(prefix="/api/offers", tags=["offers"])


@router.post("", status_code=201)
async def create_offer(
    body: OfferCreate,
    manager: UserRecord = Depends(require_role("manager")),
    storage: Storage = Depends(get_storage),
):
    offer = await workflow.create_offer(storage, body, manager)
    if offer is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return offer.to_response()


@router.post("/{offer_id}/select")
async def select_offer(
    offer_id: int,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    offer = await workflow.select_offer(storage, offer_id, user)
    if offer is None:
        raise HTTPException(status_code=404, detail="Offer not found")
    return offer.to_response()
