from fastapi import APIRouter, Depends, HTTPException, Request

from api.deps import client_info, require_role
from schemas.company import CompanyCreate, CompanyUpdate
from schemas.user import UserRecord
from services.audit import record_audit
from storage import Storage, get_storage

router = APIRouter(prefix="/api/companies", tags=["companies"])
admin_router = APIRouter(prefix="/api/admin/companies", tags=["admin"])


def _check_bounds(min_amount, max_amount, min_term, max_term) -> None:
    if min_amount is not None and max_amount is not None and min_amount > max_amount:
        raise HTTPException(status_code=400, detail="minAmount must not exceed maxAmount")
    if min_term is not None and max_term is not None and min_term > max_term:
        raise HTTPException(status_code=400, detail="minTerm must not exceed maxTerm")


@router.get("")
async def list_active_companies(storage: Storage = Depends(get_storage)):
    return [c.to_response() for c in await storage.get_all_companies()]


@admin_router.get("")
async def list_all_companies(
    _: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    return [c.to_response() for c in await storage.list_companies()]


@admin_router.post("", status_code=201)
async def create_company(
    body: CompanyCreate,
    request: Request,
    admin: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    _check_bounds(body.min_amount, body.max_amount, body.min_term, body.max_term)
    company = await storage.create_company(body)
    ip, agent = client_info(request)
    await record_audit(
        storage,
        "company.create",
        user_id=admin.id,
        table_name="leasing_companies",
        record_id=company.id,
        new_values={"name": company.name},
        ip_address=ip,
        user_agent=agent,
    )
    return company.to_response()


@admin_router.patch("/{company_id}")
async def update_company(
    company_id: int,
    body: CompanyUpdate,
    request: Request,
    admin: UserRecord = Depends(require_role("admin")),
    storage: Storage = Depends(get_storage),
):
    current = await storage.get_company(company_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Company not found")
    changes = body.model_dump(exclude_unset=True)
    merged = current.model_copy(update=changes)
    _check_bounds(merged.min_amount, merged.max_amount, merged.min_term, merged.max_term)
    company = await storage.update_company(company_id, changes)
    ip, agent = client_info(request)
    await record_audit(
        storage,
        "company.update",
        user_id=admin.id,
        table_name="leasing_companies",
        record_id=company.id,
        new_values=body.model_dump(mode="json", exclude_unset=True),
        ip_address=ip,
        user_agent=agent,
    )
    return company.to_response()
