"""
Admin-managed site content: pages, forms, parser definitions and system settings,
plus the public endpoints that serve published pages and accept form submissions.
"""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from api.deps import client_info, require_role
from schemas.cms import (
    FormCreate,
    FormSubmissionCreate,
    FormUpdate,
    PageCreate,
    PageUpdate,
    ParserCreate,
    ParserUpdate,
    SettingUpsert,
)
from schemas.user import UserRecord
from services.audit import record_audit
from storage import Storage, get_storage

admin_router = APIRouter(prefix="/api/admin", tags=["cms"])
forms_router = APIRouter(prefix="/api/forms", tags=["cms"])
pages_router = APIRouter(prefix="/page", tags=["cms"])

MSG_PAGE_NOT_FOUND = "Page not found"
MSG_FORM_NOT_FOUND = "Form not found"
MSG_PARSER_NOT_FOUND = "Parser not found"

admin_only = require_role("admin")


async def _audit(storage: Storage, request: Request, admin: UserRecord, action: str, table: str, record_id: int):
    ip, agent = client_info(request)
    await record_audit(
        storage, action, user_id=admin.id, table_name=table, record_id=record_id, ip_address=ip, user_agent=agent
    )


# Pages


@admin_router.get("/pages")
async def list_pages(_: UserRecord = Depends(admin_only), storage: Storage = Depends(get_storage)):
    return [p.to_response() for p in await storage.get_all_pages()]


@admin_router.post("/pages", status_code=201)
async def create_page(
    body: PageCreate,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    if await storage.get_page_by_slug(body.slug):
        raise HTTPException(status_code=409, detail=f"A page with slug '{body.slug}' already exists")
    page = await storage.create_page(body)
    await _audit(storage, request, admin, "page.create", "pages", page.id)
    return page.to_response()


@admin_router.put("/pages/{page_id}")
async def update_page(
    page_id: int,
    body: PageUpdate,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    changes = body.model_dump(exclude_unset=True)
    if "slug" in changes:
        clash = await storage.get_page_by_slug(changes["slug"])
        if clash is not None and clash.id != page_id:
            raise HTTPException(status_code=409, detail=f"A page with slug '{changes['slug']}' already exists")
    page = await storage.update_page(page_id, changes)
    if page is None:
        raise HTTPException(status_code=404, detail=MSG_PAGE_NOT_FOUND)
    await _audit(storage, request, admin, "page.update", "pages", page.id)
    return page.to_response()


@admin_router.delete("/pages/{page_id}")
async def delete_page(
    page_id: int,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    if not await storage.delete_page(page_id):
        raise HTTPException(status_code=404, detail=MSG_PAGE_NOT_FOUND)
    await _audit(storage, request, admin, "page.delete", "pages", page_id)
    return {"message": "Page deleted"}


# Forms


@admin_router.get("/forms")
async def list_forms(_: UserRecord = Depends(admin_only), storage: Storage = Depends(get_storage)):
    return [f.to_response() for f in await storage.get_all_forms()]


@admin_router.post("/forms", status_code=201)
async def create_form(
    body: FormCreate,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    form = await storage.create_form(body)
    await _audit(storage, request, admin, "form.create", "forms", form.id)
    return form.to_response()


@admin_router.put("/forms/{form_id}")
async def update_form(
    form_id: int,
    body: FormUpdate,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    form = await storage.update_form(form_id, body.model_dump(exclude_unset=True))
    if form is None:
        raise HTTPException(status_code=404, detail=MSG_FORM_NOT_FOUND)
    await _audit(storage, request, admin, "form.update", "forms", form.id)
    return form.to_response()


@admin_router.delete("/forms/{form_id}")
async def delete_form(
    form_id: int,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    if not await storage.delete_form(form_id):
        raise HTTPException(status_code=404, detail=MSG_FORM_NOT_FOUND)
    await _audit(storage, request, admin, "form.delete", "forms", form_id)
    return {"message": "Form deleted"}


@admin_router.get("/forms/{form_id}/submissions")
async def list_form_submissions(
    form_id: int,
    _: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    return [s.to_response() for s in await storage.get_form_submissions(form_id)]


# Parsers


@admin_router.get("/parsers")
async def list_parsers(_: UserRecord = Depends(admin_only), storage: Storage = Depends(get_storage)):
    return [p.to_response() for p in await storage.get_all_parsers()]


@admin_router.post("/parsers", status_code=201)
async def create_parser(
    body: ParserCreate,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    parser = await storage.create_parser(body)
    await _audit(storage, request, admin, "parser.create", "parsers", parser.id)
    return parser.to_response()


@admin_router.put("/parsers/{parser_id}")
async def update_parser(
    parser_id: int,
    body: ParserUpdate,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    parser = await storage.update_parser(parser_id, body.model_dump(exclude_unset=True))
    if parser is None:
        raise HTTPException(status_code=404, detail=MSG_PARSER_NOT_FOUND)
    await _audit(storage, request, admin, "parser.update", "parsers", parser.id)
    return parser.to_response()


@admin_router.delete("/parsers/{parser_id}")
async def delete_parser(
    parser_id: int,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    if not await storage.delete_parser(parser_id):
        raise HTTPException(status_code=404, detail=MSG_PARSER_NOT_FOUND)
    await _audit(storage, request, admin, "parser.delete", "parsers", parser_id)
    return {"message": "Parser deleted"}


# Settings


@admin_router.get("/settings")
async def list_settings(_: UserRecord = Depends(admin_only), storage: Storage = Depends(get_storage)):
    return [s.to_response() for s in await storage.get_all_settings()]


@admin_router.put("/settings/{key}")
async def put_setting(
    key: str,
    body: SettingUpsert,
    request: Request,
    admin: UserRecord = Depends(admin_only),
    storage: Storage = Depends(get_storage),
):
    setting = await storage.upsert_setting(key, body)
    await _audit(storage, request, admin, "setting.upsert", "system_settings", setting.id)
    return setting.to_response()


# Public


@pages_router.get("/{slug}")
async def get_published_page(slug: str, storage: Storage = Depends(get_storage)):
    page = await storage.get_page_by_slug(slug)
    if page is None or not page.is_published:
        raise HTTPException(status_code=404, detail=MSG_PAGE_NOT_FOUND)
    return page.to_response()


@forms_router.get("/{name}")
async def get_form(name: str, storage: Storage = Depends(get_storage)):
    form = await storage.get_form_by_name(name)
    if form is None:
        raise HTTPException(status_code=404, detail=MSG_FORM_NOT_FOUND)
    return form.to_response()


@forms_router.post("/{name}/submit", status_code=201)
async def submit_form(
    name: str,
    request: Request,
    data: dict[str, Any] = Body(...),
    storage: Storage = Depends(get_storage),
):
    form = await storage.get_form_by_name(name)
    if form is None:
        raise HTTPException(status_code=404, detail=MSG_FORM_NOT_FOUND)
    required = [f["name"] for f in form.fields if f.get("required") and f.get("name")]
    missing = [field for field in required if data.get(field) in (None, "")]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")
    ip, agent = client_info(request)
    submission = await storage.create_form_submission(
        FormSubmissionCreate(form_id=form.id, data=data, ip_address=ip, user_agent=agent)
    )
    return {"message": "Form submitted", "id": submission.id}
