import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.admin import router as admin_router
from api.applications import router as applications_router
from api.auth import router as auth_router
from api.cars import admin_router as admin_cars_router
from api.cars import router as cars_router
from api.cms import admin_router as cms_admin_router
from api.cms import forms_router, pages_router
from api.companies import admin_router as admin_companies_router
from api.companies import router as companies_router
from api.documents import router as documents_router
from api.notifications import router as notifications_router
from api.offers import router as offers_router
from config import settings
from database import AsyncSessionLocal, build_sessionmaker, init_db
from services.exceptions import WorkflowError
from storage import MemoryStorage, SqlStorage, Storage
from storage.seed import seed_demo_data
from utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def _prepare_sql(app: FastAPI, engine) -> None:
    await init_db(bind=engine)
    session_factory = build_sessionmaker(engine) if engine is not None else AsyncSessionLocal
    app.state.session_factory = session_factory
    if settings.seed_demo_data:
        async with session_factory() as session:
            await seed_demo_data(SqlStorage(session))
            await session.commit()


def create_app(storage: Optional[Storage] = None, engine=None) -> FastAPI:
    """
    Build the API. Pass `storage` to serve from that instance (tests use a MemoryStorage),
    or `engine` to serve from a specific database; otherwise settings decide.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if app.state.storage is None:
            if engine is None and settings.uses_memory_storage:
                app.state.storage = MemoryStorage()
                if settings.seed_demo_data:
                    await seed_demo_data(app.state.storage)
            else:
                await _prepare_sql(app, engine)
        logger.info("%s started (%s storage)", settings.app_name, "memory" if app.state.storage is not None else "sql")
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Leasing application marketplace: clients, leasing companies and admin review",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(request: Request, exc: WorkflowError):
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    app.include_router(auth_router)
    app.include_router(applications_router)
    app.include_router(offers_router)
    app.include_router(documents_router)
    app.include_router(notifications_router)
    app.include_router(companies_router)
    app.include_router(admin_companies_router)
    app.include_router(cars_router)
    app.include_router(admin_cars_router)
    app.include_router(admin_router)
    app.include_router(cms_admin_router)
    app.include_router(forms_router)
    app.include_router(pages_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
