"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backoffice_service.db.engine import close_db, init_db
from backoffice_service.observability import configure_logging
from backoffice_service.rest.error_handlers import register_error_handlers
from backoffice_service.rest.routes.accounts import router as accounts_router
from backoffice_service.rest.routes.customers import router as customers_router
from backoffice_service.rest.routes.health import router as health_router
from backoffice_service.rest.routes.members import router as members_router
from backoffice_service.rest.routes.milestones import router as milestones_router
from backoffice_service.rest.routes.projects import router as projects_router
from backoffice_service.rest.routes.reports import router as reports_router
from backoffice_service.rest.routes.tasks import router as tasks_router
from backoffice_service.settings import settings

API_ROUTERS = (
    (accounts_router, "accounts"),
    (customers_router, "customers"),
    (projects_router, "projects"),
    (members_router, "members"),
    (milestones_router, "milestones"),
    (tasks_router, "tasks"),
    (reports_router, "reports"),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    yield
    await close_db()


async def bind_request_context(request: Request, call_next):
    """Give each request a clean structlog context carrying its method and path."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    return await call_next(request)


def create_app() -> FastAPI:
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Back Office API",
        description="Projects, customers, tasks, milestones and accounts",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(bind_request_context)
    register_error_handlers(app)

    # Public routes
    app.include_router(health_router, tags=["health"])

    # Admin-only routes; every handler declares the admin gate first
    for router, tag in API_ROUTERS:
        app.include_router(router, prefix="/api", tags=[tag])

    return app
