"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.api.routes.events import router as events_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.ideas import router as ideas_router
from backend.app.api.routes.reports import router as reports_router
from backend.app.api.routes.users import router as users_router
from backend.app.core.errors import DomainError, normalize_validation_error
from backend.app.core.logging import (
    EVENT_APP_START,
    EVENT_CONFIG_LOADED,
    log_event,
    setup_logging,
)
from backend.app.core.settings import settings
from backend.app.db.engine import init_db
from backend.app.db.migrations import run_migrations

setup_logging(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    log_event(logger, "info", EVENT_APP_START, title=_app.title)
    log_event(logger, "info", EVENT_CONFIG_LOADED, **settings.safe_dump())
    init_db()
    run_migrations()
    if settings.score_recompute_enabled:
        from backend.app.core.scheduler import start_top_contributor_scheduler

        start_top_contributor_scheduler(settings.top_contributor_schedule)
    logger.info("IdeaHub API ready")
    yield
    if settings.score_recompute_enabled:
        from backend.app.core.scheduler import stop_top_contributor_scheduler

        stop_top_contributor_scheduler()
    logger.info("IdeaHub API shutting down")


app = FastAPI(
    title="IdeaHub API",
    version="0.1.0",
    description="Backend API for idea submission, engagement and top-contributor ranking.",
    lifespan=lifespan,
)


@app.exception_handler(DomainError)
async def domain_error_handler(_request: Request, exc: DomainError) -> JSONResponse:
    from backend.app.core.errors import normalize_domain_error

    error = normalize_domain_error(exc)
    return JSONResponse(
        status_code=error.http_status,
        content={
            "detail": error.user_message,
            "error_category": error.error_category,
            "retryable": error.retryable,
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    messages = [
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    error = normalize_validation_error(messages)
    return JSONResponse(
        status_code=error.http_status,
        content={
            "detail": error.user_message,
            "error_category": error.error_category,
            "retryable": error.retryable,
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: log details, return safe generic message."""
    from backend.app.core.errors import normalize_unknown_error

    error = normalize_unknown_error(exc, operation=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=error.http_status,
        content={"detail": error.user_message},
    )


app.include_router(health_router, tags=["health"])
app.include_router(users_router, tags=["users"])
app.include_router(ideas_router, tags=["ideas"])
app.include_router(reports_router, tags=["reports"])
app.include_router(events_router, tags=["events"])
