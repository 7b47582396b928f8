"""ShowOps phase engine: FastAPI application entry point."""

import asyncio
import signal
import uuid
from contextlib import asynccontextmanager

# Logging first: structlog caches its processor chain the first time any
# module binds a logger, so this must run before the imports below.
from showops.core.config import get_settings as _startup_settings
from showops.core.logging import configure_structlog

_debug = _startup_settings().debug
configure_structlog(log_level="DEBUG" if _debug else "INFO", json_logs=not _debug)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from showops.api.deps import get_transition_scheduler, reset_transition_scheduler
from showops.api.routes import api_router
from showops.core.config import Settings, get_settings
from showops.core.exceptions import (
    CollaboratorUnavailableError,
    ConfigurationValidationError,
    InvalidReadinessCategoryError,
    ProjectNotFoundError,
    ShowOpsError,
)
from showops.db.base import close_db, init_db
from showops.db.redis import close_redis, init_redis
from showops.middleware.correlation import get_correlation_id, setup_correlation_middleware
from showops.services.transition_scheduler import SchedulerLoop

logger = structlog.get_logger(__name__)


def _start_scheduler_loop(settings: Settings) -> tuple[SchedulerLoop, asyncio.Task]:
    loop = SchedulerLoop(
        get_transition_scheduler(),
        interval_seconds=settings.scheduler_interval_minutes * 60,
        deadline=settings.scheduler_deadline_seconds,
    )
    task = asyncio.create_task(loop.run(), name="phase-transition-scheduler")
    logger.info("scheduler_loop_scheduled", interval_minutes=settings.scheduler_interval_minutes)
    return loop, task


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database (and Redis for the run lease), start the tick loop, tear down in reverse."""
    app.state.shutting_down = False

    def on_sigterm(signum, frame):
        # /health starts answering 503 so the balancer drains us
        app.state.shutting_down = True
        logger.info("sigterm_received", action="draining")

    signal.signal(signal.SIGTERM, on_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    if settings.scheduler_use_lease:
        await init_redis()
    logger.info("connections_ready", redis=settings.scheduler_use_lease)

    scheduler_loop = _start_scheduler_loop(settings) if settings.scheduler_enabled else None

    yield

    logger.info("shutdown_begin")
    if scheduler_loop is not None:
        loop, task = scheduler_loop
        loop.stop()
        await task
    reset_transition_scheduler()
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


def _error_response(
    request: Request, exc: Exception, status_code: int, event: str, body: dict, level: str = "warning"
) -> JSONResponse:
    """Log with a fresh debug_id and return ``body`` plus that id. No internals leave the server."""
    debug_id = str(uuid.uuid4())
    getattr(logger, level)(
        event,
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=status_code, content={**body, "debug_id": debug_id})


async def not_found_handler(request: Request, exc: ProjectNotFoundError) -> JSONResponse:
    return _error_response(request, exc, 404, "project_not_found", {"detail": str(exc)})


async def validation_error_handler(request: Request, exc: ConfigurationValidationError) -> JSONResponse:
    """422 listing every invalid field; nothing was written."""
    body = {"detail": "Invalid phase configuration", "errors": exc.errors}
    return _error_response(request, exc, 422, "configuration_invalid", body)


async def invalid_category_handler(request: Request, exc: InvalidReadinessCategoryError) -> JSONResponse:
    body = {"detail": str(exc), "errors": {"category": "unknown readiness category"}}
    return _error_response(request, exc, 422, "readiness_category_invalid", body)


async def unavailable_handler(request: Request, exc: CollaboratorUnavailableError) -> JSONResponse:
    body = {"detail": f"{exc.collaborator} temporarily unavailable, try again"}
    return _error_response(request, exc, 503, "collaborator_unavailable", body, level="error")


async def showops_error_handler(request: Request, exc: ShowOpsError) -> JSONResponse:
    return _error_response(request, exc, 400, "showops_error", {"detail": str(exc)})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc, exc.status_code, "http_exception", {"detail": exc.detail}, level="error")


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors: full traceback in the log, a generic 500 to the client."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "debug_id": debug_id})


# Starlette picks the handler for the closest class in the exception's MRO
EXCEPTION_HANDLERS = {
    ProjectNotFoundError: not_found_handler,
    ConfigurationValidationError: validation_error_handler,
    InvalidReadinessCategoryError: invalid_category_handler,
    CollaboratorUnavailableError: unavailable_handler,
    ShowOpsError: showops_error_handler,
    HTTPException: http_exception_handler,
    Exception: generic_exception_handler,
}


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Project phase lifecycle engine for production scheduling",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
        exception_handlers=EXCEPTION_HANDLERS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps CORS and tags every request
    setup_correlation_middleware(app)

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("showops.main:app", host="0.0.0.0", port=8000, reload=True)
