"""
Design Studio Portal — API application

Creates the FastAPI app, wires middleware (request IDs, timing log,
security headers, /api/v1 prefix rewrite), uniform error handlers, the
rate limiter, background scheduler, and mounts every router.

Business Rules:
- Every response carries X-Request-ID (8 chars) and X-API-Version: v1
- /api/v1/... is an alias for /api/...
- Errors always use the ErrorResponse body {error, status_code, request_id, detail}
- Upstream failures (storage, Gmail, Stripe) surface as 502
- The scheduler does not start under TESTING or when scheduler_enabled is false

Called by: uvicorn (app.main:app)
Depends on: config, logging_config, rate_limit, scheduler, startup, routers/*
"""

import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import APP_VERSION, settings
from .http_client import close_clients
from .logging_config import setup_logging
from .rate_limit import limiter
from .schemas.responses import ErrorResponse, HealthResponse
from .scheduler import configure_scheduler, scheduler
from .services.email_service import EmailDeliveryError
from .services.payment_service import PaymentProviderError
from .startup import run_startup_migrations
from .utils.storage import StorageError

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-API-Version": "v1",
}


# ── Lifecycle ────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    run_startup_migrations()
    if settings.scheduler_enabled and not os.environ.get("TESTING"):
        configure_scheduler()
        scheduler.start()
        logger.info("Scheduler started with {} jobs", len(scheduler.get_jobs()))
    logger.info("Design Studio Portal v{} started", APP_VERSION)
    yield
    if scheduler.running:
        scheduler.shutdown(wait=False)
    await close_clients()


app = FastAPI(title="Design Studio Portal", version=APP_VERSION, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Middleware ───────────────────────────────────────────────────────


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag each request with a short ID, log its timing, add security headers."""
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id

    # /api/v1/... → /api/...
    path = request.scope["path"]
    if path.startswith("/api/v1/"):
        request.scope["path"] = "/api/" + path[len("/api/v1/"):]

    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        if request.url.path != "/health":
            logger.info(
                "{} {} → {} ({:.0f} ms)",
                request.method, request.scope["path"], response.status_code, elapsed_ms,
            )

    response.headers["X-Request-ID"] = request_id
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    return response


# ── Error Handlers ───────────────────────────────────────────────────


def _error_response(request: Request, status_code: int, message: str, detail: list | None = None):
    body = ErrorResponse(
        error=message,
        status_code=status_code,
        request_id=getattr(request.state, "request_id", ""),
        detail=detail,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = _error_response(request, exc.status_code, message)
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    first = errors[0]["msg"] if errors else "Invalid request"
    return _error_response(request, 422, f"Validation error: {first}", detail=errors)


@app.exception_handler(StorageError)
@app.exception_handler(EmailDeliveryError)
@app.exception_handler(PaymentProviderError)
async def upstream_exception_handler(request: Request, exc: Exception):
    logger.error("Upstream failure on {} {}: {}", request.method, request.url.path, exc)
    return _error_response(request, 502, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _error_response(request, 500, "Internal server error")


# ── Routes ───────────────────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok", "version": APP_VERSION}


from .routers.auth import router as auth_router  # noqa: E402
from .routers.departments import router as departments_router  # noqa: E402
from .routers.design_packages import router as design_packages_router  # noqa: E402
from .routers.designer_assignments import router as designer_assignments_router  # noqa: E402
from .routers.email_media import router as email_media_router  # noqa: E402
from .routers.email_templates import router as email_templates_router  # noqa: E402
from .routers.emails import router as emails_router  # noqa: E402
from .routers.error_reports import router as error_reports_router  # noqa: E402
from .routers.files import router as files_router  # noqa: E402
from .routers.jobs import router as jobs_router  # noqa: E402
from .routers.messages import router as messages_router  # noqa: E402
from .routers.payments import router as payments_router  # noqa: E402
from .routers.pricing import router as pricing_router  # noqa: E402
from .routers.surveys import router as surveys_router  # noqa: E402
from .routers.users import router as users_router  # noqa: E402
from .routers.vouchers import router as vouchers_router  # noqa: E402
from .routers.wordpress import router as wordpress_router  # noqa: E402

for _router in (
    auth_router,
    users_router,
    wordpress_router,
    departments_router,
    jobs_router,
    files_router,
    messages_router,
    email_templates_router,
    email_media_router,
    emails_router,
    vouchers_router,
    pricing_router,
    payments_router,
    design_packages_router,
    designer_assignments_router,
    surveys_router,
    error_reports_router,
):
    app.include_router(_router)
