from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_core.core.deps import get_tenant_id
from catalog_core.core.errors import ConflictError, DomainError, NotFoundError, ValidationError
from catalog_core.core.logging import configure_logging, logging_context
from catalog_core.core.settings import get_app_settings
from catalog_core.db.run_migrations import main as run_alembic
from catalog_core.db.seed import seed_all
from catalog_core.schemas.common import ErrorInfo, ErrorResponse, MessageResponse, TenantEcho

# Routers
from catalog_core.api.routes.associations import router as associations_router
from catalog_core.api.routes.attachments import router as attachments_router
from catalog_core.api.routes.catalog import router as catalog_router
from catalog_core.api.routes.taxonomy import router as taxonomy_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness and readiness probes."},
    {"name": "Dropdowns", "description": "Dropdown categories and values (global or per tenant)."},
    {"name": "Associations", "description": "Many-to-many links between catalog records."},
    {"name": "Attachments", "description": "SEO metadata and custom fields of any entity."},
    {"name": "Catalog", "description": "Properties, blog and content records with tenant-unique slugs."},
]

DOMAIN_ERROR_STATUS = {
    ValidationError: 422,
    ConflictError: 409,
    NotFoundError: 404,
}

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with correlation_id and tenant_id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    tenant = request.headers.get("X-Tenant-ID")
    request.state.correlation_id = corr
    request.state.tenant_id = tenant

    with logging_context(correlation_id=corr, tenant_id=tenant):
        logger.info("Incoming request %s %s", request.method, request.url.path)
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    ts = datetime.now(tz=timezone.utc)
    corr = getattr(request.state, "correlation_id", None)
    tenant = getattr(request.state, "tenant_id", None)
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=corr,
        tenant_id=tenant,
        path=request.url.path,
        method=request.method,
        timestamp=ts,
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """
    Map domain errors raised by services onto HTTP statuses:
    validation -> 422, conflict -> 409, not found -> 404.
    """
    status_code = next(
        (code for cls, code in DOMAIN_ERROR_STATUS.items() if isinstance(exc, cls)),
        400,
    )
    logger.info("Domain error %s: %s", exc.error_type, exc.message)
    return _build_error_response(
        request=request,
        status_code=status_code,
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=jsonable_errors(exc),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation error list without the raw exception objects pydantic may attach under 'ctx'."""
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    with logging_context(
        correlation_id=getattr(request.state, "correlation_id", None),
        tenant_id=getattr(request.state, "tenant_id", None),
    ):
        logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    This ensures the database schema is up to date. Seeding is opt-in via settings.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py drives its own event loop, so alembic runs off the server loop
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)
            # Do not crash the app in case of transient DB issues; rely on retries or later readiness probes.

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health/tenant",
    response_model=TenantEcho,
    summary="Tenant Health Echo",
    description="Echoes the tenant context to verify header handling.",
    tags=["Health"],
)
async def tenant_health_echo(tenant_id=Depends(get_tenant_id)) -> TenantEcho:
    """Echo the X-Tenant-ID header back as a parsed UUID."""
    return TenantEcho(tenant_id=tenant_id)


api_v1.include_router(taxonomy_router)
api_v1.include_router(associations_router)
api_v1.include_router(attachments_router)
api_v1.include_router(catalog_router)

# Attach api_v1 to app
app.include_router(api_v1)
