"""FastAPI application factory for the tenant access service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi.errors import RateLimitExceeded

from src.config import settings
from src.database.engine import engine
from src.exceptions import AppException, CallerContractError, RoutePending, RouteRedirect
from src.middleware.rate_limit import limiter
from src.modules.tenancy.directory import TenantDirectoryClient
from src.modules.tenancy.sessions import TenantSessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle: close tenant sessions and the engine on shutdown."""
    yield
    await app.state.tenant_sessions.close()
    await engine.dispose()


def _get_request_id(request: Request) -> str:
    """Retrieve the request ID stored by RequestIdMiddleware."""
    return getattr(request.state, "request_id", "unknown")


def _error_response(status_code: int, code: str, message: str, request_id: str, details: list | None = None) -> JSONResponse:
    """Build a structured error JSONResponse."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or [],
                "requestId": request_id,
            }
        },
    )


def create_app(directory: TenantDirectoryClient | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Args:
        directory: Tenant directory client; defaults to one built from settings.
    """
    logging.getLogger("src").setLevel(settings.log_level.upper())

    application = FastAPI(
        title="Compass Tenant Access API",
        description="Tenant resolution and role-scoped access control for the production-management platform.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Rate limiter
    application.state.limiter = limiter

    # One resolver per client session, owned by this application instance
    application.state.tenant_sessions = TenantSessionRegistry(
        directory or TenantDirectoryClient(),
        idle_seconds=settings.tenant_session_idle_seconds,
        max_sessions=settings.tenant_session_max,
    )

    # --- Middleware (last added = outermost in Starlette) ---

    # Host mode + tenant session binding
    from src.modules.tenancy.middleware import TenantContextMiddleware

    application.add_middleware(TenantContextMiddleware)

    # CORS, configured via CORS_ORIGINS env var, never wildcard with credentials
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID, registered last so it runs first (outermost)
    from src.middleware.request_id import RequestIdMiddleware

    application.add_middleware(RequestIdMiddleware)

    # --- Routers ---
    from src.api.v1 import v1_router
    from src.modules.tenancy.landing import router as landing_router

    application.include_router(v1_router)
    application.include_router(landing_router)

    # --- Exception Handlers ---

    @application.exception_handler(RouteRedirect)
    async def redirect_handler(request: Request, exc: RouteRedirect) -> Response:
        return RedirectResponse(exc.location, status_code=exc.status_code)

    @application.exception_handler(RoutePending)
    async def pending_handler(request: Request, exc: RoutePending) -> Response:
        return Response(status_code=exc.status_code)

    @application.exception_handler(CallerContractError)
    async def caller_contract_handler(request: Request, exc: CallerContractError) -> JSONResponse:
        logger.error("Caller contract violation on %s: %s", request.url.path, exc.message)
        message = exc.message if settings.is_development else "An unexpected error occurred."
        return _error_response(
            status_code=exc.status_code,
            code=exc.code if settings.is_development else "INTERNAL_ERROR",
            message=message,
            request_id=_get_request_id(request),
        )

    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return _error_response(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            request_id=_get_request_id(request),
            details=exc.details,
        )

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"field": ".".join(str(loc) for loc in err.get("loc", [])), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error_response(
            status_code=422,
            code="VALIDATION_ERROR",
            message="Validation failed",
            request_id=_get_request_id(request),
            details=details,
        )

    @application.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return _error_response(
            status_code=429,
            code="RATE_LIMITED",
            message=str(exc.detail),
            request_id=_get_request_id(request),
        )

    @application.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return _error_response(
            status_code=500,
            code="INTERNAL_ERROR",
            message="An unexpected error occurred.",
            request_id=_get_request_id(request),
        )

    # Health check
    @application.get("/health")
    async def health_check() -> dict:
        return {"status": "ok"}

    return application


app = create_app()
