"""Main FastAPI application for the taskpay API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from taskpay import __version__
from taskpay.api.rate_limit import limiter
from taskpay.api.v1.account import router as account_router
from taskpay.api.v1.admin import router as admin_router
from taskpay.api.v1.auth import router as auth_router
from taskpay.api.v1.referral import router as referral_router
from taskpay.api.v1.tasks import router as tasks_router
from taskpay.api.v1.withdrawals import router as withdrawals_router
from taskpay.errors import TaskpayError
from taskpay.logging_config import clear_context, configure_logging, get_logger
from taskpay.platform_settings import platform_settings
from taskpay.settings import settings
from taskpay.storage.db import db

logger = get_logger(__name__)

# HTTP status per domain error code; anything unlisted is a 400
ERROR_STATUS = {
    "not_assigned": 400,
    "already_completed": 409,
    "task_inactive": 404,
    "invalid_answer": 400,
    "threshold_not_met": 400,
    "insufficient_balance": 400,
    "user_not_found": 404,
    "email_taken": 409,
    "username_taken": 409,
    "invalid_referral_code": 400,
    "invalid_credentials": 401,
    "wrong_password": 400,
    "activation_required": 402,
    "below_minimum_withdrawal": 400,
    "invalid_phone_number": 400,
    "withdrawal_not_found": 404,
    "invalid_setting": 400,
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        # Log context bound while handling the previous request must not leak
        clear_context()
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    configure_logging()
    logger.info("app_starting", env=settings.env)

    db.create_tables()
    platform_settings.seed_defaults()
    logger.info("database_ready")

    yield

    # Shutdown
    logger.info("app_shutting_down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app
    """
    # Hide API docs in production
    is_production = settings.env == "production"

    app = FastAPI(
        title="Taskpay API",
        description="Daily micro-task rewards platform API",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    # Security Headers middleware (must be added before CORS)
    app.add_middleware(SecurityHeadersMiddleware)

    allowed_origins = [
        origin.strip()
        for origin in settings.allowed_origins.split(",")
        if origin.strip()
    ]

    # Block wildcard in production
    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        max_age=3600,
    )

    # Rate limiting (shared instance from rate_limit module)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": "Too many requests. Please try again later.", "code": "rate_limited"},
        )

    @app.exception_handler(TaskpayError)
    async def domain_error_handler(request: Request, exc: TaskpayError):
        status_code = ERROR_STATUS.get(exc.code, 400)
        logger.info("request_rejected", path=request.url.path, code=exc.code, status=status_code)
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message, "code": exc.code},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "code": "invalid_request"},
        )

    # Include v1 API routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(tasks_router, prefix="/api/v1")
    app.include_router(referral_router, prefix="/api/v1")
    app.include_router(account_router, prefix="/api/v1")
    app.include_router(withdrawals_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "env": settings.env,
        }

    @app.get("/")
    async def root():
        return {
            "name": "Taskpay API",
            "version": __version__,
            "docs": "/api/docs",
        }

    return app


# Create app instance
app = create_app()
