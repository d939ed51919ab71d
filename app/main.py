import logging

from fastapi import Depends, FastAPI
from sqlalchemy.orm import Session

from app.api.admin import router as admin_router
from app.api.analytics import router as analytics_router
from app.api.errors import register_exception_handlers
from app.api.public import router as public_router
from app.api.submissions import router as submissions_router
from app.core.config import settings
from app.db.deps import get_db
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)

app = FastAPI(title="Lead Form Orchestrator")

# Rate limit admin endpoints and the analytics beacon
app.add_middleware(
    RateLimitMiddleware,
    rate_limited_paths=["/admin", "/analytics"],
)
# Added last so it runs first and every response (429s included) carries the id
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Run startup checks and validation."""
    if not settings.database_url:
        raise RuntimeError("Missing required environment variable: DATABASE_URL")

    if settings.app_env == "production":
        production_errors = []

        if not settings.admin_api_key:
            production_errors.append(
                "ADMIN_API_KEY is required in production. "
                "Set ADMIN_API_KEY environment variable with a strong random key."
            )

        if production_errors:
            error_message = (
                "Production environment validation failed:\n\n"
                + "\n".join(f"  - {error}" for error in production_errors)
                + "\n\nThe application cannot start in production with these settings."
            )
            logger.error(error_message)
            raise RuntimeError(error_message)

    if not settings.spreadsheet_webhook_url:
        logger.warning(
            "SPREADSHEET_WEBHOOK_URL not set; tenants without their own webhook_url "
            "will get a configuration warning on every submission"
        )

    logger.info(
        "Startup: Configuration loaded - "
        f"Environment: {settings.app_env}, "
        f"Default subdomain: {settings.default_subdomain}, "
        f"Spreadsheet timeout: {settings.spreadsheet_timeout_seconds}s, "
        f"CRM timeout: {settings.crm_timeout_seconds}s"
    )


@app.get("/health")
def health():
    """
    Health check endpoint.

    Returns 200 immediately - used for basic health checks.
    """
    return {
        "ok": True,
        "environment": settings.app_env,
        "integrations": {
            "spreadsheet_default_configured": bool(settings.spreadsheet_webhook_url),
            "rate_limit_enabled": settings.rate_limit_enabled,
        },
    }


@app.get("/ready")
def ready(db: Session = Depends(get_db)):
    """
    Readiness check endpoint - verifies database connectivity.

    Returns 200 if database is accessible, 503 if not.
    """
    from sqlalchemy import text

    try:
        db.execute(text("SELECT 1"))
        return {"ok": True, "database": "connected"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        from fastapi import status
        from fastapi.responses import JSONResponse

        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "database": "disconnected", "error": str(e)},
        )


app.include_router(public_router, tags=["public"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(analytics_router, tags=["analytics"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
