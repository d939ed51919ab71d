"""
Exception handlers that turn domain exceptions into structured JSON responses.

Every error response carries success=false and a machine-readable error code.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.constants.event_types import EVENT_UNHANDLED_ERROR
from app.core.exceptions import ConfigurationError, QuestionModelError, SubmissionValidationError
from app.middleware.correlation_id import get_correlation_id

logger = logging.getLogger(__name__)


def error_body(error: str, **extra) -> dict:
    return {"success": False, "error": error, **extra}


async def submission_validation_handler(request: Request, exc: SubmissionValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content=error_body("validation_error", fields=exc.fields))


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body("configuration_error", message=str(exc), fields=exc.fields),
    )


async def question_model_error_handler(request: Request, exc: QuestionModelError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content=error_body("question_model_error", message=str(exc), problems=exc.problems),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log, record a system event, return a generic envelope."""
    from app.db import session as db_session
    from app.services.system_event_service import error

    correlation_id = get_correlation_id(request)
    logger.exception(f"Unhandled error on {request.method} {request.url.path} (correlation_id={correlation_id})")

    db = db_session.SessionLocal()
    try:
        error(
            db,
            EVENT_UNHANDLED_ERROR,
            subdomain=request.query_params.get("subdomain"),
            payload={"path": request.url.path, "method": request.method},
            exc=exc,
            correlation_id=correlation_id,
        )
    finally:
        db.close()

    return JSONResponse(status_code=500, content=error_body("internal_error", correlation_id=correlation_id))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SubmissionValidationError, submission_validation_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(QuestionModelError, question_model_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
