"""
Analytics endpoints: partial-progress beacon and form events.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.dependencies import get_subdomain, read_json_body
from app.constants.forms import FORM_EVENT_TYPES
from app.db.deps import get_db
from app.schemas.forms import FormEventRequest, PartialProgressRequest
from app.services.analytics import record_form_event, record_partial

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analytics/partial")
def save_partial_progress(
    body: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
):
    """
    Beacon endpoint (navigator.sendBeacon on page unload).

    The body is parsed as JSON whatever its Content-Type. Missing sessionId -> 400.
    """
    try:
        request = PartialProgressRequest.model_validate(body if isinstance(body, dict) else {})
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": e.errors()[0]["msg"]})

    if not request.session_id:
        logger.info("Partial progress beacon without sessionId")
        return JSONResponse(status_code=400, content={"success": False, "error": "sessionId is required"})

    subdomain = get_subdomain(request.subdomain)
    record_partial(db, request.session_id, subdomain, request.step_reached, request.partial_data)
    return {"success": True}


@router.post("/analytics/events")
def create_form_event(request: FormEventRequest, db: Session = Depends(get_db)):
    if request.event_type not in FORM_EVENT_TYPES:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"eventType must be one of {sorted(FORM_EVENT_TYPES)}"},
        )
    subdomain = get_subdomain(request.subdomain)
    event = record_form_event(db, request.session_id, subdomain, request.event_type, request.step_reached)
    return {"success": True, "id": event.id}
