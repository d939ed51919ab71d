"""
Lead submission endpoint.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import get_subdomain, read_json_body
from app.core.exceptions import SubmissionValidationError
from app.db.deps import get_db
from app.schemas.forms import SubmissionResponse
from app.services.delivery import submit

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/submissions", response_model=SubmissionResponse)
async def create_submission(
    subdomain: str = Depends(get_subdomain),
    body: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
):
    """
    Submit a completed form.

    Always answers 200 with the aggregate result (success may be false in
    CRM-exclusive mode or when nothing could be stored). Payload limit
    violations answer 422 {success: false, error: "validation_error", fields}.
    """
    if not isinstance(body, dict):
        raise SubmissionValidationError({"body": "Must be a JSON object"})

    result = await submit(db, subdomain, body)
    logger.info(
        f"Submission for '{subdomain}': success={result.success} suppressed={result.suppressed} "
        f"crm_status={result.crm_status} warnings={len(result.warnings)}"
    )
    return result.to_dict()
