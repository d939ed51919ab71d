"""
Public form endpoints: settings/question model, per-field validation,
branch evaluation and the WhatsApp handoff link.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.dependencies import get_subdomain
from app.db.deps import get_db
from app.db.models import FormQuestion
from app.schemas.forms import (
    NextStepRequest,
    NextStepResponse,
    PublicFormResponse,
    PublicSettingsResponse,
    PublicSuccessPageResponse,
    QuestionResponse,
    ValidateFieldRequest,
    ValidateFieldResponse,
    WhatsAppLinkRequest,
    WhatsAppLinkResponse,
)
from app.services.forms import Advance, decision_to_dict, load_questions, next_step, validate_field
from app.services.forms.question_model import check_question_model
from app.services.tenant_settings import get_or_create_settings, list_variants
from app.services.whatsapp import resolve_whatsapp_link

logger = logging.getLogger(__name__)

router = APIRouter()


def _find_question(questions: list[FormQuestion], field_name: str) -> tuple[int, FormQuestion]:
    for index, question in enumerate(questions):
        if question.field_name == field_name:
            return index, question
    raise HTTPException(status_code=404, detail=f"Unknown field '{field_name}'")


@router.get("/public/settings", response_model=PublicFormResponse)
def get_public_settings(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
):
    """Public-safe settings, questions sorted by step, and success pages for a tenant."""
    tenant_settings = get_or_create_settings(db, subdomain)
    questions = load_questions(db, subdomain)
    problems = check_question_model(questions)
    if problems:
        logger.warning(f"Serving question model for '{subdomain}' with problems: {problems}")

    return PublicFormResponse(
        settings=PublicSettingsResponse.model_validate(tenant_settings),
        questions=[QuestionResponse.model_validate(q) for q in questions],
        successPages=[PublicSuccessPageResponse.model_validate(v) for v in list_variants(db, subdomain)],
    )


@router.post("/forms/validate-field", response_model=ValidateFieldResponse)
def validate_form_field(request: ValidateFieldRequest, db: Session = Depends(get_db)):
    subdomain = get_subdomain(request.subdomain)
    _, question = _find_question(load_questions(db, subdomain), request.field_name)
    result = validate_field(question, request.value)
    return ValidateFieldResponse(ok=result.ok, errors=result.errors)


@router.post("/forms/next-step", response_model=NextStepResponse)
def evaluate_next_step(request: NextStepRequest, db: Session = Depends(get_db)):
    """
    Evaluate the branch rules of the question just answered.

    target_step is always a step value: the next question's step for an
    advance, the configured step for a jump.
    """
    subdomain = get_subdomain(request.subdomain)
    questions = load_questions(db, subdomain)
    index, question = _find_question(questions, request.field_name)

    decision = next_step(question, request.value, index + 1, len(questions))
    body = decision_to_dict(decision)
    if isinstance(decision, Advance):
        body["target_step"] = questions[decision.target_step - 1].step
    return NextStepResponse(**body)


@router.post("/whatsapp/link", response_model=WhatsAppLinkResponse, response_model_exclude_none=True)
def get_whatsapp_link(request: WhatsAppLinkRequest, db: Session = Depends(get_db)):
    subdomain = get_subdomain(request.subdomain)
    url = resolve_whatsapp_link(db, subdomain, request.success_page_key, request.form_data)
    if url is None:
        return WhatsAppLinkResponse(enabled=False)
    return WhatsAppLinkResponse(enabled=True, url=url)
