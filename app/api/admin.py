import logging

from fastapi import APIRouter, Depends, HTTPException, Security
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.api.auth import get_admin_auth
from app.api.dependencies import get_subdomain
from app.db.deps import get_db
from app.db.models import CrmIntegration, LeadRecord, SystemEvent
from app.schemas.admin import (
    CleanupEventsResponse,
    CrmIntegrationRequest,
    CrmIntegrationResponse,
    CrmTestResponse,
    LeadRecordResponse,
    MoveQuestionRequest,
    QuestionUpsertRequest,
    QueueEntryResponse,
    QueueReplaceRequest,
    QueueStatusResponse,
    ReportResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    SuccessVariantRequest,
    SuccessVariantResponse,
)
from app.schemas.forms import QuestionResponse
from app.services.analytics import get_event_counts
from app.services.delivery.crm_config import get_crm_integration, send_test_lead, upsert_crm_integration
from app.services.forms import resolve_questions, swap_adjacent_steps
from app.services.forms.question_admin import delete_question, save_question
from app.services.system_event_service import cleanup_old_events
from app.services.tenant_settings import (
    get_or_create_settings,
    list_variants,
    update_settings,
    upsert_variant,
)
from app.services.whatsapp.queue_admin import queue_status, replace_queue

logger = logging.getLogger(__name__)

router = APIRouter()


def _crm_response(integration: CrmIntegration) -> CrmIntegrationResponse:
    return CrmIntegrationResponse(
        crm_name=integration.crm_name,
        webhook_url=integration.webhook_url,
        has_bearer_token=bool(integration.bearer_token),
        manager_id=integration.manager_id,
        slug=integration.slug,
        is_active=integration.is_active,
        include_dynamic_fields=integration.include_dynamic_fields,
        exclusive_mode=integration.exclusive_mode,
        include_utm_params=integration.include_utm_params,
        origem=integration.origem,
        campanha=integration.campanha,
        produto=integration.produto,
    )


# ---- Settings & success pages ----


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    return get_or_create_settings(db, subdomain)


@router.put("/settings", response_model=SettingsResponse)
def put_settings(
    request: SettingsUpdateRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Partial update; only fields present in the body change."""
    return update_settings(db, subdomain, request.model_dump(exclude_unset=True))


@router.get("/success-pages", response_model=list[SuccessVariantResponse])
def get_success_pages(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    return list_variants(db, subdomain)


@router.put("/success-pages/{page_key}", response_model=SuccessVariantResponse)
def put_success_page(
    page_key: str,
    request: SuccessVariantRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    if page_key == "default":
        raise HTTPException(status_code=400, detail="'default' is the tenant settings copy; edit /admin/settings")
    return upsert_variant(db, subdomain, page_key, request.model_dump(exclude_unset=True))


# ---- Questions ----


@router.get("/questions", response_model=list[QuestionResponse])
def get_questions(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Questions in step order. 409 with the problems when steps or field names are duplicated."""
    return resolve_questions(db, subdomain)


@router.post("/questions", response_model=QuestionResponse, status_code=201)
def create_question(
    request: QuestionUpsertRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    return save_question(db, subdomain, request.model_dump())


@router.put("/questions/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: int,
    request: QuestionUpsertRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    return save_question(db, subdomain, request.model_dump(), question_id=question_id)


@router.delete("/questions/{question_id}")
def remove_question(
    question_id: int,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    if not delete_question(db, subdomain, question_id):
        raise HTTPException(status_code=404, detail="Question not found")
    return {"deleted": True, "id": question_id}


@router.post("/questions/{question_id}/move", response_model=list[QuestionResponse])
def move_question(
    question_id: int,
    request: MoveQuestionRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Swap the question with its neighbour; returns the reordered list."""
    return swap_adjacent_steps(db, subdomain, question_id, request.direction)


# ---- WhatsApp queue ----


@router.get("/whatsapp-queue", response_model=QueueStatusResponse)
def get_whatsapp_queue(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    return queue_status(db, subdomain)


@router.put("/whatsapp-queue", response_model=list[QueueEntryResponse])
def put_whatsapp_queue(
    request: QueueReplaceRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Replace the whole queue (max 5 agents); positions follow list order."""
    return replace_queue(db, subdomain, [entry.model_dump() for entry in request.entries])


# ---- CRM integration ----


@router.get("/crm", response_model=CrmIntegrationResponse)
def get_crm(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    integration = get_crm_integration(db, subdomain)
    if integration is None:
        raise HTTPException(status_code=404, detail="No CRM integration configured")
    return _crm_response(integration)


@router.put("/crm", response_model=CrmIntegrationResponse)
def put_crm(
    request: CrmIntegrationRequest,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    integration = upsert_crm_integration(db, subdomain, request.model_dump(exclude_unset=True))
    return _crm_response(integration)


@router.post("/crm/test", response_model=CrmTestResponse)
async def test_crm(
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Send a sample lead flagged _teste to the CRM webhook."""
    outcome = await send_test_lead(db, subdomain)
    return CrmTestResponse(success=outcome.ok, status_code=outcome.status_code, detail=outcome.detail)


# ---- Leads, report, events ----


@router.get("/leads", response_model=list[LeadRecordResponse])
def list_leads(
    limit: int = 100,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Most recent lead records first (limit clamped to [0, 500])."""
    stmt = (
        select(LeadRecord)
        .where(LeadRecord.subdomain == subdomain)
        .order_by(desc(LeadRecord.submitted_at), desc(LeadRecord.id))
        .limit(max(0, min(limit, 500)))
    )
    return db.execute(stmt).scalars().all()


@router.get("/report", response_model=ReportResponse)
def get_report(
    days: int = 30,
    subdomain: str = Depends(get_subdomain),
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Raw event counts and lead count for the last `days` days."""
    return get_event_counts(db, subdomain, days=max(1, days))


@router.get("/events")
def get_events(
    limit: int = 100,
    level: str | None = None,
    subdomain: str | None = None,
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """
    System events, newest first.

    Args:
        limit: Maximum number of events (default 100, max 1000)
        level: Optional INFO / WARN / ERROR filter
        subdomain: Optional tenant filter
    """
    stmt = select(SystemEvent).order_by(desc(SystemEvent.created_at), desc(SystemEvent.id))
    if level:
        stmt = stmt.where(SystemEvent.level == level.upper())
    if subdomain:
        stmt = stmt.where(SystemEvent.subdomain == subdomain)
    events = db.execute(stmt.limit(min(limit, 1000))).scalars().all()

    return [
        {
            "id": event.id,
            "created_at": event.created_at.isoformat() if event.created_at else None,
            "level": event.level,
            "event_type": event.event_type,
            "subdomain": event.subdomain,
            "lead_record_id": event.lead_record_id,
            "payload": event.payload,
        }
        for event in events
    ]


@router.post("/events/retention-cleanup", response_model=CleanupEventsResponse)
def cleanup_system_events_retention(
    retention_days: int = 90,
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """Delete SystemEvents older than retention_days (default 90)."""
    deleted = cleanup_old_events(db, retention_days=retention_days)
    return {"deleted": deleted, "retention_days": retention_days}
