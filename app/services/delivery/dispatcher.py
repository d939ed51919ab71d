"""
Lead delivery dispatcher.

One call per submission. Every step is fault-isolated and produces a
DeliveryOutcome; the overall result is decided by an aggregation policy:

- exclusive_policy: an active CRM in exclusive mode replaces local persistence
  and the spreadsheet. The CRM outcome alone decides success.
- parallel_policy: lead record + spreadsheet (+ optional best-effort CRM).
  Delivery failures are warnings while the lead is durable somewhere; the
  result is an error only when nothing was stored or delivered.

A submission whose branch trace ends on a suppressing variant returns success
without persisting or delivering anything.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.constants.delivery import (
    CHANNEL_DATABASE,
    CHANNEL_SPREADSHEET,
    CRM_STATUS_ERROR,
    CRM_STATUS_NOT_CONFIGURED,
    CRM_STATUS_SENT,
)
from app.constants.event_types import (
    EVENT_CRM_DELIVERY_FAILURE,
    EVENT_CRM_EXCLUSIVE_FAILURE,
    EVENT_LEAD_PERSIST_FAILURE,
    EVENT_QUESTION_MODEL_INVALID,
    EVENT_SPREADSHEET_DELIVERY_FAILURE,
    EVENT_SPREADSHEET_NOT_CONFIGURED,
    EVENT_SPREADSHEET_RATE_LIMITED,
    EVENT_SUBMISSION_REJECTED,
    EVENT_SUBMISSION_STEP_FAILURE,
    EVENT_SUBMISSION_SUPPRESSED,
)
from app.constants.forms import DEFAULT_VARIANT, EVENT_FORM_COMPLETED
from app.core.config import settings
from app.core.exceptions import SubmissionValidationError
from app.db.helpers import commit_and_refresh
from app.db.models import CrmIntegration, LeadRecord
from app.services import system_event_service
from app.services.analytics.form_events import record_form_event
from app.services.delivery.crm import build_crm_payload, deliver_to_crm
from app.services.delivery.crm_config import get_active_crm_integration
from app.services.delivery.outcomes import DeliveryOutcome
from app.services.delivery.payload import extract_fixed_fields, prepare_submission
from app.services.delivery.spreadsheet import (
    build_spreadsheet_payload,
    deliver_to_spreadsheet,
    resolve_spreadsheet_url,
)
from app.services.forms.question_model import (
    FlowResolution,
    check_question_model,
    load_questions,
    resolve_active_sequence,
)
from app.services.tenant_settings import DEFAULT_SETTINGS, get_or_create_settings, get_settings
from app.services.whatsapp.links import resolve_whatsapp_link
from app.services.whatsapp.rotation import Allocation, allocate

logger = logging.getLogger(__name__)

MESSAGE_SAVED_AND_SENT = "Dados salvos e enviados"
MESSAGE_SAVED_CONFIGURE_WEBHOOK = "Dados salvos. Configure o webhook da planilha"
MESSAGE_SAVED_WEBHOOK_ERROR = "Dados salvos, mas houve erro no envio para a planilha"
MESSAGE_SENT_NOT_SAVED = "Dados enviados para a planilha, mas não foram salvos"
MESSAGE_NOT_DELIVERED = "Não foi possível salvar nem enviar os dados"
MESSAGE_SENT_TO_CRM = "Dados enviados ao CRM"
MESSAGE_CRM_FAILED = "Erro ao enviar dados ao CRM"
MESSAGE_SUPPRESSED = "Obrigado pelo interesse"


@dataclass
class SubmissionResult:
    success: bool
    message: str
    warnings: list[str] = field(default_factory=list)
    database_id: int | None = None
    agent: dict | None = None
    whatsapp_url: str | None = None
    crm_status: str = CRM_STATUS_NOT_CONFIGURED
    error: str | None = None
    success_variant: str = DEFAULT_VARIANT
    suppressed: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PolicyVerdict:
    success: bool
    message: str
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    crm_status: str = CRM_STATUS_NOT_CONFIGURED


def crm_status_for(outcome: DeliveryOutcome | None) -> str:
    if outcome is None or not outcome.configured:
        return CRM_STATUS_NOT_CONFIGURED
    return CRM_STATUS_SENT if outcome.ok else CRM_STATUS_ERROR


def _spreadsheet_warning(outcome: DeliveryOutcome) -> str | None:
    if outcome.ok:
        return None
    if not outcome.configured:
        return "Webhook da planilha não configurado (webhook_url ou SPREADSHEET_WEBHOOK_URL)"
    if outcome.rate_limited:
        return "Planilha recusou o envio por excesso de solicitações"
    return f"Erro ao enviar para planilha ({outcome.detail})"


def exclusive_policy(crm: DeliveryOutcome) -> PolicyVerdict:
    """CRM-exclusive mode: no fallback channel, so a CRM failure is an error."""
    if crm.ok:
        return PolicyVerdict(success=True, message=MESSAGE_SENT_TO_CRM, crm_status=CRM_STATUS_SENT)
    return PolicyVerdict(
        success=False,
        message=MESSAGE_CRM_FAILED,
        error=f"CRM delivery failed: {crm.detail}",
        crm_status=crm_status_for(crm),
    )


def parallel_policy(
    persistence: DeliveryOutcome,
    spreadsheet: DeliveryOutcome,
    crm: DeliveryOutcome | None = None,
) -> PolicyVerdict:
    """
    Normal mode: success while the lead is durable in at least one place.

    The CRM outcome (parallel mode) is reported through crm_status and a
    warning but never changes success.
    """
    warnings = []
    if not persistence.ok:
        warnings.append("Lead não foi salvo no banco de dados")
    spreadsheet_warning = _spreadsheet_warning(spreadsheet)
    if spreadsheet_warning:
        warnings.append(spreadsheet_warning)
    if crm is not None and crm.configured and not crm.ok:
        warnings.append(f"Erro ao enviar para o CRM ({crm.detail})")

    crm_status = crm_status_for(crm)

    if not persistence.ok and not spreadsheet.ok:
        return PolicyVerdict(
            success=False,
            message=MESSAGE_NOT_DELIVERED,
            warnings=warnings,
            error="Lead could not be persisted and spreadsheet delivery did not succeed",
            crm_status=crm_status,
        )

    if not persistence.ok:
        message = MESSAGE_SENT_NOT_SAVED
    elif spreadsheet.ok:
        message = MESSAGE_SAVED_AND_SENT
    elif not spreadsheet.configured:
        message = MESSAGE_SAVED_CONFIGURE_WEBHOOK
    else:
        message = MESSAGE_SAVED_WEBHOOK_ERROR
    return PolicyVerdict(success=True, message=message, warnings=warnings, crm_status=crm_status)


def _agent_dict(allocation: Allocation) -> dict | None:
    if allocation.agent is None:
        return None
    return {
        "phone_number": allocation.agent.phone_number,
        "display_name": allocation.agent.display_name,
        "position": allocation.agent.position,
    }


def _step_failed(db: Session, subdomain: str, step: str, exc: Exception) -> None:
    """Roll back a failed storage step and record it; the submission continues with fallbacks."""
    db.rollback()
    logger.warning(f"Submission step '{step}' failed for '{subdomain}', continuing with fallback: {exc}")
    system_event_service.warn(
        db, EVENT_SUBMISSION_STEP_FAILURE, subdomain=subdomain, payload={"step": step}, exc=exc
    )


def _lookup_form_name(db: Session, subdomain: str) -> str:
    # Read-only: a rejected submission must not create the tenant's settings row
    try:
        existing = get_settings(db, subdomain)
    except SQLAlchemyError as e:
        _step_failed(db, subdomain, "settings_lookup", e)
        return subdomain
    return (existing.form_name if existing else None) or subdomain


def _load_delivery_settings(db: Session, subdomain: str) -> tuple[bool, str | None]:
    """Tenant WhatsApp flag and spreadsheet URL; defaults when settings cannot be loaded."""
    try:
        tenant_settings = get_or_create_settings(db, subdomain)
    except SQLAlchemyError as e:
        _step_failed(db, subdomain, "settings", e)
        return DEFAULT_SETTINGS["whatsapp_enabled"], None
    return tenant_settings.whatsapp_enabled, tenant_settings.webhook_url


def _load_crm_integration(db: Session, subdomain: str) -> CrmIntegration | None:
    try:
        return get_active_crm_integration(db, subdomain)
    except SQLAlchemyError as e:
        _step_failed(db, subdomain, "crm_lookup", e)
        return None


def _allocate_agent(db: Session, subdomain: str) -> Allocation:
    """Next rotation agent; on a storage error the tenant's fixed number is used instead."""
    try:
        return allocate(db, subdomain)
    except SQLAlchemyError as e:
        _step_failed(db, subdomain, "whatsapp_rotation", e)
        return Allocation()


def _resolve_flow(db: Session, subdomain: str, trace: dict[str, Any]) -> FlowResolution:
    try:
        questions = load_questions(db, subdomain)
    except SQLAlchemyError as e:
        # Without the question model the trace is delivered under the default variant
        _step_failed(db, subdomain, "flow_resolution", e)
        return FlowResolution()
    problems = check_question_model(questions)
    if problems:
        logger.warning(f"Resolving flow for '{subdomain}' despite model problems: {problems}")
        system_event_service.warn(
            db, EVENT_QUESTION_MODEL_INVALID, subdomain=subdomain, payload={"problems": problems}
        )
    return resolve_active_sequence(questions, trace)


def _persist_lead(
    db: Session,
    subdomain: str,
    trace: dict[str, Any],
    variant: str,
    allocation: Allocation,
) -> tuple[DeliveryOutcome, int | None]:
    fixed = extract_fixed_fields(trace)
    record = LeadRecord(
        subdomain=subdomain,
        nome=fixed.nome,
        telefone=fixed.telefone,
        has_email=fixed.has_email,
        dados_json=trace,
        form_version=settings.form_version,
        success_variant=variant,
        whatsapp_agent_number=allocation.agent.phone_number if allocation.agent else None,
        whatsapp_agent_name=allocation.agent.display_name if allocation.agent else None,
    )
    try:
        db.add(record)
        commit_and_refresh(db, record)
    except (SQLAlchemyError, OverflowError) as e:
        # OverflowError comes straight from the driver when binding out-of-range integers
        db.rollback()
        logger.error(f"Failed to persist lead for '{subdomain}': {e}")
        system_event_service.error(db, EVENT_LEAD_PERSIST_FAILURE, subdomain=subdomain, exc=e)
        return DeliveryOutcome.failed(CHANNEL_DATABASE, f"persistence error: {type(e).__name__}"), None

    logger.info(f"Saved lead {record.id} for '{subdomain}'")
    return DeliveryOutcome(channel=CHANNEL_DATABASE, ok=True), record.id


async def _send_spreadsheet(
    db: Session, subdomain: str, webhook_url: str | None, trace: dict[str, Any], lead_id: int | None
) -> DeliveryOutcome:
    url = resolve_spreadsheet_url(webhook_url)
    if not url:
        logger.warning(f"No spreadsheet webhook configured for '{subdomain}'")
        system_event_service.warn(db, EVENT_SPREADSHEET_NOT_CONFIGURED, subdomain=subdomain, lead_record_id=lead_id)
        return DeliveryOutcome.not_configured(CHANNEL_SPREADSHEET)
    return await deliver_to_spreadsheet(url, build_spreadsheet_payload(trace))


async def _send_parallel_crm(integration: CrmIntegration | None, trace: dict[str, Any]) -> DeliveryOutcome | None:
    if integration is None:
        return None
    return await deliver_to_crm(integration, build_crm_payload(integration, trace))


def _record_delivery_failures(
    db: Session,
    subdomain: str,
    lead_id: int | None,
    spreadsheet: DeliveryOutcome,
    crm: DeliveryOutcome | None,
) -> None:
    if spreadsheet.configured and not spreadsheet.ok:
        event_type = EVENT_SPREADSHEET_RATE_LIMITED if spreadsheet.rate_limited else EVENT_SPREADSHEET_DELIVERY_FAILURE
        system_event_service.warn(
            db,
            event_type,
            subdomain=subdomain,
            lead_record_id=lead_id,
            payload={"detail": spreadsheet.detail, "status_code": spreadsheet.status_code},
        )
    if crm is not None and crm.configured and not crm.ok:
        system_event_service.warn(
            db,
            EVENT_CRM_DELIVERY_FAILURE,
            subdomain=subdomain,
            lead_record_id=lead_id,
            payload={"detail": crm.detail, "status_code": crm.status_code},
        )


async def _submit_exclusive(
    db: Session, subdomain: str, integration: CrmIntegration, trace: dict[str, Any]
) -> tuple[PolicyVerdict, Allocation, int | None]:
    payload = build_crm_payload(integration, trace)
    outcome = await deliver_to_crm(integration, payload)
    if not outcome.ok:
        # No local record in exclusive mode; keep the lead recoverable from the event log
        system_event_service.error(
            db,
            EVENT_CRM_EXCLUSIVE_FAILURE,
            subdomain=subdomain,
            payload={"detail": outcome.detail, "status_code": outcome.status_code, "lead": payload},
        )
    return exclusive_policy(outcome), Allocation(), None


async def _submit_normal(
    db: Session,
    subdomain: str,
    whatsapp_enabled: bool,
    webhook_url: str | None,
    integration: CrmIntegration | None,
    trace: dict[str, Any],
    variant: str,
) -> tuple[PolicyVerdict, Allocation, int | None]:
    allocation = _allocate_agent(db, subdomain) if whatsapp_enabled else Allocation()
    persistence, lead_id = _persist_lead(db, subdomain, trace, variant, allocation)

    spreadsheet, crm = await asyncio.gather(
        _send_spreadsheet(db, subdomain, webhook_url, trace, lead_id),
        _send_parallel_crm(integration, trace),
    )
    _record_delivery_failures(db, subdomain, lead_id, spreadsheet, crm)
    return parallel_policy(persistence, spreadsheet, crm), allocation, lead_id


def _record_completion(db: Session, subdomain: str, trace: dict[str, Any]) -> None:
    session_id = trace.get("session_id")
    if not session_id:
        return
    try:
        record_form_event(db, str(session_id), subdomain, EVENT_FORM_COMPLETED)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not record form_completed for session {session_id}: {e}")


async def submit(db: Session, subdomain: str, raw_payload: Any) -> SubmissionResult:
    """
    Validate, persist and deliver one lead submission.

    Args:
        db: Database session
        subdomain: Tenant key
        raw_payload: Request body (flat trace, or nested under data/body/payload/formData)

    Returns:
        SubmissionResult (see parallel_policy / exclusive_policy for success rules)

    Raises:
        SubmissionValidationError: Payload violates the size/type limits (nothing was stored)
    """
    try:
        trace = prepare_submission(
            raw_payload,
            form_name=_lookup_form_name(db, subdomain),
            origem=settings.spreadsheet_origem,
        )
    except SubmissionValidationError as e:
        logger.info(f"Rejected submission for '{subdomain}': {sorted(e.fields)}")
        system_event_service.warn(
            db, EVENT_SUBMISSION_REJECTED, subdomain=subdomain, payload={"fields": e.fields}
        )
        raise

    resolution = _resolve_flow(db, subdomain, trace)
    variant = resolution.variant

    if resolution.suppress_submission:
        logger.info(f"Submission for '{subdomain}' suppressed by variant '{variant}'")
        system_event_service.info(
            db, EVENT_SUBMISSION_SUPPRESSED, subdomain=subdomain, payload={"variant": variant}
        )
        return SubmissionResult(
            success=True,
            message=MESSAGE_SUPPRESSED,
            success_variant=variant,
            suppressed=True,
        )

    whatsapp_enabled, webhook_url = _load_delivery_settings(db, subdomain)
    integration = _load_crm_integration(db, subdomain)
    if integration is not None and integration.exclusive_mode:
        verdict, allocation, lead_id = await _submit_exclusive(db, subdomain, integration, trace)
    else:
        verdict, allocation, lead_id = await _submit_normal(
            db,
            subdomain,
            whatsapp_enabled,
            webhook_url,
            integration,
            trace,
            variant,
        )

    whatsapp_url = None
    if verdict.success:
        agent_number = allocation.agent.phone_number if allocation.agent else None
        try:
            whatsapp_url = resolve_whatsapp_link(db, subdomain, variant, trace, agent_number=agent_number)
        except SQLAlchemyError as e:
            _step_failed(db, subdomain, "whatsapp_link", e)
        _record_completion(db, subdomain, trace)

    return SubmissionResult(
        success=verdict.success,
        message=verdict.message,
        warnings=verdict.warnings,
        database_id=lead_id,
        agent=_agent_dict(allocation),
        whatsapp_url=whatsapp_url,
        crm_status=verdict.crm_status,
        error=verdict.error,
        success_variant=variant,
    )
