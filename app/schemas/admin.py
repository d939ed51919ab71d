"""
Admin API request/response schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SettingsUpdateRequest(BaseModel):
    """Partial update of tenant settings; omitted fields are left unchanged."""

    form_name: str | None = None
    whatsapp_enabled: bool | None = None
    whatsapp_on_submit: bool | None = None
    whatsapp_number: str | None = None
    whatsapp_message: str | None = None
    success_title: str | None = None
    success_subtitle: str | None = None
    success_description: str | None = None
    cover_enabled: bool | None = None
    cover_title: str | None = None
    cover_subtitle: str | None = None
    cover_cta_text: str | None = None
    webhook_url: str | None = None


class SettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subdomain: str
    form_name: str
    whatsapp_enabled: bool
    whatsapp_on_submit: bool
    whatsapp_number: str
    whatsapp_message: str
    success_title: str
    success_subtitle: str
    success_description: str
    cover_enabled: bool
    cover_title: str
    cover_subtitle: str
    cover_cta_text: str
    webhook_url: str | None = None


class SuccessVariantRequest(BaseModel):
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    whatsapp_enabled: bool | None = None
    whatsapp_number: str | None = None
    whatsapp_message: str | None = None


class SuccessVariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    page_key: str
    title: str
    subtitle: str
    description: str
    whatsapp_enabled: bool
    whatsapp_number: str
    whatsapp_message: str


class QuestionUpsertRequest(BaseModel):
    step: int
    question: str
    subtitle: str | None = None
    field_name: str
    input_type: str = "text"
    options: list[str] = []
    max_length: int | None = None
    input_placeholder: str | None = None
    required: bool = True
    conditional_logic: dict[str, Any] | list[dict[str, Any]] | None = None


class MoveQuestionRequest(BaseModel):
    direction: str = Field(pattern="^(up|down)$")


class QueueEntryRequest(BaseModel):
    phone_number: str
    display_name: str | None = None
    is_active: bool = True


class QueueReplaceRequest(BaseModel):
    entries: list[QueueEntryRequest]


class QueueEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    phone_number: str
    display_name: str | None = None
    position: int
    is_active: bool


class QueueStatusResponse(BaseModel):
    entries: list[QueueEntryResponse]
    current_position: int
    next_agent: QueueEntryResponse | None = None


class CrmIntegrationRequest(BaseModel):
    crm_name: str | None = None
    webhook_url: str | None = None
    bearer_token: str | None = None
    manager_id: str | None = None
    slug: str | None = None
    is_active: bool | None = None
    include_dynamic_fields: bool | None = None
    exclusive_mode: bool | None = None
    include_utm_params: bool | None = None
    origem: str | None = None
    campanha: str | None = None
    produto: str | None = None


class CrmIntegrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    crm_name: str
    webhook_url: str
    has_bearer_token: bool = False
    manager_id: str | None = None
    slug: str | None = None
    is_active: bool
    include_dynamic_fields: bool
    exclusive_mode: bool
    include_utm_params: bool
    origem: str | None = None
    campanha: str | None = None
    produto: str | None = None


class CrmTestResponse(BaseModel):
    success: bool
    status_code: int | None = None
    detail: str | None = None


class LeadRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str | None = None
    telefone: int | None = None
    has_email: bool
    dados_json: dict[str, Any]
    success_variant: str | None = None
    whatsapp_agent_number: str | None = None
    whatsapp_agent_name: str | None = None
    submitted_at: datetime


class ReportResponse(BaseModel):
    since: str
    days: int
    events: dict[str, int]
    leads: int
    fill_rate: int
    whatsapp_rate: int


class CleanupEventsResponse(BaseModel):
    deleted: int
    retention_days: int
