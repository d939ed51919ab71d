"""
Public form API request/response schemas.

Request bodies from the browser use camelCase (sessionId, stepReached, ...);
aliases keep the snake_case attribute names on the Python side.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PublicSettingsResponse(BaseModel):
    """Public-safe tenant settings (no webhook URLs, no phone numbers)."""

    model_config = ConfigDict(from_attributes=True)

    subdomain: str
    form_name: str
    cover_enabled: bool
    cover_title: str
    cover_subtitle: str
    cover_cta_text: str
    success_title: str
    success_subtitle: str
    success_description: str
    whatsapp_enabled: bool
    whatsapp_on_submit: bool


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    step: int
    question: str
    subtitle: str | None = None
    field_name: str
    input_type: str
    options: list[str] = []
    max_length: int | None = None
    input_placeholder: str | None = None
    required: bool = True
    conditional_logic: dict[str, Any] | None = None


class PublicSuccessPageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    page_key: str
    title: str
    subtitle: str
    description: str
    whatsapp_enabled: bool


class PublicFormResponse(BaseModel):
    """Everything the client needs to render a tenant's form."""

    model_config = ConfigDict(populate_by_name=True)

    settings: PublicSettingsResponse
    questions: list[QuestionResponse]
    success_pages: list[PublicSuccessPageResponse] = Field(alias="successPages")


class ValidateFieldRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subdomain: str | None = None
    field_name: str = Field(alias="fieldName")
    value: Any = None


class ValidateFieldResponse(BaseModel):
    ok: bool
    errors: dict[str, str] = {}


class NextStepRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subdomain: str | None = None
    field_name: str = Field(alias="fieldName")
    value: Any = None


class NextStepResponse(BaseModel):
    kind: str
    target_step: int | None = None
    variant: str | None = None
    suppress_submission: bool = False


class WhatsAppLinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subdomain: str | None = None
    form_data: dict[str, Any] = Field(default_factory=dict, alias="formData")
    success_page_key: str | None = Field(default=None, alias="successPageKey")


class WhatsAppLinkResponse(BaseModel):
    enabled: bool
    url: str | None = None


class PartialProgressRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
    subdomain: str | None = None
    step_reached: int | None = Field(default=None, alias="stepReached")
    partial_data: dict[str, Any] | None = Field(default=None, alias="partialData")


class FormEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    subdomain: str | None = None
    event_type: str = Field(alias="eventType")
    step_reached: int | None = Field(default=None, alias="stepReached")


class SubmissionResponse(BaseModel):
    success: bool
    message: str
    warnings: list[str] = []
    database_id: int | None = None
    agent: dict[str, Any] | None = None
    whatsapp_url: str | None = None
    crm_status: str
    error: str | None = None
    success_variant: str
    suppressed: bool = False
