"""
Pydantic schemas for API request/response validation.
"""

from app.schemas.admin import (
    CrmIntegrationRequest,
    CrmIntegrationResponse,
    LeadRecordResponse,
    QuestionUpsertRequest,
    QueueReplaceRequest,
    QueueStatusResponse,
    ReportResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    SuccessVariantRequest,
    SuccessVariantResponse,
)
from app.schemas.forms import (
    NextStepRequest,
    NextStepResponse,
    PartialProgressRequest,
    PublicFormResponse,
    QuestionResponse,
    SubmissionResponse,
    ValidateFieldRequest,
    ValidateFieldResponse,
    WhatsAppLinkRequest,
    WhatsAppLinkResponse,
)

__all__ = [
    "CrmIntegrationRequest",
    "CrmIntegrationResponse",
    "LeadRecordResponse",
    "NextStepRequest",
    "NextStepResponse",
    "PartialProgressRequest",
    "PublicFormResponse",
    "QuestionResponse",
    "QuestionUpsertRequest",
    "QueueReplaceRequest",
    "QueueStatusResponse",
    "ReportResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
    "SubmissionResponse",
    "SuccessVariantRequest",
    "SuccessVariantResponse",
    "ValidateFieldRequest",
    "ValidateFieldResponse",
    "WhatsAppLinkRequest",
    "WhatsAppLinkResponse",
]
