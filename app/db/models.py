from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TenantSettings(Base):
    """Per-tenant singleton: channel toggles, default success copy, spreadsheet webhook."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    form_name: Mapped[str] = mapped_column(String(100), default="default")

    # WhatsApp handoff
    whatsapp_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    whatsapp_on_submit: Mapped[bool] = mapped_column(Boolean, default=False)
    whatsapp_number: Mapped[str] = mapped_column(String(32), default="")  # Fallback when queue is empty
    whatsapp_message: Mapped[str] = mapped_column(Text, default="")

    # Default success screen
    success_title: Mapped[str] = mapped_column(String(255), default="")
    success_subtitle: Mapped[str] = mapped_column(String(255), default="")
    success_description: Mapped[str] = mapped_column(Text, default="")

    # Cover page
    cover_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    cover_title: Mapped[str] = mapped_column(String(255), default="")
    cover_subtitle: Mapped[str] = mapped_column(String(255), default="")
    cover_cta_text: Mapped[str] = mapped_column(String(100), default="")

    # Spreadsheet webhook (falls back to settings.spreadsheet_webhook_url)
    webhook_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SuccessVariant(Base):
    """Named terminal success screen selectable by branching rules."""

    __tablename__ = "success_pages"
    __table_args__ = (UniqueConstraint("subdomain", "page_key", name="uq_success_pages_subdomain_page_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), index=True)
    page_key: Mapped[str] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(255), default="")
    subtitle: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    whatsapp_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    whatsapp_number: Mapped[str] = mapped_column(String(32), default="")
    whatsapp_message: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class FormQuestion(Base):
    __tablename__ = "form_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), index=True)
    # No unique constraint: adjacent swaps pass through a duplicate step mid-transaction.
    # Duplicates that get committed are reported by the resolver.
    step: Mapped[int] = mapped_column(Integer)
    question: Mapped[str] = mapped_column(Text)
    subtitle: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    field_name: Mapped[str] = mapped_column(String(100))
    input_type: Mapped[str] = mapped_column(String(20), default="text")  # text, password, select, buttons
    options: Mapped[list[str]] = mapped_column(JSON, default=list)
    max_length: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    input_placeholder: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, default=True)
    conditional_logic: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class WhatsAppQueueEntry(Base):
    __tablename__ = "whatsapp_queue"
    __table_args__ = (UniqueConstraint("subdomain", "position", name="uq_whatsapp_queue_subdomain_position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), index=True)
    phone_number: Mapped[str] = mapped_column(String(32))
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class WhatsAppQueueState(Base):
    """Rotation cursor - one row per tenant, advanced by compare-and-set."""

    __tablename__ = "whatsapp_queue_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    current_position: Mapped[int] = mapped_column(Integer, default=1)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CrmIntegration(Base):
    __tablename__ = "crm_integrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    crm_name: Mapped[str] = mapped_column(String(100), default="CRM")
    webhook_url: Mapped[str] = mapped_column(String(500), default="")
    bearer_token: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    manager_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # client_slug in the CRM
    slug: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # Team/campaign slug
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    include_dynamic_fields: Mapped[bool] = mapped_column(Boolean, default=True)
    exclusive_mode: Mapped[bool] = mapped_column(Boolean, default=True)
    include_utm_params: Mapped[bool] = mapped_column(Boolean, default=True)
    origem: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    campanha: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    produto: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class LeadRecord(Base):
    """Durable result of one submission. Written once, never updated."""

    __tablename__ = "lead_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subdomain: Mapped[str] = mapped_column(String(100), index=True)

    # Denormalized fixed fields
    nome: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telefone: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)  # Digits only
    has_email: Mapped[bool] = mapped_column(Boolean, default=False)

    dados_json: Mapped[dict[str, Any]] = mapped_column(JSON)  # Full answer trace
    form_version: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    success_variant: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # WhatsApp rotation metadata (set at creation time)
    whatsapp_agent_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    whatsapp_agent_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)


class FormAnalyticsEvent(Base):
    __tablename__ = "form_analytics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[str] = mapped_column(String(128), index=True)
    subdomain: Mapped[str] = mapped_column(String(100), index=True)
    event_type: Mapped[str] = mapped_column(String(50), index=True)  # form_started, form_abandoned, ...
    step_reached: Mapped[int] = mapped_column(Integer, default=1)
    partial_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SystemEvent(Base):
    """Structured record of failures and notable events (delivery warnings, cursor races...)."""

    __tablename__ = "system_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    level: Mapped[str] = mapped_column(String(10), index=True)  # INFO, WARN, ERROR
    event_type: Mapped[str] = mapped_column(String(100), index=True)
    subdomain: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    lead_record_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("lead_records.id"), nullable=True, index=True
    )
    payload: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
