"""initial_form_schema

Revision ID: 0001_initial_form_schema
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_form_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("form_name", sa.String(length=100), nullable=False),
        sa.Column("whatsapp_enabled", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_on_submit", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_number", sa.String(length=32), nullable=False),
        sa.Column("whatsapp_message", sa.Text(), nullable=False),
        sa.Column("success_title", sa.String(length=255), nullable=False),
        sa.Column("success_subtitle", sa.String(length=255), nullable=False),
        sa.Column("success_description", sa.Text(), nullable=False),
        sa.Column("cover_enabled", sa.Boolean(), nullable=False),
        sa.Column("cover_title", sa.String(length=255), nullable=False),
        sa.Column("cover_subtitle", sa.String(length=255), nullable=False),
        sa.Column("cover_cta_text", sa.String(length=100), nullable=False),
        sa.Column("webhook_url", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_app_settings_subdomain"), "app_settings", ["subdomain"], unique=True)

    op.create_table(
        "success_pages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("page_key", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("subtitle", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("whatsapp_enabled", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_number", sa.String(length=32), nullable=False),
        sa.Column("whatsapp_message", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subdomain", "page_key", name="uq_success_pages_subdomain_page_key"),
    )
    op.create_index(op.f("ix_success_pages_subdomain"), "success_pages", ["subdomain"], unique=False)

    op.create_table(
        "form_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("step", sa.Integer(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("subtitle", sa.Text(), nullable=True),
        sa.Column("field_name", sa.String(length=100), nullable=False),
        sa.Column("input_type", sa.String(length=20), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("max_length", sa.Integer(), nullable=True),
        sa.Column("input_placeholder", sa.String(length=255), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("conditional_logic", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_form_questions_subdomain"), "form_questions", ["subdomain"], unique=False)

    op.create_table(
        "whatsapp_queue",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subdomain", "position", name="uq_whatsapp_queue_subdomain_position"),
    )
    op.create_index(op.f("ix_whatsapp_queue_subdomain"), "whatsapp_queue", ["subdomain"], unique=False)

    op.create_table(
        "whatsapp_queue_state",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("current_position", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_whatsapp_queue_state_subdomain"), "whatsapp_queue_state", ["subdomain"], unique=True
    )

    op.create_table(
        "crm_integrations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("crm_name", sa.String(length=100), nullable=False),
        sa.Column("webhook_url", sa.String(length=500), nullable=False),
        sa.Column("bearer_token", sa.String(length=500), nullable=True),
        sa.Column("manager_id", sa.String(length=100), nullable=True),
        sa.Column("slug", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("include_dynamic_fields", sa.Boolean(), nullable=False),
        sa.Column("exclusive_mode", sa.Boolean(), nullable=False),
        sa.Column("include_utm_params", sa.Boolean(), nullable=False),
        sa.Column("origem", sa.String(length=100), nullable=True),
        sa.Column("campanha", sa.String(length=100), nullable=True),
        sa.Column("produto", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_crm_integrations_subdomain"), "crm_integrations", ["subdomain"], unique=True)

    op.create_table(
        "lead_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("nome", sa.String(length=255), nullable=True),
        sa.Column("telefone", sa.BigInteger(), nullable=True),
        sa.Column("has_email", sa.Boolean(), nullable=False),
        sa.Column("dados_json", sa.JSON(), nullable=False),
        sa.Column("form_version", sa.String(length=20), nullable=True),
        sa.Column("success_variant", sa.String(length=100), nullable=True),
        sa.Column("whatsapp_agent_number", sa.String(length=32), nullable=True),
        sa.Column("whatsapp_agent_name", sa.String(length=100), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lead_records_subdomain"), "lead_records", ["subdomain"], unique=False)
    op.create_index(op.f("ix_lead_records_submitted_at"), "lead_records", ["submitted_at"], unique=False)

    op.create_table(
        "form_analytics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.String(length=128), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("step_reached", sa.Integer(), nullable=False),
        sa.Column("partial_data", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_form_analytics_session_id"), "form_analytics", ["session_id"], unique=False)
    op.create_index(op.f("ix_form_analytics_subdomain"), "form_analytics", ["subdomain"], unique=False)
    op.create_index(op.f("ix_form_analytics_event_type"), "form_analytics", ["event_type"], unique=False)
    op.create_index(op.f("ix_form_analytics_created_at"), "form_analytics", ["created_at"], unique=False)

    op.create_table(
        "system_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("level", sa.String(length=10), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("subdomain", sa.String(length=100), nullable=True),
        sa.Column("lead_record_id", sa.Integer(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["lead_record_id"], ["lead_records.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_system_events_created_at"), "system_events", ["created_at"], unique=False)
    op.create_index(op.f("ix_system_events_level"), "system_events", ["level"], unique=False)
    op.create_index(op.f("ix_system_events_event_type"), "system_events", ["event_type"], unique=False)
    op.create_index(op.f("ix_system_events_subdomain"), "system_events", ["subdomain"], unique=False)
    op.create_index(
        op.f("ix_system_events_lead_record_id"), "system_events", ["lead_record_id"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("system_events")
    op.drop_table("form_analytics")
    op.drop_table("lead_records")
    op.drop_table("crm_integrations")
    op.drop_table("whatsapp_queue_state")
    op.drop_table("whatsapp_queue")
    op.drop_table("form_questions")
    op.drop_table("success_pages")
    op.drop_table("app_settings")
