"""
WhatsApp handoff links (wa.me) with {field_name} interpolation from the answer trace.
"""

import logging
import re
from typing import Any
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.services.tenant_settings import resolve_success_copy

logger = logging.getLogger(__name__)

WA_ME_BASE_URL = "https://wa.me"
DEFAULT_LINK_MESSAGE = "Olá! Preenchi o formulário."

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")


def digits_only(value: Any) -> str:
    return re.sub(r"\D", "", str(value or ""))


def interpolate_message(template: str, trace: dict[str, Any] | None) -> str:
    """
    Replace {field_name} placeholders with answers from the trace.

    Placeholders for fields present in the trace with an empty/None value become
    an empty string. Placeholders for fields not in the trace are left untouched.
    """
    trace = trace or {}

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in trace:
            return match.group(0)
        value = trace[key]
        if isinstance(value, list):
            return ", ".join(str(v) for v in value)
        return str(value) if value not in (None, "") else ""

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def build_whatsapp_link(number: str, template: str | None, trace: dict[str, Any] | None = None) -> str | None:
    """
    Build https://wa.me/<digits>?text=<url-encoded message>.

    Returns:
        The link, or None when the number has no digits
    """
    clean_number = digits_only(number)
    if not clean_number:
        return None
    message = interpolate_message(template or DEFAULT_LINK_MESSAGE, trace)
    return f"{WA_ME_BASE_URL}/{clean_number}?text={quote(message, safe='')}"


def resolve_whatsapp_link(
    db: Session,
    subdomain: str,
    variant_key: str | None,
    trace: dict[str, Any] | None,
    agent_number: str | None = None,
) -> str | None:
    """
    Resolve the handoff link for a finished form.

    The variant's WhatsApp config wins when it has its own number; otherwise
    the tenant defaults apply. A rotation agent, when one was allocated,
    replaces the tenant's fixed number.

    Returns:
        The link, or None when WhatsApp is disabled or no number is configured
    """
    copy = resolve_success_copy(db, subdomain, variant_key)
    if not copy.whatsapp_enabled:
        return None

    number = copy.whatsapp_number
    if agent_number and copy.uses_tenant_number:
        number = agent_number

    link = build_whatsapp_link(number, copy.whatsapp_message, trace)
    if link is None:
        logger.warning(f"WhatsApp enabled for '{subdomain}' but no number is configured")
    else:
        logger.debug(f"Built WhatsApp link for '{subdomain}' to {digits_only(number)[:4]}***")
    return link
