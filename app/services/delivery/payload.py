"""
Submission payload handling: flattening, defaults, size limits and fixed-field extraction.

Runs before any side effect of a submission.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from app.constants.delivery import NESTED_PAYLOAD_KEYS
from app.core.config import settings
from app.core.exceptions import SubmissionValidationError

NAME_KEYS = ("nome", "name")
PHONE_KEYS = ("whatsapp", "telefone", "phone")
EMAIL_KEYS = ("email",)

# E.164 numbers carry at most 15 digits; longer answers are not stored as telefone
MAX_PHONE_DIGITS = 15


@dataclass
class FixedFields:
    """Denormalized lead columns pulled out of the trace."""

    nome: str | None
    telefone: int | None
    email: str | None

    @property
    def has_email(self) -> bool:
        return bool(self.email and self.email.strip())


def flatten_payload(raw: Any) -> dict[str, Any]:
    """
    Merge trace fields nested under data/body/payload/formData into the top level.

    Nested values win over top-level keys of the same name; the envelope key
    itself is dropped. Non-dict input becomes an empty mapping.
    """
    if not isinstance(raw, dict):
        return {}
    flat = {k: v for k, v in raw.items() if not (k in NESTED_PAYLOAD_KEYS and isinstance(v, dict))}
    for key in NESTED_PAYLOAD_KEYS:
        nested = raw.get(key)
        if isinstance(nested, dict):
            flat.update(nested)
    return flat


def apply_defaults(trace: dict[str, Any], form_name: str, origem: str) -> dict[str, Any]:
    """Fill form_name, origem and timestamp when the client did not send them."""
    trace = dict(trace)
    if trace.get("form_name") is None:
        trace["form_name"] = form_name
    if trace.get("origem") is None:
        trace["origem"] = origem
    if trace.get("timestamp") is None:
        trace["timestamp"] = datetime.now(UTC).isoformat()
    return trace


def _value_error(value: Any) -> str | None:
    max_string = settings.submission_max_string_length
    max_items = settings.submission_max_array_items
    max_item = settings.submission_max_array_item_length

    if value is None or isinstance(value, (bool, int, float)):
        return None
    if isinstance(value, str):
        if len(value) > max_string:
            return f"Must be at most {max_string} characters ({len(value)} given)"
        return None
    if isinstance(value, list):
        if len(value) > max_items:
            return f"Must have at most {max_items} items ({len(value)} given)"
        for index, item in enumerate(value):
            if not isinstance(item, str):
                return f"Item {index} must be a string"
            if len(item) > max_item:
                return f"Item {index} must be at most {max_item} characters"
        return None
    return "Unsupported value type"


def validate_payload(trace: dict[str, Any]) -> dict[str, Any]:
    """
    Check every value against the submission limits.

    Returns:
        The trace, unchanged

    Raises:
        SubmissionValidationError: Listing every offending field
    """
    errors = {}
    for key, value in trace.items():
        message = _value_error(value)
        if message:
            errors[key] = message
    if errors:
        raise SubmissionValidationError(errors)
    return trace


def _first_present(trace: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = trace.get(key)
        if value not in (None, ""):
            return value
    return None


def extract_fixed_fields(trace: dict[str, Any]) -> FixedFields:
    """
    Pick name, phone (as an integer of its digits) and email out of the trace.

    A phone answer with more than MAX_PHONE_DIGITS digits (e.g. two numbers typed
    into one field) leaves telefone empty; the raw answer stays in the trace.
    """
    nome = _first_present(trace, NAME_KEYS)
    phone_raw = _first_present(trace, PHONE_KEYS)
    digits = re.sub(r"\D", "", str(phone_raw)) if phone_raw is not None else ""
    email = _first_present(trace, EMAIL_KEYS)
    return FixedFields(
        nome=str(nome) if nome is not None else None,
        telefone=int(digits) if digits and len(digits) <= MAX_PHONE_DIGITS else None,
        email=str(email) if email is not None else None,
    )


def prepare_submission(raw: Any, form_name: str, origem: str) -> dict[str, Any]:
    """Flatten, default and validate an incoming submission body."""
    trace = flatten_payload(raw)
    validate_payload(trace)
    return apply_defaults(trace, form_name=form_name, origem=origem)
