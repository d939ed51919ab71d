"""
Per-field validation for form answers.

The rule set is inferred from the field name (case-insensitive substring, in
priority order) and then from the input type:

1. phone  - "whatsapp" / "telefone": 55 (DD) 9XXXX-XXXX
2. plate  - "placa": Mercosul ABC1D23 or legacy ABC1234
3. email  - "email": syntactically valid, at most 255 chars
4. choice - select/buttons: non-empty member of options
5. text   - length between 1 and max_length (default 200)

Pure: no database access, no network (email deliverability is not checked).
"""

import re
from dataclasses import dataclass, field
from typing import Any

from email_validator import EmailNotValidError, validate_email

from app.constants.forms import CHOICE_INPUT_TYPES

KIND_PHONE = "phone"
KIND_PLATE = "plate"
KIND_EMAIL = "email"
KIND_CHOICE = "choice"
KIND_TEXT = "text"

PHONE_NAME_MARKERS = ("whatsapp", "telefone")
PLATE_NAME_MARKERS = ("placa",)
EMAIL_NAME_MARKERS = ("email",)

PHONE_PATTERN = re.compile(r"^55 \((\d{2})\) (\d{5})-(\d{4})$")
PHONE_EMPTY_PREFIX = "55 "  # What the masked phone input holds before typing
PLATE_PATTERN = re.compile(r"^[A-Z]{3}\d[A-Z]\d{2}$|^[A-Z]{3}\d{4}$")

DEFAULT_MAX_TEXT_LENGTH = 200
EMAIL_MAX_LENGTH = 255


@dataclass
class FieldValidationResult:
    ok: bool = True
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def failure(cls, field_name: str, message: str) -> "FieldValidationResult":
        return cls(ok=False, errors={field_name: message})


def infer_field_kind(question) -> str:
    """Pick the validation rule set for a question."""
    name = (question.field_name or "").lower()
    if any(marker in name for marker in PHONE_NAME_MARKERS):
        return KIND_PHONE
    if any(marker in name for marker in PLATE_NAME_MARKERS):
        return KIND_PLATE
    if any(marker in name for marker in EMAIL_NAME_MARKERS):
        return KIND_EMAIL
    if question.input_type in CHOICE_INPUT_TYPES and question.options:
        return KIND_CHOICE
    return KIND_TEXT


def _is_empty(kind: str, value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return stripped == "" or (kind == KIND_PHONE and value == PHONE_EMPTY_PREFIX)
    return False


def _phone_error(value: str) -> str | None:
    match = PHONE_PATTERN.match(value)
    if not match:
        return "Telefone inválido. Use o formato 55 (99) 99999-9999"
    ddd = int(match.group(1))
    if ddd < 11 or ddd > 99:
        return "DDD inválido. Use um DDD brasileiro válido"
    if match.group(2)[0] != "9":
        return "Número de celular deve começar com 9 após o DDD"
    return None


def _plate_error(value: str) -> str | None:
    cleaned = value.replace("-", "").upper()
    if len(cleaned) != 7:
        return "Placa deve ter exatamente 7 caracteres"
    if not PLATE_PATTERN.match(cleaned):
        return "Placa inválida. Use formato Mercosul (ABC-1D23) ou antigo (ABC-1234)"
    return None


def _email_error(value: str) -> str | None:
    if len(value) > EMAIL_MAX_LENGTH:
        return f"Email deve ter no máximo {EMAIL_MAX_LENGTH} caracteres"
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return "Email inválido"
    return None


def _choice_error(value: str, options: list[str]) -> str | None:
    if value not in options:
        return "Selecione uma opção válida"
    return None


def _text_error(value: str, max_length: int | None) -> str | None:
    limit = max_length if max_length and max_length > 0 else DEFAULT_MAX_TEXT_LENGTH
    if len(value) < 1:
        return "Campo obrigatório"
    if len(value) > limit:
        return f"Máximo de {limit} caracteres"
    return None


def validate_field(question, raw_value: Any) -> FieldValidationResult:
    """
    Validate a single answer for a question.

    Args:
        question: FormQuestion (or any object with field_name, input_type, options,
            max_length, required)
        raw_value: The value typed/selected by the user

    Returns:
        FieldValidationResult with ok=True, or ok=False and {field_name: message}
    """
    kind = infer_field_kind(question)
    field_name = question.field_name

    if _is_empty(kind, raw_value):
        if question.required is False:
            return FieldValidationResult()
        if kind == KIND_CHOICE:
            return FieldValidationResult.failure(field_name, "Selecione uma opção")
        return FieldValidationResult.failure(field_name, "Campo obrigatório")

    if not isinstance(raw_value, str):
        return FieldValidationResult.failure(field_name, "Valor deve ser texto")

    if kind == KIND_PHONE:
        message = _phone_error(raw_value)
    elif kind == KIND_PLATE:
        message = _plate_error(raw_value)
    elif kind == KIND_EMAIL:
        message = _email_error(raw_value)
    elif kind == KIND_CHOICE:
        message = _choice_error(raw_value, list(question.options or []))
    else:
        message = _text_error(raw_value, question.max_length)

    if message:
        return FieldValidationResult.failure(field_name, message)
    return FieldValidationResult()
