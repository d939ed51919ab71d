"""
Save-time validation and persistence for admin question edits.

Everything the evaluator and resolver assume (unique steps, unique field
names, choice questions with options, rules pointing at real targets) is
enforced here so that evaluation never has to second-guess stored data.
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.constants.forms import ACTION_JUMP_TO_STEP, CHOICE_INPUT_TYPES, INPUT_TYPES
from app.core.exceptions import ConfigurationError
from app.db.helpers import commit_and_refresh
from app.db.models import FormQuestion
from app.services.forms.branching import parse_conditional_logic, validate_conditional_logic
from app.services.forms.question_model import load_questions
from app.services.tenant_settings import list_variants

logger = logging.getLogger(__name__)

QUESTION_FIELDS = (
    "step",
    "question",
    "subtitle",
    "field_name",
    "input_type",
    "options",
    "max_length",
    "input_placeholder",
    "required",
    "conditional_logic",
)


def _validate_question_values(
    values: dict[str, Any],
    siblings: list[FormQuestion],
    known_variants: set[str],
) -> dict[str, Any]:
    errors: dict[str, str] = {}

    field_name = (values.get("field_name") or "").strip()
    if not field_name:
        errors["field_name"] = "field_name is required"
    elif any(q.field_name == field_name for q in siblings):
        errors["field_name"] = f"field_name '{field_name}' is already used"

    step = values.get("step")
    if not isinstance(step, int) or step < 1:
        errors["step"] = "step must be a positive integer"
    elif any(q.step == step for q in siblings):
        errors["step"] = f"step {step} is already used"

    input_type = values.get("input_type") or "text"
    if input_type not in INPUT_TYPES:
        errors["input_type"] = f"input_type must be one of {sorted(INPUT_TYPES)}"

    options = [str(o) for o in (values.get("options") or [])]
    if input_type in CHOICE_INPUT_TYPES:
        if not options or any(not o.strip() for o in options):
            errors["options"] = "select/buttons questions need non-empty options"
        elif len(set(options)) != len(options):
            errors["options"] = "options must be unique"

    max_length = values.get("max_length")
    if max_length is not None and (not isinstance(max_length, int) or max_length < 1):
        errors["max_length"] = "max_length must be a positive integer"

    if not (values.get("question") or "").strip():
        errors["question"] = "question text is required"

    if errors:
        raise ConfigurationError("Invalid question", fields=errors)

    conditional_logic = None
    if values.get("conditional_logic"):
        if input_type not in CHOICE_INPUT_TYPES:
            raise ConfigurationError(
                "Invalid question",
                fields={"conditional_logic": "only select/buttons questions can branch"},
            )
        known_steps = {q.step for q in siblings} | {step}
        conditional_logic = validate_conditional_logic(
            values["conditional_logic"],
            options=options,
            own_step=step,
            known_steps=known_steps,
            known_variants=known_variants,
        )

    return {
        **values,
        "field_name": field_name,
        "input_type": input_type,
        "options": options,
        "required": values.get("required", True) is not False,
        "conditional_logic": conditional_logic,
    }


def save_question(
    db: Session, subdomain: str, values: dict[str, Any], question_id: int | None = None
) -> FormQuestion:
    """
    Create or update a question after validating it against the tenant's model.

    Raises:
        ConfigurationError: With per-field messages when the question is rejected
    """
    questions = load_questions(db, subdomain)
    question = None
    if question_id is not None:
        question = next((q for q in questions if q.id == question_id), None)
        if question is None:
            raise ConfigurationError("Question not found", fields={"question_id": str(question_id)})

    siblings = [q for q in questions if question is None or q.id != question.id]
    known_variants = {v.page_key for v in list_variants(db, subdomain)}
    cleaned = _validate_question_values(values, siblings, known_variants)

    if question is None:
        question = FormQuestion(subdomain=subdomain)
        db.add(question)
    for key in QUESTION_FIELDS:
        if key in cleaned:
            setattr(question, key, cleaned[key])
    commit_and_refresh(db, question)
    logger.info(f"Saved question '{question.field_name}' (step {question.step}) for '{subdomain}'")
    return question


def delete_question(db: Session, subdomain: str, question_id: int) -> bool:
    """
    Delete a question. Refused while another question's rule jumps to its step.
    """
    questions = load_questions(db, subdomain)
    question = next((q for q in questions if q.id == question_id), None)
    if question is None:
        return False

    referencing = [
        q.field_name
        for q in questions
        if q.id != question_id
        and any(
            rule.action == ACTION_JUMP_TO_STEP and rule.action_target == question.step
            for rule in parse_conditional_logic(q.conditional_logic)
        )
    ]
    if referencing:
        raise ConfigurationError(
            "Question is the target of conditional jumps",
            fields={"referenced_by": ", ".join(referencing)},
        )

    db.delete(question)
    db.commit()
    return True
