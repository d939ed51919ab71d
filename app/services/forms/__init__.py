"""Question model, field validation and branching. Re-exports for stable public API."""

from app.services.forms.branching import (
    Advance,
    BranchDecision,
    BranchRule,
    JumpToStep,
    Terminate,
    decision_to_dict,
    next_step,
    parse_conditional_logic,
)
from app.services.forms.field_validation import FieldValidationResult, validate_field
from app.services.forms.question_model import (
    FlowResolution,
    load_questions,
    resolve_active_sequence,
    resolve_questions,
    swap_adjacent_steps,
)

__all__ = [
    "Advance",
    "BranchDecision",
    "BranchRule",
    "FieldValidationResult",
    "FlowResolution",
    "JumpToStep",
    "Terminate",
    "decision_to_dict",
    "load_questions",
    "next_step",
    "parse_conditional_logic",
    "resolve_active_sequence",
    "resolve_questions",
    "swap_adjacent_steps",
    "validate_field",
]
