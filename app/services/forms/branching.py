"""
Conditional branch evaluator.

Stored conditional_logic is parsed into typed BranchRule models and evaluated
by a pure function that returns one of three decisions:

- Advance(target_step)                        - default: next position in the flow
- JumpToStep(target_step)                     - go straight to a configured step
- Terminate(variant, suppress_submission)     - end the flow on a success variant

Rule targets are checked against the tenant's steps and variants when the
question is saved (validate_conditional_logic), not while evaluating.
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ValidationError, model_validator

from app.constants.forms import (
    ACTION_END_WITH_VARIANT,
    ACTION_JUMP_TO_STEP,
    DEFAULT_VARIANT,
    LEGACY_ACTION_ALIASES,
)
from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class BranchRule(BaseModel):
    """One conditional rule. Accepts the legacy {value, action, target_step, target_page, skip_submit} shape."""

    trigger_value: str
    action: Literal["jump_to_step", "end_with_variant"]
    action_target: int | str | None = None
    suppress_submission: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "trigger_value" not in data and "value" in data:
            data["trigger_value"] = data.pop("value")
        action = data.get("action")
        if action in LEGACY_ACTION_ALIASES:
            data["action"] = LEGACY_ACTION_ALIASES[action]
        if data.get("action_target") is None:
            if data.get("action") == ACTION_JUMP_TO_STEP:
                data["action_target"] = data.get("target_step")
            elif data.get("action") == ACTION_END_WITH_VARIANT:
                data["action_target"] = data.get("target_page")
        if "suppress_submission" not in data and "skip_submit" in data:
            data["suppress_submission"] = bool(data.get("skip_submit"))
        return data

    @model_validator(mode="after")
    def _check_target_type(self) -> "BranchRule":
        if self.action == ACTION_JUMP_TO_STEP:
            try:
                self.action_target = int(self.action_target)  # type: ignore[arg-type]
            except (TypeError, ValueError):
                raise ValueError("jump_to_step requires an integer step target") from None
        elif self.action_target in (None, ""):
            self.action_target = DEFAULT_VARIANT
        else:
            self.action_target = str(self.action_target)
        return self


@dataclass(frozen=True)
class Advance:
    target_step: int
    kind: str = "advance"


@dataclass(frozen=True)
class JumpToStep:
    target_step: int
    kind: str = "jump"


@dataclass(frozen=True)
class Terminate:
    variant: str = DEFAULT_VARIANT
    suppress_submission: bool = False
    kind: str = "terminate"


BranchDecision = Advance | JumpToStep | Terminate


def decision_to_dict(decision: BranchDecision) -> dict:
    """Serialize a decision for the public next-step endpoint."""
    if isinstance(decision, Terminate):
        return {
            "kind": decision.kind,
            "variant": decision.variant,
            "suppress_submission": decision.suppress_submission,
        }
    return {"kind": decision.kind, "target_step": decision.target_step, "suppress_submission": False}


def _raw_conditions(conditional_logic: Any) -> list:
    if not conditional_logic:
        return []
    if isinstance(conditional_logic, dict):
        return list(conditional_logic.get("conditions") or [])
    if isinstance(conditional_logic, list):
        return conditional_logic
    return []


def parse_conditional_logic(conditional_logic: Any) -> list[BranchRule]:
    """
    Parse stored conditional_logic into rules, preserving stored order.

    Malformed rules are skipped with a warning; they should have been rejected at save time.
    """
    rules = []
    for index, raw in enumerate(_raw_conditions(conditional_logic)):
        try:
            rules.append(BranchRule.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed conditional rule #{index}: {e.errors()[0]['msg']}")
    return rules


def _matches(rule: BranchRule, answered_value: Any) -> bool:
    if answered_value is None or isinstance(answered_value, (list, dict)):
        return False
    return rule.trigger_value == str(answered_value)


def find_matching_rule(question, answered_value: Any) -> BranchRule | None:
    """First rule in stored order whose trigger_value equals the answer (first match wins)."""
    for rule in parse_conditional_logic(getattr(question, "conditional_logic", None)):
        if _matches(rule, answered_value):
            return rule
    return None


def next_step(question, answered_value: Any, current_step: int, total_steps: int) -> BranchDecision:
    """
    Decide where the flow goes after answering a question.

    Args:
        question: Question with optional conditional_logic
        answered_value: The answer just given
        current_step: 1-based position of the question in the resolved flow
        total_steps: Number of questions in the flow

    Returns:
        JumpToStep / Terminate from the first matching rule, otherwise Advance,
        or Terminate(default) when current_step is the last step
    """
    rule = find_matching_rule(question, answered_value)
    if rule is not None:
        if rule.action == ACTION_JUMP_TO_STEP:
            return JumpToStep(target_step=int(rule.action_target))  # type: ignore[arg-type]
        return Terminate(
            variant=str(rule.action_target),
            suppress_submission=rule.suppress_submission,
        )

    if current_step >= total_steps:
        return Terminate()
    return Advance(target_step=current_step + 1)


def validate_conditional_logic(
    conditional_logic: Any,
    *,
    options: list[str],
    own_step: int,
    known_steps: set[int],
    known_variants: set[str],
) -> dict | None:
    """
    Validate rules at save time and return them in canonical storage form.

    Rejects: triggers outside options, duplicate triggers, jumps to unknown
    steps or backwards/self jumps, unknown variant keys.

    Raises:
        ConfigurationError: with per-rule field errors
    """
    raw_conditions = _raw_conditions(conditional_logic)
    if not raw_conditions:
        return None

    errors: dict[str, str] = {}
    rules: list[BranchRule] = []
    seen_triggers: set[str] = set()
    variants = set(known_variants) | {DEFAULT_VARIANT}

    for index, raw in enumerate(raw_conditions):
        prefix = f"conditions[{index}]"
        try:
            rule = BranchRule.model_validate(raw)
        except ValidationError as e:
            errors[prefix] = e.errors()[0]["msg"]
            continue

        if rule.trigger_value not in options:
            errors[f"{prefix}.trigger_value"] = f"'{rule.trigger_value}' is not one of the question options"
        elif rule.trigger_value in seen_triggers:
            errors[f"{prefix}.trigger_value"] = f"Duplicate trigger value '{rule.trigger_value}'"
        seen_triggers.add(rule.trigger_value)

        if rule.action == ACTION_JUMP_TO_STEP:
            target = int(rule.action_target)  # type: ignore[arg-type]
            if target not in known_steps:
                errors[f"{prefix}.action_target"] = f"Step {target} does not exist"
            elif target <= own_step:
                errors[f"{prefix}.action_target"] = "Jumps must move forward in the flow"
        elif rule.action_target not in variants:
            errors[f"{prefix}.action_target"] = f"Unknown success variant '{rule.action_target}'"

        rules.append(rule)

    if errors:
        raise ConfigurationError("Invalid conditional logic", fields=errors)

    return {"conditions": [rule.model_dump() for rule in rules]}
