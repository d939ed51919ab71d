"""
Tests for the conditional branch evaluator and save-time rule validation.
"""

from types import SimpleNamespace

import pytest

from app.core.exceptions import ConfigurationError
from app.services.forms.branching import (
    Advance,
    JumpToStep,
    Terminate,
    decision_to_dict,
    next_step,
    parse_conditional_logic,
    validate_conditional_logic,
)


def make_question(conditions=None):
    logic = {"conditions": conditions} if conditions is not None else None
    return SimpleNamespace(field_name="curso", conditional_logic=logic)


def test_no_rules_advances_to_next_position():
    assert next_step(make_question(), "A", current_step=2, total_steps=5) == Advance(target_step=3)


def test_last_step_without_match_terminates_on_default():
    decision = next_step(make_question(), "A", current_step=5, total_steps=5)
    assert decision == Terminate(variant="default", suppress_submission=False)


def test_jump_rule():
    question = make_question([{"trigger_value": "B", "action": "jump_to_step", "action_target": 7}])
    assert next_step(question, "B", 2, 8) == JumpToStep(target_step=7)
    assert next_step(question, "A", 2, 8) == Advance(target_step=3)


def test_end_with_variant_rule_carries_suppression():
    question = make_question(
        [
            {
                "trigger_value": "B",
                "action": "end_with_variant",
                "action_target": "sem_interesse",
                "suppress_submission": True,
            }
        ]
    )
    decision = next_step(question, "B", 1, 3)
    assert isinstance(decision, Terminate)
    assert decision.variant == "sem_interesse"
    assert decision.suppress_submission is True


def test_first_matching_rule_wins():
    question = make_question(
        [
            {"trigger_value": "B", "action": "jump_to_step", "action_target": 4},
            {"trigger_value": "B", "action": "end_with_variant", "action_target": "outra"},
        ]
    )
    assert next_step(question, "B", 1, 5) == JumpToStep(target_step=4)


def test_match_is_exact_string_equality():
    question = make_question([{"trigger_value": "Sim", "action": "jump_to_step", "action_target": 3}])
    assert next_step(question, "sim", 1, 4) == Advance(target_step=2)
    assert next_step(question, " Sim", 1, 4) == Advance(target_step=2)
    assert next_step(question, None, 1, 4) == Advance(target_step=2)


def test_legacy_rule_shape_is_understood():
    rules = parse_conditional_logic(
        {
            "conditions": [
                {"value": "A", "action": "skip_to_step", "target_step": "4"},
                {"value": "B", "action": "success_page", "target_page": "vip", "skip_submit": True},
            ]
        }
    )
    assert rules[0].action == "jump_to_step"
    assert rules[0].action_target == 4
    assert rules[1].action == "end_with_variant"
    assert rules[1].action_target == "vip"
    assert rules[1].suppress_submission is True


def test_variant_rule_without_target_uses_default():
    rules = parse_conditional_logic([{"trigger_value": "A", "action": "end_with_variant"}])
    assert rules[0].action_target == "default"


def test_malformed_rules_are_skipped():
    rules = parse_conditional_logic(
        {
            "conditions": [
                {"trigger_value": "A", "action": "explode"},
                {"trigger_value": "B", "action": "jump_to_step", "action_target": "not-a-step"},
                {"trigger_value": "C", "action": "jump_to_step", "action_target": 3},
            ]
        }
    )
    assert [rule.trigger_value for rule in rules] == ["C"]


def test_decision_to_dict():
    assert decision_to_dict(Advance(3)) == {"kind": "advance", "target_step": 3, "suppress_submission": False}
    assert decision_to_dict(JumpToStep(5))["kind"] == "jump"
    assert decision_to_dict(Terminate("vip", True)) == {
        "kind": "terminate",
        "variant": "vip",
        "suppress_submission": True,
    }


# ---- Save-time validation ----

SAVE_CONTEXT = {
    "options": ["A", "B", "C"],
    "own_step": 2,
    "known_steps": {1, 2, 3, 4},
    "known_variants": {"vip"},
}


def test_valid_rules_are_canonicalized():
    stored = validate_conditional_logic(
        [
            {"value": "A", "action": "skip_to_step", "target_step": 4},
            {"trigger_value": "B", "action": "end_with_variant", "action_target": "vip"},
        ],
        **SAVE_CONTEXT,
    )
    assert stored == {
        "conditions": [
            {"trigger_value": "A", "action": "jump_to_step", "action_target": 4, "suppress_submission": False},
            {"trigger_value": "B", "action": "end_with_variant", "action_target": "vip", "suppress_submission": False},
        ]
    }


def test_empty_logic_is_stored_as_none():
    assert validate_conditional_logic({"conditions": []}, **SAVE_CONTEXT) is None
    assert validate_conditional_logic(None, **SAVE_CONTEXT) is None


def test_duplicate_trigger_is_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_conditional_logic(
            [
                {"trigger_value": "A", "action": "jump_to_step", "action_target": 3},
                {"trigger_value": "A", "action": "jump_to_step", "action_target": 4},
            ],
            **SAVE_CONTEXT,
        )
    assert "Duplicate" in exc_info.value.fields["conditions[1].trigger_value"]


def test_trigger_outside_options_is_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_conditional_logic(
            [{"trigger_value": "Z", "action": "jump_to_step", "action_target": 3}], **SAVE_CONTEXT
        )
    assert "conditions[0].trigger_value" in exc_info.value.fields


@pytest.mark.parametrize("target", [1, 2])
def test_backward_and_self_jumps_are_rejected(target):
    with pytest.raises(ConfigurationError) as exc_info:
        validate_conditional_logic(
            [{"trigger_value": "A", "action": "jump_to_step", "action_target": target}], **SAVE_CONTEXT
        )
    assert exc_info.value.fields["conditions[0].action_target"] == "Jumps must move forward in the flow"


def test_jump_to_unknown_step_is_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_conditional_logic(
            [{"trigger_value": "A", "action": "jump_to_step", "action_target": 9}], **SAVE_CONTEXT
        )
    assert "does not exist" in exc_info.value.fields["conditions[0].action_target"]


def test_unknown_variant_is_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_conditional_logic(
            [{"trigger_value": "A", "action": "end_with_variant", "action_target": "nope"}], **SAVE_CONTEXT
        )
    assert "nope" in exc_info.value.fields["conditions[0].action_target"]


def test_default_variant_is_always_known():
    stored = validate_conditional_logic(
        [{"trigger_value": "A", "action": "end_with_variant", "action_target": "default"}], **SAVE_CONTEXT
    )
    assert stored["conditions"][0]["action_target"] == "default"
