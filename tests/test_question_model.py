"""
Tests for question ordering, model consistency checks and flow resolution.
"""

import pytest

from app.core.exceptions import ConfigurationError, QuestionModelError
from app.services.forms import load_questions, resolve_active_sequence, resolve_questions, swap_adjacent_steps
from app.services.forms.question_model import check_question_model
from tests.helpers.forms import TENANT, add_question, course_branching_model


def test_questions_sorted_by_step_strictly_increasing(db):
    add_question(db, 30, "cidade")
    add_question(db, 10, "nome")
    add_question(db, 20, "email")

    questions = resolve_questions(db, TENANT)

    steps = [q.step for q in questions]
    assert steps == [10, 20, 30]
    assert all(a < b for a, b in zip(steps, steps[1:]))


def test_questions_are_scoped_by_tenant(db):
    add_question(db, 1, "nome")
    add_question(db, 1, "nome", subdomain="outra")

    assert len(resolve_questions(db, TENANT)) == 1
    assert resolve_questions(db, "vazia") == []


def test_duplicate_steps_are_reported(db):
    add_question(db, 1, "nome")
    add_question(db, 1, "email")

    with pytest.raises(QuestionModelError) as exc_info:
        resolve_questions(db, TENANT)
    assert exc_info.value.problems == ["step 1 is used by 2 questions"]


def test_duplicate_field_names_are_reported(db):
    add_question(db, 1, "nome")
    add_question(db, 2, "nome")

    problems = check_question_model(load_questions(db, TENANT))
    assert problems == ["field_name 'nome' is used by 2 questions"]


def test_swap_moves_question_up(db):
    first = add_question(db, 1, "nome")
    second = add_question(db, 2, "email")
    third = add_question(db, 3, "cidade")

    reordered = swap_adjacent_steps(db, TENANT, third.id, "up")

    assert [q.field_name for q in reordered] == ["nome", "cidade", "email"]
    assert [q.step for q in reordered] == [1, 2, 3]
    db.refresh(first)
    db.refresh(second)
    assert first.step == 1
    assert second.step == 3


def test_swap_keeps_sparse_step_values(db):
    add_question(db, 10, "nome")
    email = add_question(db, 25, "email")

    reordered = swap_adjacent_steps(db, TENANT, email.id, "up")

    assert [(q.field_name, q.step) for q in reordered] == [("email", 10), ("nome", 25)]


def test_swap_at_the_edges_is_refused(db):
    first = add_question(db, 1, "nome")
    last = add_question(db, 2, "email")

    with pytest.raises(ConfigurationError):
        swap_adjacent_steps(db, TENANT, first.id, "up")
    with pytest.raises(ConfigurationError):
        swap_adjacent_steps(db, TENANT, last.id, "down")

    assert [q.step for q in load_questions(db, TENANT)] == [1, 2]


def test_swap_unknown_question_or_direction(db):
    question = add_question(db, 1, "nome")

    with pytest.raises(ConfigurationError):
        swap_adjacent_steps(db, TENANT, 999, "up")
    with pytest.raises(ConfigurationError):
        swap_adjacent_steps(db, TENANT, question.id, "sideways")


def test_resolve_sequence_without_branching_visits_everything(db):
    questions = course_branching_model(db)

    resolution = resolve_active_sequence(questions, {"nome": "Ana", "Curso": "A", "whatsapp": "x"})

    assert [q.field_name for q in resolution.visited] == ["nome", "Curso", "whatsapp"]
    assert resolution.variant == "default"
    assert resolution.suppress_submission is False


def test_resolve_sequence_stops_on_suppressing_variant(db):
    questions = course_branching_model(db)

    resolution = resolve_active_sequence(questions, {"nome": "Ana", "Curso": "B"})

    assert [q.field_name for q in resolution.visited] == ["nome", "Curso"]
    assert resolution.variant == "sem_interesse"
    assert resolution.suppress_submission is True


def test_resolve_sequence_follows_jumps_by_step_value(db):
    questions = [
        add_question(
            db,
            10,
            "tipo",
            input_type="buttons",
            options=["PF", "PJ"],
            conditional_logic={
                "conditions": [{"trigger_value": "PJ", "action": "jump_to_step", "action_target": 30}]
            },
        ),
        add_question(db, 20, "cpf"),
        add_question(db, 30, "cnpj"),
    ]

    resolution = resolve_active_sequence(questions, {"tipo": "PJ"})

    assert [q.field_name for q in resolution.visited] == ["tipo", "cnpj"]
    assert resolution.decision.variant == "default"


def test_resolve_sequence_ends_on_cycle(db):
    # Only reachable through data written around save-time validation
    questions = [
        add_question(db, 1, "a"),
        add_question(
            db,
            2,
            "b",
            input_type="buttons",
            options=["x"],
            conditional_logic={"conditions": [{"trigger_value": "x", "action": "jump_to_step", "action_target": 1}]},
        ),
    ]

    resolution = resolve_active_sequence(questions, {"b": "x"})

    assert [q.field_name for q in resolution.visited] == ["a", "b"]
    assert resolution.suppress_submission is False


def test_resolve_sequence_of_empty_model():
    resolution = resolve_active_sequence([], {"nome": "Ana"})
    assert resolution.visited == []
    assert resolution.variant == "default"
