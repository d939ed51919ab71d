"""
Question model resolver.

Loads a tenant's questions in step order, checks the ordering invariants and
resolves which questions a given answer trace actually visits.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConfigurationError, QuestionModelError
from app.db.models import FormQuestion
from app.services.forms.branching import (
    Advance,
    BranchDecision,
    JumpToStep,
    Terminate,
    next_step,
)

logger = logging.getLogger(__name__)


@dataclass
class FlowResolution:
    """Questions visited by a trace, in order, and the terminal decision reached."""

    visited: list[FormQuestion] = field(default_factory=list)
    decision: Terminate = field(default_factory=Terminate)

    @property
    def suppress_submission(self) -> bool:
        return self.decision.suppress_submission

    @property
    def variant(self) -> str:
        return self.decision.variant


def load_questions(db: Session, subdomain: str) -> list[FormQuestion]:
    """Load a tenant's questions ordered by step (ties broken by id), without validation."""
    stmt = (
        select(FormQuestion)
        .where(FormQuestion.subdomain == subdomain)
        .order_by(FormQuestion.step, FormQuestion.id)
    )
    return list(db.execute(stmt).scalars().all())


def check_question_model(questions: list[FormQuestion]) -> list[str]:
    """Return human-readable problems: duplicate steps and duplicate field names."""
    problems = []
    step_counts = Counter(q.step for q in questions)
    for step, count in sorted(step_counts.items()):
        if count > 1:
            problems.append(f"step {step} is used by {count} questions")
    field_counts = Counter(q.field_name for q in questions)
    for field_name, count in sorted(field_counts.items()):
        if count > 1:
            problems.append(f"field_name '{field_name}' is used by {count} questions")
    return problems


def resolve_questions(db: Session, subdomain: str) -> list[FormQuestion]:
    """
    Resolve the ordered question sequence for a tenant.

    Returns:
        Questions sorted by step ascending (strictly increasing, unique field names)

    Raises:
        QuestionModelError: If steps or field names are duplicated
    """
    questions = load_questions(db, subdomain)
    problems = check_question_model(questions)
    if problems:
        logger.warning(f"Question model for '{subdomain}' is inconsistent: {problems}")
        raise QuestionModelError(subdomain, problems)
    return questions


def swap_adjacent_steps(db: Session, subdomain: str, question_id: int, direction: str) -> list[FormQuestion]:
    """
    Move a question one place up or down by swapping step values with its neighbour.

    Both updates are flushed separately and committed together; if either
    fails the transaction is rolled back and both keep their old steps.

    Raises:
        ConfigurationError: Unknown question, bad direction, or no neighbour in that direction
    """
    if direction not in ("up", "down"):
        raise ConfigurationError("direction must be 'up' or 'down'", fields={"direction": direction})

    questions = load_questions(db, subdomain)
    index = next((i for i, q in enumerate(questions) if q.id == question_id), None)
    if index is None:
        raise ConfigurationError("Question not found", fields={"question_id": str(question_id)})

    neighbour_index = index - 1 if direction == "up" else index + 1
    if neighbour_index < 0 or neighbour_index >= len(questions):
        raise ConfigurationError(f"Question is already at the {'top' if direction == 'up' else 'bottom'}")

    current = questions[index]
    neighbour = questions[neighbour_index]
    current_step, neighbour_step = current.step, neighbour.step

    try:
        current.step = neighbour_step
        db.flush()
        neighbour.step = current_step
        db.flush()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            f"Step swap failed for '{subdomain}' (question {current.id} <-> {neighbour.id}); rolled back"
        )
        raise

    logger.info(f"Swapped steps {current_step} <-> {neighbour_step} for '{subdomain}'")
    return load_questions(db, subdomain)


def resolve_active_sequence(questions: list[FormQuestion], trace: dict[str, Any]) -> FlowResolution:
    """
    Walk the flow the way the client does and report the terminal decision.

    Starts at the first question, feeds each answer from the trace through the
    branch evaluator and follows Advance/JumpToStep until a Terminate. Jump
    targets are step values; Advance targets are 1-based positions.
    A revisited position or a jump to an unknown step ends the flow on the
    default variant.
    """
    resolution = FlowResolution()
    total = len(questions)
    if total == 0:
        return resolution

    position_by_step = {q.step: index for index, q in enumerate(questions)}
    seen: set[int] = set()
    index = 0

    while True:
        if index in seen:
            logger.warning(f"Branching cycle detected at step {questions[index].step}; ending flow")
            return resolution
        seen.add(index)
        question = questions[index]
        resolution.visited.append(question)

        decision: BranchDecision = next_step(question, trace.get(question.field_name), index + 1, total)

        if isinstance(decision, Terminate):
            resolution.decision = decision
            return resolution
        if isinstance(decision, JumpToStep):
            target_index = position_by_step.get(decision.target_step)
            if target_index is None:
                logger.warning(f"Jump to unknown step {decision.target_step}; ending flow")
                return resolution
            index = target_index
        elif isinstance(decision, Advance):
            index = decision.target_step - 1
