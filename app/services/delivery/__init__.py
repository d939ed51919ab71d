"""Lead delivery: payload checks, channels and the dispatcher. Re-exports for stable public API."""

from app.services.delivery.dispatcher import (
    SubmissionResult,
    exclusive_policy,
    parallel_policy,
    submit,
)
from app.services.delivery.outcomes import DeliveryOutcome

__all__ = [
    "DeliveryOutcome",
    "SubmissionResult",
    "exclusive_policy",
    "parallel_policy",
    "submit",
]
