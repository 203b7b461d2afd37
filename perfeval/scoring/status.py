"""
Evaluation lifecycle: Draft -> Submitted -> Completed.

Scores stay editable until the evaluation is Completed; Completed is terminal
and freezes the total.
"""
import enum
from typing import Dict, FrozenSet, Union

from perfeval.core.exceptions import EvaluationLockedError, InvalidStatusTransitionError


class EvaluationStatus(str, enum.Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    COMPLETED = "Completed"


ALLOWED_TRANSITIONS: Dict[EvaluationStatus, FrozenSet[EvaluationStatus]] = {
    EvaluationStatus.DRAFT: frozenset({EvaluationStatus.SUBMITTED}),
    EvaluationStatus.SUBMITTED: frozenset({EvaluationStatus.COMPLETED}),
    EvaluationStatus.COMPLETED: frozenset(),
}


def _coerce(status: Union[str, EvaluationStatus]) -> EvaluationStatus:
    return status if isinstance(status, EvaluationStatus) else EvaluationStatus(status)


def ensure_mutable(evaluation_id: int, status: Union[str, EvaluationStatus]) -> None:
    """Raise EvaluationLockedError if the evaluation can no longer change."""
    if _coerce(status) == EvaluationStatus.COMPLETED:
        raise EvaluationLockedError(evaluation_id)


def ensure_transition(
    evaluation_id: int,
    current: Union[str, EvaluationStatus],
    target: Union[str, EvaluationStatus],
) -> EvaluationStatus:
    """Validate a status change and return the target status."""
    current_status = _coerce(current)
    target_status = _coerce(target)
    ensure_mutable(evaluation_id, current_status)
    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidStatusTransitionError(current_status.value, target_status.value)
    return target_status
