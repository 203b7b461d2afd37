import pytest

from perfeval.core.exceptions import EvaluationLockedError, InvalidStatusTransitionError
from perfeval.scoring.status import EvaluationStatus, ensure_mutable, ensure_transition


def test_draft_to_submitted():
    assert ensure_transition(1, "Draft", EvaluationStatus.SUBMITTED) == EvaluationStatus.SUBMITTED


def test_submitted_to_completed():
    assert ensure_transition(1, EvaluationStatus.SUBMITTED, "Completed") == EvaluationStatus.COMPLETED


def test_draft_cannot_skip_to_completed():
    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        ensure_transition(1, EvaluationStatus.DRAFT, EvaluationStatus.COMPLETED)
    assert exc_info.value.status_code == 409


def test_submitted_cannot_go_back_to_draft():
    with pytest.raises(InvalidStatusTransitionError):
        ensure_transition(1, EvaluationStatus.SUBMITTED, EvaluationStatus.DRAFT)


@pytest.mark.parametrize("target", list(EvaluationStatus))
def test_completed_is_terminal(target):
    with pytest.raises(EvaluationLockedError):
        ensure_transition(7, EvaluationStatus.COMPLETED, target)


@pytest.mark.parametrize("status", [EvaluationStatus.DRAFT, EvaluationStatus.SUBMITTED])
def test_open_statuses_are_mutable(status):
    ensure_mutable(1, status)


def test_completed_is_locked():
    with pytest.raises(EvaluationLockedError) as exc_info:
        ensure_mutable(42, "Completed")
    assert exc_info.value.error_code == "EVALUATION_LOCKED"
    assert exc_info.value.details == {"evaluation_id": 42}
