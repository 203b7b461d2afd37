"""
Evaluation Service Layer

Lifecycle, scoring and read models of performance evaluations.

Every score write runs as one unit of work: lock the evaluation, check it is
still mutable and that the category weights are valid, upsert the score,
recompute the total and commit. Completed evaluations are frozen.

Architecture:
- Router -> Service (this module) -> Models / perfeval.scoring
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from perfeval.core.config import settings
from perfeval.core.exceptions import (
    AccessDeniedError,
    AppException,
    ConcurrencyConflictError,
    IncompleteEvaluationError,
    InvalidScoreError,
    NotFoundError,
)
from perfeval.database import transaction
from perfeval.models.evaluation import Comment, Evaluation, EvaluationScore
from perfeval.models.user import User
from perfeval.schemas.evaluation import CommentCreate, CommentUpdate, EvaluationCreate, EvaluationUpdate
from perfeval.scoring.aggregation import CriterionScore, ScoreBreakdown, score_breakdown
from perfeval.scoring.status import EvaluationStatus, ensure_mutable, ensure_transition
from perfeval.services import criteria_category_service, criteria_service, user_service
from perfeval.services.notification import NotificationService

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_evaluation(db: Session, evaluation_id: int, for_update: bool = False) -> Evaluation:
    query = db.query(Evaluation).filter(Evaluation.id == evaluation_id)
    if for_update:
        query = query.with_for_update()
    evaluation = query.first()
    if not evaluation:
        raise NotFoundError("Evaluation", evaluation_id)
    return evaluation


def get_evaluation(db: Session, evaluation_id: int) -> Evaluation:
    return _get_evaluation(db, evaluation_id)


def _find_score(db: Session, evaluation_id: int, criteria_id: int) -> Optional[EvaluationScore]:
    return (
        db.query(EvaluationScore)
        .filter(
            EvaluationScore.evaluation_id == evaluation_id,
            EvaluationScore.criteria_id == criteria_id,
        )
        .first()
    )


def _warnings(breakdown: ScoreBreakdown) -> List[Dict[str, Any]]:
    return [
        {"code": w.error_code, "msg": w.message, "category_id": w.category_id}
        for w in breakdown.missing
    ]


# --- Aggregation ---

def calculate_breakdown(db: Session, evaluation: Evaluation) -> ScoreBreakdown:
    """Score breakdown of the persisted scores against the current weights."""
    scores = [CriterionScore(s.criteria_id, s.score) for s in evaluation.scores]
    return score_breakdown(
        scores,
        criteria_service.build_criteria_category_map(db),
        scale_factor=settings.scoring.scale_factor,
    )


def recalculate_total(db: Session, evaluation: Evaluation) -> ScoreBreakdown:
    """
    Recompute and assign evaluation.total_score from its persisted scores.

    Does not commit. The caller owns the transaction.
    """
    breakdown = calculate_breakdown(db, evaluation)
    evaluation.total_score = breakdown.total_score
    # Always dirty the row so the version check runs even if the total is unchanged
    evaluation.updated_at = _now()
    return breakdown


def recalculate_open_totals(db: Session) -> int:
    """
    Recompute the stored total of every Draft and Submitted evaluation.

    Runs inside the caller's transaction after category weights or criteria
    membership change. Completed totals are left frozen. Only evaluations
    whose total actually moves are written.

    Returns:
        Number of evaluations whose total changed
    """
    # Pending weight and is_active changes must be visible to the queries below
    db.flush()
    criteria_map = criteria_service.build_criteria_category_map(db)
    open_evaluations = (
        db.query(Evaluation)
        .filter(Evaluation.status != EvaluationStatus.COMPLETED.value)
        .all()
    )

    changed = 0
    for evaluation in open_evaluations:
        scores = [CriterionScore(s.criteria_id, s.score) for s in evaluation.scores]
        total = score_breakdown(
            scores, criteria_map, scale_factor=settings.scoring.scale_factor
        ).total_score
        if evaluation.total_score != total:
            evaluation.total_score = total
            changed += 1

    if changed:
        logger.info(f"Recalculated totals of {changed} open evaluation(s)")
    return changed


def _commit_evaluation(db: Session, evaluation_id: int) -> None:
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Concurrent modification detected on evaluation {evaluation_id}")
        raise ConcurrencyConflictError(evaluation_id)
    except Exception:
        db.rollback()
        raise


# --- Lifecycle ---

def create_evaluation(db: Session, data: EvaluationCreate) -> Evaluation:
    """
    Open a Draft evaluation of an employee.

    Raises:
        NotFoundError: evaluator or employee does not exist
        AccessDeniedError: evaluator lacks the evaluator role
        WeightSumInvalidError: active category weights do not total 100%
    """
    evaluator = user_service.get_user(db, data.evaluator_id)
    employee = user_service.get_user(db, data.employee_id)

    if not evaluator.is_active or not employee.is_active:
        raise AppException("Evaluator and employee must be active users", status_code=422, error_code="INACTIVE_USER")
    if evaluator.id == employee.id:
        raise AppException("An employee cannot evaluate themselves", status_code=422, error_code="SELF_EVALUATION")
    if not evaluator.can_evaluate:
        raise AccessDeniedError(f"User {evaluator.id} is not allowed to evaluate")

    criteria_category_service.ensure_weights_valid(db)

    evaluation = Evaluation(
        evaluator_id=evaluator.id,
        employee_id=employee.id,
        period=data.period.strip(),
        start_date=data.start_date,
        end_date=data.end_date,
        status=EvaluationStatus.DRAFT.value,
        total_score=Decimal("0.00"),
    )
    with transaction(db):
        db.add(evaluation)
    db.refresh(evaluation)

    logger.info(f"Evaluation created: {evaluation.id} (employee {employee.id}, evaluator {evaluator.id})")
    return evaluation


def update_basic_info(db: Session, evaluation_id: int, data: EvaluationUpdate) -> Evaluation:
    evaluation = _get_evaluation(db, evaluation_id)
    ensure_mutable(evaluation.id, evaluation.status)

    start_date = data.start_date or evaluation.start_date
    end_date = data.end_date or evaluation.end_date
    if end_date < start_date:
        raise AppException("end_date must not be before start_date", status_code=422, error_code="INVALID_PERIOD")

    if data.period is not None:
        evaluation.period = data.period.strip()
    if data.general_comments is not None:
        evaluation.general_comments = data.general_comments.strip()
    evaluation.start_date = start_date
    evaluation.end_date = end_date

    _commit_evaluation(db, evaluation_id)
    db.refresh(evaluation)
    return evaluation


def submit_evaluation(db: Session, evaluation_id: int) -> Evaluation:
    """
    Draft -> Submitted. Every scorable criterion must have a score.

    Raises:
        IncompleteEvaluationError: a scorable criterion has no score
        WeightSumInvalidError: active category weights do not total 100%
    """
    evaluation = _get_evaluation(db, evaluation_id, for_update=True)
    ensure_transition(evaluation.id, evaluation.status, EvaluationStatus.SUBMITTED)

    scored = {s.criteria_id for s in evaluation.scores}
    missing = [c.id for c in criteria_service.list_active_for_evaluation(db) if c.id not in scored]
    if missing:
        raise IncompleteEvaluationError(missing)

    criteria_category_service.ensure_weights_valid(db)
    recalculate_total(db, evaluation)
    evaluation.status = EvaluationStatus.SUBMITTED.value
    evaluation.submitted_at = _now()
    NotificationService.notify_evaluation_event(
        db,
        evaluation,
        title="Evaluation submitted",
        message=f"Your evaluation for {evaluation.period} has been submitted for review.",
    )
    _commit_evaluation(db, evaluation_id)
    db.refresh(evaluation)

    logger.info(f"Evaluation submitted: {evaluation_id} (total {evaluation.total_score})")
    return evaluation


def complete_evaluation(db: Session, evaluation_id: int) -> Evaluation:
    """
    Submitted -> Completed. The total is final from here on.

    Raises:
        WeightSumInvalidError: active category weights do not total 100%
    """
    evaluation = _get_evaluation(db, evaluation_id, for_update=True)
    ensure_transition(evaluation.id, evaluation.status, EvaluationStatus.COMPLETED)

    criteria_category_service.ensure_weights_valid(db)
    recalculate_total(db, evaluation)
    evaluation.status = EvaluationStatus.COMPLETED.value
    evaluation.completed_at = _now()
    NotificationService.notify_evaluation_event(
        db,
        evaluation,
        title="Evaluation completed",
        message=f"Your evaluation for {evaluation.period} is complete. Final score: {evaluation.total_score}",
        type="success",
    )
    _commit_evaluation(db, evaluation_id)
    db.refresh(evaluation)

    logger.info(f"Evaluation completed: {evaluation_id} (final total {evaluation.total_score})")
    return evaluation


def delete_evaluation(db: Session, evaluation_id: int) -> None:
    evaluation = _get_evaluation(db, evaluation_id)
    with transaction(db):
        db.delete(evaluation)
    logger.warning(f"Evaluation permanently deleted: {evaluation_id}")


# --- Scores ---

def record_score(db: Session, evaluation_id: int, criteria_id: int, score: int) -> Dict[str, Any]:
    """
    Create or update the score of one criterion and recompute the total.

    Args:
        db: Database session
        evaluation_id: Evaluation being scored
        criteria_id: Criterion being scored
        score: Raw score within [SCORE_MIN, SCORE_MAX]

    Returns:
        Dict with the stored score, the new evaluation total and any
        missing-category warnings

    Raises:
        InvalidScoreError: score outside the configured range
        EvaluationLockedError: evaluation is completed
        WeightSumInvalidError: active category weights do not total 100%
        ConcurrencyConflictError: a concurrent writer changed the evaluation
    """
    scoring = settings.scoring
    if not scoring.score_min <= score <= scoring.score_max:
        raise InvalidScoreError(score, scoring.score_min, scoring.score_max)

    evaluation = _get_evaluation(db, evaluation_id, for_update=True)
    ensure_mutable(evaluation.id, evaluation.status)

    criteria = criteria_service.get_criteria(db, criteria_id)
    if not criteria.is_active or not criteria.category.is_active:
        raise AppException(
            f"Criteria {criteria_id} is not active and cannot be scored",
            status_code=422,
            error_code="CRITERIA_INACTIVE",
        )
    criteria_category_service.ensure_weights_valid(db)

    entry = _find_score(db, evaluation_id, criteria_id)
    if entry is None:
        entry = EvaluationScore(evaluation_id=evaluation_id, criteria_id=criteria_id, score=score)
        evaluation.scores.append(entry)
    else:
        entry.score = score

    breakdown = recalculate_total(db, evaluation)
    _commit_evaluation(db, evaluation_id)
    db.refresh(entry)

    logger.info(
        f"Score recorded: evaluation {evaluation_id}, criteria {criteria_id} = {score}",
        extra={"total_score": str(breakdown.total_score)},
    )
    return {
        "id": entry.id,
        "evaluation_id": evaluation_id,
        "criteria_id": criteria_id,
        "criteria_name": criteria.name,
        "score": entry.score,
        "total_score": breakdown.total_score,
        "warnings": _warnings(breakdown),
    }


def delete_score(db: Session, evaluation_id: int, criteria_id: int) -> Evaluation:
    evaluation = _get_evaluation(db, evaluation_id, for_update=True)
    ensure_mutable(evaluation.id, evaluation.status)

    entry = _find_score(db, evaluation_id, criteria_id)
    if entry is None:
        raise NotFoundError("Score", f"{evaluation_id}/{criteria_id}")

    evaluation.scores.remove(entry)
    recalculate_total(db, evaluation)
    _commit_evaluation(db, evaluation_id)
    db.refresh(evaluation)
    return evaluation


# --- Comments ---

def add_comment(db: Session, evaluation_id: int, criteria_id: int, data: CommentCreate) -> Comment:
    evaluation = _get_evaluation(db, evaluation_id)
    ensure_mutable(evaluation.id, evaluation.status)

    entry = _find_score(db, evaluation_id, criteria_id)
    if entry is None:
        raise AppException(
            "Score the criteria before commenting on it",
            status_code=422,
            error_code="SCORE_REQUIRED",
        )

    comment = Comment(score_id=entry.id, description=data.description.strip())
    with transaction(db):
        db.add(comment)
    db.refresh(comment)
    return comment


def update_comment(db: Session, comment_id: int, data: CommentUpdate) -> Comment:
    comment = db.get(Comment, comment_id)
    if not comment:
        raise NotFoundError("Comment", comment_id)
    evaluation = comment.score.evaluation
    ensure_mutable(evaluation.id, evaluation.status)

    with transaction(db):
        comment.description = data.description.strip()
    db.refresh(comment)
    return comment


def list_comments(db: Session, evaluation_id: int, criteria_id: int) -> List[Comment]:
    _get_evaluation(db, evaluation_id)
    entry = _find_score(db, evaluation_id, criteria_id)
    if entry is None:
        return []
    return [c for c in entry.comments if c.is_active]


# --- Read models ---

def list_evaluations(
    db: Session,
    status: Optional[EvaluationStatus] = None,
    period: Optional[str] = None,
    employee_id: Optional[int] = None,
    evaluator_id: Optional[int] = None,
    department_id: Optional[int] = None,
    limit: int = 100,
) -> List[Evaluation]:
    query = db.query(Evaluation).options(
        joinedload(Evaluation.employee).joinedload(User.department),
        joinedload(Evaluation.evaluator),
    )
    if status is not None:
        query = query.filter(Evaluation.status == EvaluationStatus(status).value)
    if period:
        query = query.filter(Evaluation.period == period)
    if employee_id is not None:
        query = query.filter(Evaluation.employee_id == employee_id)
    if evaluator_id is not None:
        query = query.filter(Evaluation.evaluator_id == evaluator_id)
    if department_id is not None:
        query = query.join(User, Evaluation.employee_id == User.id).filter(User.department_id == department_id)
    return query.order_by(Evaluation.created_at.desc(), Evaluation.id.desc()).limit(limit).all()


def to_list_item(evaluation: Evaluation) -> Dict[str, Any]:
    employee = evaluation.employee
    return {
        "id": evaluation.id,
        "employee_name": employee.full_name,
        "evaluator_name": evaluation.evaluator.full_name,
        "department_name": employee.department.name if employee.department else None,
        "period": evaluation.period,
        "status": evaluation.status,
        "total_score": evaluation.total_score,
        "created_at": evaluation.created_at,
        "completed_at": evaluation.completed_at,
    }


def get_evaluation_form(db: Session, evaluation_id: int) -> Dict[str, Any]:
    """All scorable criteria with the recorded score, role wording and comments."""
    evaluation = _get_evaluation(db, evaluation_id)
    by_criteria = {s.criteria_id: s for s in evaluation.scores}
    role_id = evaluation.employee.job_role_id

    rows = []
    for criteria in criteria_service.list_active_for_evaluation(db):
        entry = by_criteria.get(criteria.id)
        description = criteria_service.find_role_description(db, criteria.id, role_id)
        rows.append({
            "criteria_id": criteria.id,
            "name": criteria.name,
            "category_id": criteria.category_id,
            "category_name": criteria.category.name,
            "category_weight": criteria.category.weight,
            "base_description": criteria.base_description,
            "role_description": description.description if description else None,
            "score": entry.score if entry else None,
            "comments": [c.description for c in entry.comments if c.is_active] if entry else [],
        })

    return {
        "evaluation_id": evaluation.id,
        "employee_name": evaluation.employee.full_name,
        "evaluator_name": evaluation.evaluator.full_name,
        "period": evaluation.period,
        "status": evaluation.status,
        "total_score": evaluation.total_score,
        "general_comments": evaluation.general_comments,
        "criteria": rows,
    }


def get_evaluation_summary(db: Session, evaluation_id: int) -> Dict[str, Any]:
    """
    Breakdown of the weighted total per category.

    A completed evaluation reports its frozen total; the category breakdown
    is always computed against the current weights.
    """
    evaluation = _get_evaluation(db, evaluation_id)
    breakdown = calculate_breakdown(db, evaluation)

    scored = {s.criteria_id for s in evaluation.scores}
    scorable = {c.id for c in criteria_service.list_active_for_evaluation(db)}
    employee = evaluation.employee

    return {
        "evaluation_id": evaluation.id,
        "employee_name": employee.full_name,
        "evaluator_name": evaluation.evaluator.full_name,
        "department_name": employee.department.name if employee.department else None,
        "period": evaluation.period,
        "status": evaluation.status,
        "total_score": evaluation.total_score if evaluation.is_locked else breakdown.total_score,
        "created_at": evaluation.created_at,
        "completed_at": evaluation.completed_at,
        "score_count": len(evaluation.scores),
        "comment_count": sum(len(s.comments) for s in evaluation.scores),
        "is_complete": scorable.issubset(scored),
        "categories": [
            {
                "category_id": c.category_id,
                "category_name": c.category_name,
                "weight": c.weight,
                "scored_criteria": c.scored_criteria,
                "mean_score": c.mean_score,
                "normalized_score": c.normalized_score,
                "weighted_contribution": c.weighted_contribution,
            }
            for c in breakdown.categories
        ],
        "warnings": _warnings(breakdown),
    }


def get_dashboard(db: Session, recent_limit: int = 5) -> Dict[str, Any]:
    status_counts = {s.value: 0 for s in EvaluationStatus}
    for (status_value,) in db.query(Evaluation.status).all():
        status_counts[status_value] = status_counts.get(status_value, 0) + 1

    total = sum(status_counts.values())
    completed = status_counts[EvaluationStatus.COMPLETED.value]
    return {
        "status_counts": status_counts,
        "total_evaluations": total,
        "completed_evaluations": completed,
        "pending_evaluations": total - completed,
        "recent_evaluations": [to_list_item(e) for e in list_evaluations(db, limit=recent_limit)],
    }
