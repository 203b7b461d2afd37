"""
Criteria Service Layer

Criteria belong to exactly one category. Deactivation and deletion are
refused while evaluations still depend on the criterion.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session, joinedload

from perfeval.core.exceptions import CriteriaInUseError, DuplicateEntityError, NotFoundError
from perfeval.database import transaction
from perfeval.models.criteria import Criteria, RoleCriteriaDescription
from perfeval.models.criteria_category import CriteriaCategory
from perfeval.models.evaluation import Evaluation, EvaluationScore
from perfeval.schemas.criteria import (
    CriteriaCreate,
    CriteriaUpdate,
    RoleDescriptionCreate,
    RoleDescriptionUpdate,
)
from perfeval.scoring.aggregation import CriteriaCategoryRef
from perfeval.scoring.status import EvaluationStatus
from perfeval.services import criteria_category_service, user_service

logger = logging.getLogger(__name__)


def get_criteria(db: Session, criteria_id: int) -> Criteria:
    criteria = db.get(Criteria, criteria_id)
    if not criteria:
        raise NotFoundError("Criteria", criteria_id)
    return criteria


def list_criteria(db: Session, active_only: bool = False) -> List[Criteria]:
    query = db.query(Criteria)
    if active_only:
        query = query.filter(Criteria.is_active.is_(True))
    return query.order_by(Criteria.category_id, Criteria.id).all()


def list_criteria_for_category(db: Session, category_id: int, active_only: bool = False) -> List[Criteria]:
    criteria_category_service.get_category(db, category_id)
    query = db.query(Criteria).filter(Criteria.category_id == category_id)
    if active_only:
        query = query.filter(Criteria.is_active.is_(True))
    return query.order_by(Criteria.id).all()


def list_active_for_evaluation(db: Session) -> List[Criteria]:
    """Active criteria whose category is active too: the scorable set."""
    return (
        db.query(Criteria)
        .join(CriteriaCategory, Criteria.category_id == CriteriaCategory.id)
        .options(joinedload(Criteria.category))
        .filter(Criteria.is_active.is_(True), CriteriaCategory.is_active.is_(True))
        .order_by(CriteriaCategory.id, Criteria.id)
        .all()
    )


def build_criteria_category_map(db: Session) -> Dict[int, CriteriaCategoryRef]:
    """criteria_id -> (category, weight) for every scorable criterion."""
    rows = (
        db.query(Criteria.id, CriteriaCategory.id, CriteriaCategory.weight, CriteriaCategory.name)
        .join(CriteriaCategory, Criteria.category_id == CriteriaCategory.id)
        .filter(Criteria.is_active.is_(True), CriteriaCategory.is_active.is_(True))
        .all()
    )
    return {
        criteria_id: CriteriaCategoryRef(
            category_id=category_id,
            category_weight=weight,
            category_name=name,
        )
        for criteria_id, category_id, weight, name in rows
    }


def create_criteria(db: Session, data: CriteriaCreate) -> Criteria:
    criteria_category_service.get_category(db, data.category_id)

    criteria = Criteria(
        category_id=data.category_id,
        name=data.name.strip(),
        base_description=data.base_description.strip() if data.base_description else None,
        is_active=True,
    )
    with transaction(db):
        db.add(criteria)
    db.refresh(criteria)

    logger.info(f"Criteria created: {criteria.id} in category {criteria.category_id}")
    return criteria


def update_criteria(db: Session, criteria_id: int, data: CriteriaUpdate) -> Criteria:
    criteria = get_criteria(db, criteria_id)

    if data.is_active is False and criteria.is_active:
        _ensure_not_in_open_evaluations(db, criteria_id)
    if data.category_id is not None:
        criteria_category_service.get_category(db, data.category_id)

    with transaction(db):
        if data.category_id is not None:
            criteria.category_id = data.category_id
        if data.name is not None:
            criteria.name = data.name.strip()
        if data.base_description is not None:
            criteria.base_description = data.base_description.strip()
        if data.is_active is not None:
            criteria.is_active = data.is_active
        if data.category_id is not None or data.is_active is not None:
            _recalculate_open_totals(db)
    db.refresh(criteria)
    return criteria


def _recalculate_open_totals(db: Session) -> None:
    # evaluation_service imports this module
    from perfeval.services import evaluation_service
    evaluation_service.recalculate_open_totals(db)


def _open_evaluation_score_count(db: Session, criteria_id: int) -> int:
    return (
        db.query(EvaluationScore)
        .join(Evaluation, EvaluationScore.evaluation_id == Evaluation.id)
        .filter(
            EvaluationScore.criteria_id == criteria_id,
            Evaluation.status != EvaluationStatus.COMPLETED.value,
        )
        .count()
    )


def _ensure_not_in_open_evaluations(db: Session, criteria_id: int) -> None:
    if _open_evaluation_score_count(db, criteria_id):
        raise CriteriaInUseError(
            "Cannot deactivate criteria. Criteria is being used in open evaluations. "
            "Complete the related evaluations first."
        )


def deactivate_criteria(db: Session, criteria_id: int) -> Criteria:
    criteria = get_criteria(db, criteria_id)
    if criteria.is_active:
        _ensure_not_in_open_evaluations(db, criteria_id)
        with transaction(db):
            criteria.is_active = False
        logger.info(f"Criteria deactivated: {criteria_id}")
    db.refresh(criteria)
    return criteria


def reactivate_criteria(db: Session, criteria_id: int) -> Criteria:
    criteria = get_criteria(db, criteria_id)
    if not criteria.is_active:
        with transaction(db):
            criteria.is_active = True
            _recalculate_open_totals(db)
        logger.info(f"Criteria reactivated: {criteria_id}")
    db.refresh(criteria)
    return criteria


def delete_criteria(db: Session, criteria_id: int) -> None:
    criteria = get_criteria(db, criteria_id)
    if db.query(EvaluationScore).filter(EvaluationScore.criteria_id == criteria_id).count():
        raise CriteriaInUseError(
            "Cannot permanently delete criteria. Criteria has evaluation scores. "
            "Consider using deactivation instead."
        )
    with transaction(db):
        db.delete(criteria)
    logger.warning(f"Criteria permanently deleted: {criteria_id}")


# --- Role descriptions ---

def get_role_description(db: Session, description_id: int) -> RoleCriteriaDescription:
    description = db.get(RoleCriteriaDescription, description_id)
    if not description:
        raise NotFoundError("Role description", description_id)
    return description


def find_role_description(db: Session, criteria_id: int, role_id: Optional[int]) -> Optional[RoleCriteriaDescription]:
    if role_id is None:
        return None
    return (
        db.query(RoleCriteriaDescription)
        .filter(
            RoleCriteriaDescription.criteria_id == criteria_id,
            RoleCriteriaDescription.role_id == role_id,
        )
        .first()
    )


def add_role_description(db: Session, criteria_id: int, data: RoleDescriptionCreate) -> RoleCriteriaDescription:
    get_criteria(db, criteria_id)
    user_service.get_job_role(db, data.role_id)
    if find_role_description(db, criteria_id, data.role_id):
        raise DuplicateEntityError(
            f"Criteria {criteria_id} already has a description for role {data.role_id}"
        )

    description = RoleCriteriaDescription(
        criteria_id=criteria_id,
        role_id=data.role_id,
        description=data.description.strip(),
        example=data.example.strip() if data.example else None,
    )
    with transaction(db):
        db.add(description)
    db.refresh(description)
    return description


def update_role_description(db: Session, description_id: int, data: RoleDescriptionUpdate) -> RoleCriteriaDescription:
    description = get_role_description(db, description_id)
    with transaction(db):
        if data.description is not None:
            description.description = data.description.strip()
        if data.example is not None:
            description.example = data.example.strip()
    db.refresh(description)
    return description


def delete_role_description(db: Session, description_id: int) -> None:
    description = get_role_description(db, description_id)
    with transaction(db):
        db.delete(description)


def get_criteria_with_role_description(db: Session, criteria_id: int, role_id: int) -> Dict[str, Any]:
    criteria = get_criteria(db, criteria_id)
    user_service.get_job_role(db, role_id)
    description = find_role_description(db, criteria_id, role_id)
    return {
        "id": criteria.id,
        "name": criteria.name,
        "category_name": criteria.category.name,
        "category_weight": criteria.category.weight,
        "base_description": criteria.base_description,
        "role_description": description.description if description else None,
        "role_example": description.example if description else None,
        "is_active": criteria.is_active,
    }
