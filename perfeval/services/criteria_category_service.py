"""
Criteria Category Service Layer

Owns the weight invariant: the active categories must total 100% before any
evaluation is created or scored. The arithmetic lives in
perfeval.scoring.weights; this module loads the rows, calls it, and persists
the result atomically. Every weight or membership change also refreshes the
stored totals of open evaluations in the same transaction.

Architecture:
- Router -> Service (this module) -> Models / perfeval.scoring
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from perfeval.core.config import settings
from perfeval.core.exceptions import (
    CategoryInUseError,
    DuplicateEntityError,
    NotFoundError,
    WeightExceedsTotalError,
    WeightSumInvalidError,
)
from perfeval.database import transaction
from perfeval.models.criteria import Criteria
from perfeval.models.criteria_category import CriteriaCategory
from perfeval.schemas.criteria import (
    CriteriaCategoryCreate,
    CriteriaCategoryUpdate,
    RebalanceWeightItem,
)
from perfeval.scoring.utils import HUNDRED, round2
from perfeval.scoring.weights import (
    CategoryWeight,
    ProposedWeight,
    WeightValidation,
    rebalance_weights,
    validate_weights,
)

logger = logging.getLogger(__name__)


def get_category(db: Session, category_id: int) -> CriteriaCategory:
    category = db.get(CriteriaCategory, category_id)
    if not category:
        raise NotFoundError("Criteria category", category_id)
    return category


def list_categories(db: Session, active_only: bool = False) -> List[CriteriaCategory]:
    query = db.query(CriteriaCategory)
    if active_only:
        query = query.filter(CriteriaCategory.is_active.is_(True))
    return query.order_by(CriteriaCategory.id).all()


def list_active_categories(db: Session, for_update: bool = False) -> List[CriteriaCategory]:
    query = db.query(CriteriaCategory).filter(CriteriaCategory.is_active.is_(True))
    if for_update:
        query = query.with_for_update()
    return query.order_by(CriteriaCategory.id).all()


def _active_total(db: Session, exclude_id: Optional[int] = None) -> Decimal:
    # Summed in Python: SQLite stores NUMERIC as REAL and SUM() would return a float
    return sum(
        (c.weight for c in list_active_categories(db) if c.id != exclude_id),
        Decimal("0"),
    )


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(CriteriaCategory).filter(CriteriaCategory.name == name)
    if exclude_id is not None:
        query = query.filter(CriteriaCategory.id != exclude_id)
    if query.first():
        raise DuplicateEntityError(f"Criteria category '{name}' already exists")


def _recalculate_open_totals(db: Session) -> None:
    # evaluation_service imports this module
    from perfeval.services import evaluation_service
    evaluation_service.recalculate_open_totals(db)


def create_category(db: Session, data: CriteriaCategoryCreate) -> CriteriaCategory:
    """
    Create an active category.

    Rejects the weight if it would push the active total past 100%.
    """
    name = data.name.strip()
    _ensure_unique_name(db, name)

    weight = round2(data.weight)
    new_total = _active_total(db) + weight
    if new_total > HUNDRED:
        logger.warning(f"Rejected category '{name}': active total would be {new_total}%")
        raise WeightExceedsTotalError(new_total)

    category = CriteriaCategory(
        name=name,
        description=data.description.strip() if data.description else None,
        weight=weight,
        is_active=True,
    )
    with transaction(db):
        db.add(category)
    db.refresh(category)

    logger.info(f"Criteria category created: {category.id} ({category.name}, {category.weight}%)")
    return category


def update_category(db: Session, category_id: int, data: CriteriaCategoryUpdate) -> CriteriaCategory:
    category = get_category(db, category_id)

    new_weight = round2(data.weight) if data.weight is not None else category.weight
    will_be_active = data.is_active if data.is_active is not None else category.is_active

    if will_be_active and (new_weight != category.weight or not category.is_active):
        new_total = _active_total(db, exclude_id=category_id) + new_weight
        if new_total > HUNDRED:
            raise WeightExceedsTotalError(new_total)

    if data.name is not None and data.name.strip() != category.name:
        _ensure_unique_name(db, data.name.strip(), exclude_id=category_id)
        category.name = data.name.strip()
    if data.description is not None:
        category.description = data.description.strip()

    with transaction(db):
        category.weight = new_weight
        category.is_active = will_be_active
        _recalculate_open_totals(db)
    db.refresh(category)

    logger.info(f"Criteria category updated: {category_id}")
    return category


def deactivate_category(db: Session, category_id: int) -> CriteriaCategory:
    category = get_category(db, category_id)
    if category.is_active:
        with transaction(db):
            category.is_active = False
            _recalculate_open_totals(db)
        logger.info(f"Criteria category deactivated: {category_id}")
    db.refresh(category)
    return category


def reactivate_category(db: Session, category_id: int) -> CriteriaCategory:
    category = get_category(db, category_id)
    if not category.is_active:
        new_total = _active_total(db) + category.weight
        if new_total > HUNDRED:
            raise WeightExceedsTotalError(new_total)
        with transaction(db):
            category.is_active = True
            _recalculate_open_totals(db)
        logger.info(f"Criteria category reactivated: {category_id}")
    db.refresh(category)
    return category


def cascade_deactivate_category(db: Session, category_id: int) -> CriteriaCategory:
    """Deactivate the category and every criterion in it, all or nothing."""
    category = get_category(db, category_id)
    with transaction(db):
        for criterion in category.criteria:
            if criterion.is_active:
                criterion.is_active = False
        category.is_active = False
        _recalculate_open_totals(db)
    db.refresh(category)

    logger.info(f"Criteria category and its criteria cascade deactivated: {category_id}")
    return category


def delete_category(db: Session, category_id: int) -> None:
    """Permanently delete a category that owns no criteria."""
    category = get_category(db, category_id)
    criteria_count = db.query(Criteria).filter(Criteria.category_id == category_id).count()
    if criteria_count:
        raise CategoryInUseError(category_id, criteria_count)

    with transaction(db):
        db.delete(category)
    logger.warning(f"Criteria category permanently deleted: {category_id}")


def _to_weights(categories: Sequence[CriteriaCategory]) -> List[CategoryWeight]:
    return [CategoryWeight(category_id=c.id, weight=c.weight, name=c.name) for c in categories]


def validate_category_weights(db: Session) -> WeightValidation:
    """Pure check over the currently active categories. Never mutates."""
    return validate_weights(
        _to_weights(list_active_categories(db)),
        tolerance=settings.scoring.weight_tolerance,
    )


def ensure_weights_valid(db: Session) -> WeightValidation:
    """
    Precondition for creating and scoring evaluations.

    Raises:
        WeightSumInvalidError: active weights do not total 100% within tolerance
    """
    validation = validate_category_weights(db)
    if not validation.is_valid:
        logger.warning(f"Scoring blocked: active category weights total {validation.total_weight}%")
        raise WeightSumInvalidError(validation.total_weight)
    return validation


def rebalance_category_weights(
    db: Session,
    items: Sequence[RebalanceWeightItem],
) -> List[CriteriaCategory]:
    """
    Pin the proposed categories and redistribute the remainder over the rest.

    All recomputed weights are written in one transaction: either every
    category is updated or none is.

    Args:
        db: Database session
        items: Proposed weights per category

    Returns:
        The active categories with their new weights
    """
    proposals = [ProposedWeight(i.category_id, i.proposed_weight) for i in items]

    with transaction(db):
        categories = list_active_categories(db, for_update=True)
        applied = rebalance_weights(
            _to_weights(categories),
            proposals,
            tolerance=settings.scoring.weight_tolerance,
        )
        by_id = {c.id: c for c in categories}
        for result in applied:
            category = by_id[result.category_id]
            if category.weight != result.weight:
                category.weight = result.weight
        _recalculate_open_totals(db)

    logger.info(
        "Criteria category weights rebalanced",
        extra={"weights": {str(a.category_id): str(a.weight) for a in applied}},
    )
    return list_active_categories(db)


def weight_validation_to_dict(validation: WeightValidation) -> Dict[str, Any]:
    return {
        "is_valid": validation.is_valid,
        "total_weight": validation.total_weight,
        "remaining_weight": validation.remaining_weight,
        "categories": [
            {"id": c.category_id, "name": c.name, "weight": c.weight}
            for c in validation.categories
        ],
    }
