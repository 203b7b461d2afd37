"""
Category weight governance.

    validate_weights:  pure check that active weights total 100 ± tolerance
    rebalance_weights: pin some categories to proposed weights and spread the
                       remainder over the others in proportion to their
                       current weights

Both take plain value objects and return new ones; persistence lives in
perfeval.services.criteria_category_service.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
import logging

from perfeval.core.exceptions import (
    CategoryNotFoundError,
    InvalidWeightError,
    WeightExceedsTotalError,
    WeightSumInvalidError,
)
from perfeval.scoring.utils import HUNDRED, Number, round2, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class CategoryWeight:
    """An active category and its weight (percentage)."""
    category_id: int
    weight: Decimal
    name: Optional[str] = None


@dataclass(frozen=True)
class ProposedWeight:
    """Caller-supplied target weight for one category."""
    category_id: int
    proposed_weight: Decimal


@dataclass
class WeightValidation:
    is_valid: bool
    total_weight: Decimal
    remaining_weight: Decimal
    categories: List[CategoryWeight] = field(default_factory=list)


def validate_weights(
    active_categories: Sequence[CategoryWeight],
    tolerance: Number = DEFAULT_TOLERANCE,
) -> WeightValidation:
    """
    Check that the active category weights sum to 100%.

    An empty list sums to 0 and is therefore invalid.
    """
    total = sum((to_decimal(c.weight) for c in active_categories), Decimal("0"))
    is_valid = abs(total - HUNDRED) <= to_decimal(tolerance)
    return WeightValidation(
        is_valid=is_valid,
        total_weight=round2(total),
        remaining_weight=round2(HUNDRED - total),
        categories=list(active_categories),
    )


def _collect_fixed(
    current_by_id: Dict[int, CategoryWeight],
    proposed: Sequence[ProposedWeight],
) -> Dict[int, Decimal]:
    fixed: Dict[int, Decimal] = {}
    for proposal in proposed:
        if proposal.category_id not in current_by_id:
            raise CategoryNotFoundError(proposal.category_id)
        if proposal.category_id in fixed:
            raise InvalidWeightError(
                f"Category {proposal.category_id} appears more than once in the proposal"
            )
        weight = to_decimal(proposal.proposed_weight)
        if weight < 0 or weight > HUNDRED:
            raise InvalidWeightError(
                f"Weight for category {proposal.category_id} must be between 0 and 100, got {weight}"
            )
        fixed[proposal.category_id] = round2(weight)
    return fixed


def rebalance_weights(
    current: Sequence[CategoryWeight],
    proposed: Sequence[ProposedWeight],
    tolerance: Number = DEFAULT_TOLERANCE,
) -> List[CategoryWeight]:
    """
    Apply proposed weights and redistribute the remainder proportionally.

    Algorithm:
        remainder  = 100 - Σ fixed
        new_i      = old_i / Σ old_unfixed × remainder      (unfixed only)
        new_i      = remainder / n_unfixed                   (if Σ old_unfixed == 0)

    Every weight is rounded to 2 dp and the rounding residual is added to the
    largest unfixed category (ties: lowest id), or to the largest fixed one when
    every category was fixed, so the result totals exactly 100.00.

    Args:
        current: Active categories with their stored weights
        proposed: Target weights for the categories being pinned

    Returns:
        Every active category with its new weight, in the order of `current`

    Raises:
        CategoryNotFoundError: a proposal names a category that is not active
        InvalidWeightError: empty/duplicate proposal or weight outside [0, 100]
        WeightExceedsTotalError: the fixed weights alone exceed 100
        WeightSumInvalidError: every category is fixed and they do not total 100
    """
    if not proposed:
        raise InvalidWeightError("At least one proposed weight is required")

    current_by_id = {c.category_id: c for c in current}
    fixed = _collect_fixed(current_by_id, proposed)

    fixed_total = sum(fixed.values(), Decimal("0"))
    if fixed_total > HUNDRED:
        raise WeightExceedsTotalError(fixed_total)

    new_weights: Dict[int, Decimal] = dict(fixed)
    unfixed = [c for c in current if c.category_id not in fixed]

    if unfixed:
        remainder = HUNDRED - fixed_total
        old_total = sum((to_decimal(c.weight) for c in unfixed), Decimal("0"))
        for category in unfixed:
            if old_total > 0:
                share = to_decimal(category.weight) / old_total * remainder
            else:
                share = remainder / len(unfixed)
            new_weights[category.category_id] = round2(share)
        absorbers = [c.category_id for c in unfixed]
    else:
        if abs(fixed_total - HUNDRED) > to_decimal(tolerance):
            raise WeightSumInvalidError(fixed_total)
        absorbers = list(fixed)

    residual = HUNDRED - sum(new_weights.values(), Decimal("0"))
    if residual:
        target = max(absorbers, key=lambda cid: (new_weights[cid], -cid))
        new_weights[target] += residual
        logger.debug(f"Rounding residual {residual} absorbed by category {target}")

    return [replace(c, weight=new_weights[c.category_id]) for c in current]
