"""
Evaluation score aggregation.

Formula:
    mean_c        = average raw score of the criteria scored in category c
    normalized_c  = mean_c × scale_factor              (20 maps 1-5 onto 0-100)
    total         = Σ normalized_c × weight_c / 100

Unscored criteria are left out of their category mean. A category with no
scored criteria is left out of the total and its weight is not handed to the
others; it is reported as a MissingCriteriaScoreError on the breakdown.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence
import logging

from perfeval.core.exceptions import MissingCriteriaScoreError
from perfeval.scoring.utils import HUNDRED, Number, round2, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_SCALE_FACTOR = Decimal("20")


@dataclass(frozen=True)
class CriterionScore:
    criteria_id: int
    score: int


@dataclass(frozen=True)
class CriteriaCategoryRef:
    """Where a criterion sits: its category and that category's weight."""
    category_id: int
    category_weight: Decimal
    category_name: Optional[str] = None


@dataclass
class CategoryScore:
    """Per-category result with breakdown."""
    category_id: int
    category_name: Optional[str]
    weight: Decimal
    scored_criteria: int
    mean_score: Decimal
    normalized_score: Decimal
    weighted_contribution: Decimal


@dataclass
class ScoreBreakdown:
    total_score: Decimal
    categories: List[CategoryScore] = field(default_factory=list)
    missing: List[MissingCriteriaScoreError] = field(default_factory=list)

    @property
    def scored_weight(self) -> Decimal:
        """Sum of the weights that actually contributed to the total."""
        return sum((c.weight for c in self.categories), Decimal("0"))


def score_breakdown(
    scores: Sequence[CriterionScore],
    criteria_category_map: Mapping[int, CriteriaCategoryRef],
    scale_factor: Number = DEFAULT_SCALE_FACTOR,
) -> ScoreBreakdown:
    """
    Aggregate raw criterion scores into a weighted total with breakdown.

    Args:
        scores: Recorded scores of one evaluation
        criteria_category_map: criteria_id -> owning category and its weight;
            categories reachable through this map but without any score are
            reported as missing
        scale_factor: Multiplier from the raw scale onto 0-100

    Returns:
        ScoreBreakdown whose total_score is rounded to 2 dp
    """
    factor = to_decimal(scale_factor)

    grouped: Dict[int, List[int]] = {}
    for entry in scores:
        ref = criteria_category_map.get(entry.criteria_id)
        if ref is None:
            logger.warning(f"Ignoring score for unmapped criteria {entry.criteria_id}")
            continue
        grouped.setdefault(ref.category_id, []).append(entry.score)

    categories: Dict[int, CriteriaCategoryRef] = {}
    for ref in criteria_category_map.values():
        categories.setdefault(ref.category_id, ref)

    total = Decimal("0")
    results: List[CategoryScore] = []
    missing: List[MissingCriteriaScoreError] = []

    for category_id in sorted(categories):
        ref = categories[category_id]
        raw = grouped.get(category_id)
        if not raw:
            missing.append(MissingCriteriaScoreError(category_id, ref.category_name))
            continue

        weight = to_decimal(ref.category_weight)
        mean = Decimal(sum(raw)) / Decimal(len(raw))
        normalized = mean * factor
        contribution = normalized * weight / HUNDRED
        total += contribution

        results.append(CategoryScore(
            category_id=category_id,
            category_name=ref.category_name,
            weight=round2(weight),
            scored_criteria=len(raw),
            mean_score=round2(mean),
            normalized_score=round2(normalized),
            weighted_contribution=round2(contribution),
        ))

    return ScoreBreakdown(total_score=round2(total), categories=results, missing=missing)


def compute_total_score(
    scores: Sequence[CriterionScore],
    criteria_category_map: Mapping[int, CriteriaCategoryRef],
    scale_factor: Number = DEFAULT_SCALE_FACTOR,
) -> Decimal:
    """
    Weighted total of an evaluation on the 0-100 scale, 2 dp.

    Returns Decimal("0.00") when nothing has been scored.

    Examples:
        >>> refs = {
        ...     1: CriteriaCategoryRef(10, Decimal("60")),
        ...     2: CriteriaCategoryRef(10, Decimal("60")),
        ...     3: CriteriaCategoryRef(20, Decimal("40")),
        ... }
        >>> compute_total_score(
        ...     [CriterionScore(1, 4), CriterionScore(2, 5), CriterionScore(3, 3)], refs
        ... )
        Decimal('78.00')
    """
    return score_breakdown(scores, criteria_category_map, scale_factor).total_score
