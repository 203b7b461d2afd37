"""
Pure scoring rules: category weight governance, score aggregation and the
evaluation status machine. Nothing in this package touches the database.
"""

from perfeval.scoring.aggregation import (
    CategoryScore,
    CriteriaCategoryRef,
    CriterionScore,
    ScoreBreakdown,
    compute_total_score,
    score_breakdown,
)
from perfeval.scoring.status import (
    EvaluationStatus,
    ensure_mutable,
    ensure_transition,
)
from perfeval.scoring.weights import (
    CategoryWeight,
    ProposedWeight,
    WeightValidation,
    rebalance_weights,
    validate_weights,
)

__all__ = [
    "CategoryScore",
    "CategoryWeight",
    "CriteriaCategoryRef",
    "CriterionScore",
    "EvaluationStatus",
    "ProposedWeight",
    "ScoreBreakdown",
    "WeightValidation",
    "compute_total_score",
    "ensure_mutable",
    "ensure_transition",
    "rebalance_weights",
    "score_breakdown",
    "validate_weights",
]
