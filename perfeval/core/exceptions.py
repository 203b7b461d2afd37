from decimal import Decimal
from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"msg": self.message, "code": self.error_code}
        if self.details:
            payload["details"] = self.details
        return payload

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class DuplicateEntityError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=409,
            error_code="DUPLICATE_ENTITY"
        )

class InvalidWeightError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=422,
            error_code="INVALID_WEIGHT"
        )

class WeightSumInvalidError(AppException):
    """Active category weights do not add up to 100% within tolerance."""
    def __init__(self, total_weight: Decimal):
        super().__init__(
            message=(
                f"Active category weights must total 100%. "
                f"Current total: {total_weight}%"
            ),
            status_code=422,
            error_code="WEIGHT_SUM_INVALID",
            details={"total_weight": str(total_weight)}
        )
        self.total_weight = total_weight

class WeightExceedsTotalError(AppException):
    """Fixed weights alone already exceed 100%."""
    def __init__(self, fixed_total: Decimal):
        super().__init__(
            message=f"Total weight would exceed 100%. Requested total: {fixed_total}%",
            status_code=422,
            error_code="WEIGHT_EXCEEDS_TOTAL",
            details={"requested_total": str(fixed_total)}
        )
        self.fixed_total = fixed_total

class CategoryNotFoundError(AppException):
    def __init__(self, category_id: int):
        super().__init__(
            message=f"Active criteria category {category_id} not found",
            status_code=404,
            error_code="CATEGORY_NOT_FOUND",
            details={"category_id": category_id}
        )

class CategoryInUseError(AppException):
    def __init__(self, category_id: int, criteria_count: int):
        super().__init__(
            message=(
                f"Cannot permanently delete criteria category {category_id}. "
                f"Category has {criteria_count} criteria. Consider using cascade deactivation instead."
            ),
            status_code=409,
            error_code="CATEGORY_IN_USE"
        )

class CriteriaInUseError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CRITERIA_IN_USE"
        )

class InvalidScoreError(AppException):
    def __init__(self, score: int, score_min: int, score_max: int):
        super().__init__(
            message=f"Score must be between {score_min} and {score_max}, got {score}",
            status_code=422,
            error_code="INVALID_SCORE"
        )

class EvaluationLockedError(AppException):
    """Completed evaluations are frozen."""
    def __init__(self, evaluation_id: int):
        super().__init__(
            message=f"Evaluation {evaluation_id} is completed and can no longer be modified",
            status_code=409,
            error_code="EVALUATION_LOCKED",
            details={"evaluation_id": evaluation_id}
        )

class InvalidStatusTransitionError(AppException):
    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot move evaluation from {current} to {target}",
            status_code=409,
            error_code="INVALID_STATUS_TRANSITION",
            details={"current": current, "target": target}
        )

class IncompleteEvaluationError(AppException):
    def __init__(self, missing_criteria_ids: list):
        super().__init__(
            message="All active criteria must have scores before submission",
            status_code=422,
            error_code="EVALUATION_INCOMPLETE",
            details={"missing_criteria_ids": missing_criteria_ids}
        )

class ConcurrencyConflictError(AppException):
    def __init__(self, evaluation_id: int):
        super().__init__(
            message=f"Evaluation {evaluation_id} was modified concurrently. Reload and retry.",
            status_code=409,
            error_code="CONCURRENT_MODIFICATION"
        )

class MissingCriteriaScoreError(AppException):
    """
    Soft error: a weighted category has no scored criteria.

    Aggregation reports these on the score breakdown instead of raising them;
    the category is left out of the total.
    """
    def __init__(self, category_id: int, category_name: Optional[str] = None):
        label = category_name or f"#{category_id}"
        super().__init__(
            message=f"Category {label} has no scored criteria and was excluded from the total",
            status_code=200,
            error_code="MISSING_CRITERIA_SCORE",
            details={"category_id": category_id}
        )
        self.category_id = category_id

class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )

class TeamInUseError(AppException):
    def __init__(self, team_id: int, assignment_count: int):
        super().__init__(
            message=(
                f"Cannot permanently delete team {team_id}. Team has {assignment_count} assignment(s) "
                f"(active and inactive). Consider using cascade deactivation instead."
            ),
            status_code=409,
            error_code="TEAM_IN_USE"
        )
