from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from perfeval.scoring.status import EvaluationStatus


class EvaluationCreate(BaseModel):
    evaluator_id: int
    employee_id: int
    period: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EvaluationUpdate(BaseModel):
    """Basic info only; scores go through the score endpoint."""
    period: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    general_comments: Optional[str] = Field(None, max_length=1000)


class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    evaluator_id: int
    employee_id: int
    period: str
    start_date: date
    end_date: date
    status: EvaluationStatus
    total_score: Decimal
    general_comments: Optional[str] = None
    created_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class EvaluationListItem(BaseModel):
    id: int
    employee_name: str
    evaluator_name: str
    department_name: Optional[str] = None
    period: str
    status: EvaluationStatus
    total_score: Decimal
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ScoreUpdate(BaseModel):
    score: int


class ScoreWarning(BaseModel):
    code: str
    msg: str
    category_id: Optional[int] = None


class ScoreResponse(BaseModel):
    id: int
    evaluation_id: int
    criteria_id: int
    criteria_name: str
    score: int
    total_score: Decimal
    warnings: List[ScoreWarning] = []


class CommentCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)


class CommentUpdate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    score_id: int
    description: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CriteriaWithScore(BaseModel):
    criteria_id: int
    name: str
    category_id: int
    category_name: str
    category_weight: Decimal
    base_description: Optional[str] = None
    role_description: Optional[str] = None
    score: Optional[int] = None
    comments: List[str] = []


class EvaluationForm(BaseModel):
    evaluation_id: int
    employee_name: str
    evaluator_name: str
    period: str
    status: EvaluationStatus
    total_score: Decimal
    general_comments: Optional[str] = None
    criteria: List[CriteriaWithScore]


class CategoryScoreItem(BaseModel):
    category_id: int
    category_name: Optional[str] = None
    weight: Decimal
    scored_criteria: int
    mean_score: Decimal
    normalized_score: Decimal
    weighted_contribution: Decimal


class EvaluationSummary(BaseModel):
    evaluation_id: int
    employee_name: str
    evaluator_name: str
    department_name: Optional[str] = None
    period: str
    status: EvaluationStatus
    total_score: Decimal
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    score_count: int
    comment_count: int
    is_complete: bool
    categories: List[CategoryScoreItem]
    warnings: List[ScoreWarning] = []


class EvaluationDashboard(BaseModel):
    status_counts: Dict[str, int]
    total_evaluations: int
    completed_evaluations: int
    pending_evaluations: int
    recent_evaluations: List[EvaluationListItem]
