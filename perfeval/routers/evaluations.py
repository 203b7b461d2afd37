from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from perfeval.database import get_db
from perfeval.schemas.evaluation import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    EvaluationCreate,
    EvaluationDashboard,
    EvaluationForm,
    EvaluationListItem,
    EvaluationResponse,
    EvaluationSummary,
    EvaluationUpdate,
    ScoreResponse,
    ScoreUpdate,
)
from perfeval.scoring.status import EvaluationStatus
from perfeval.services import evaluation_service

router = APIRouter(prefix="/evaluations", tags=["Evaluations"])


@router.get("/", response_model=List[EvaluationListItem])
def list_evaluations(
    status_filter: Optional[EvaluationStatus] = Query(None, alias="status"),
    period: Optional[str] = None,
    employee_id: Optional[int] = None,
    evaluator_id: Optional[int] = None,
    department_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    evaluations = evaluation_service.list_evaluations(
        db,
        status=status_filter,
        period=period,
        employee_id=employee_id,
        evaluator_id=evaluator_id,
        department_id=department_id,
        limit=limit,
    )
    return [evaluation_service.to_list_item(e) for e in evaluations]


@router.get("/dashboard", response_model=EvaluationDashboard)
def get_dashboard(db: Session = Depends(get_db)):
    return evaluation_service.get_dashboard(db)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
def update_comment(comment_id: int, data: CommentUpdate, db: Session = Depends(get_db)):
    return evaluation_service.update_comment(db, comment_id, data)


@router.get("/{evaluation_id}", response_model=EvaluationResponse)
def get_evaluation(evaluation_id: int, db: Session = Depends(get_db)):
    return evaluation_service.get_evaluation(db, evaluation_id)


@router.get("/{evaluation_id}/form", response_model=EvaluationForm)
def get_evaluation_form(evaluation_id: int, db: Session = Depends(get_db)):
    return evaluation_service.get_evaluation_form(db, evaluation_id)


@router.get("/{evaluation_id}/summary", response_model=EvaluationSummary)
def get_evaluation_summary(evaluation_id: int, db: Session = Depends(get_db)):
    return evaluation_service.get_evaluation_summary(db, evaluation_id)


@router.post("/", response_model=EvaluationResponse, status_code=status.HTTP_201_CREATED)
def create_evaluation(data: EvaluationCreate, db: Session = Depends(get_db)):
    return evaluation_service.create_evaluation(db, data)


@router.put("/{evaluation_id}", response_model=EvaluationResponse)
def update_evaluation(evaluation_id: int, data: EvaluationUpdate, db: Session = Depends(get_db)):
    return evaluation_service.update_basic_info(db, evaluation_id, data)


@router.delete("/{evaluation_id}/permanent")
def delete_evaluation(evaluation_id: int, db: Session = Depends(get_db)):
    evaluation_service.delete_evaluation(db, evaluation_id)
    return {"message": f"Evaluation {evaluation_id} permanently deleted"}


@router.post("/{evaluation_id}/submit", response_model=EvaluationResponse)
def submit_evaluation(evaluation_id: int, db: Session = Depends(get_db)):
    return evaluation_service.submit_evaluation(db, evaluation_id)


@router.post("/{evaluation_id}/complete", response_model=EvaluationResponse)
def complete_evaluation(evaluation_id: int, db: Session = Depends(get_db)):
    return evaluation_service.complete_evaluation(db, evaluation_id)


# --- Scores ---

@router.put("/{evaluation_id}/criteria/{criteria_id}/score", response_model=ScoreResponse)
def record_score(evaluation_id: int, criteria_id: int, data: ScoreUpdate, db: Session = Depends(get_db)):
    """Create or update one criterion score; the evaluation total is recomputed."""
    return evaluation_service.record_score(db, evaluation_id, criteria_id, data.score)


@router.delete("/{evaluation_id}/criteria/{criteria_id}/score", response_model=EvaluationResponse)
def delete_score(evaluation_id: int, criteria_id: int, db: Session = Depends(get_db)):
    return evaluation_service.delete_score(db, evaluation_id, criteria_id)


# --- Comments ---

@router.post(
    "/{evaluation_id}/criteria/{criteria_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(evaluation_id: int, criteria_id: int, data: CommentCreate, db: Session = Depends(get_db)):
    return evaluation_service.add_comment(db, evaluation_id, criteria_id, data)


@router.get("/{evaluation_id}/criteria/{criteria_id}/comments", response_model=List[CommentResponse])
def list_comments(evaluation_id: int, criteria_id: int, db: Session = Depends(get_db)):
    return evaluation_service.list_comments(db, evaluation_id, criteria_id)
