from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from perfeval.database import get_db
from perfeval.schemas.criteria import (
    CriteriaCreate,
    CriteriaResponse,
    CriteriaUpdate,
    CriteriaWithRoleDescription,
    RoleDescriptionCreate,
    RoleDescriptionResponse,
    RoleDescriptionUpdate,
)
from perfeval.services import criteria_service

router = APIRouter(prefix="/criteria", tags=["Criteria"])


@router.get("/", response_model=List[CriteriaResponse])
def list_criteria(active_only: bool = False, db: Session = Depends(get_db)):
    return criteria_service.list_criteria(db, active_only=active_only)


@router.get("/active-for-evaluation", response_model=List[CriteriaResponse])
def list_active_for_evaluation(db: Session = Depends(get_db)):
    """Active criteria in active categories: what an evaluation form shows."""
    return criteria_service.list_active_for_evaluation(db)


@router.get("/categories/{category_id}", response_model=List[CriteriaResponse])
def list_criteria_for_category(category_id: int, active_only: bool = False, db: Session = Depends(get_db)):
    return criteria_service.list_criteria_for_category(db, category_id, active_only=active_only)


# --- Role descriptions ---

@router.put("/role-descriptions/{description_id}", response_model=RoleDescriptionResponse)
def update_role_description(description_id: int, data: RoleDescriptionUpdate, db: Session = Depends(get_db)):
    return criteria_service.update_role_description(db, description_id, data)


@router.delete("/role-descriptions/{description_id}")
def delete_role_description(description_id: int, db: Session = Depends(get_db)):
    criteria_service.delete_role_description(db, description_id)
    return {"message": f"Role description {description_id} deleted"}


@router.get("/{criteria_id}/role-descriptions", response_model=List[RoleDescriptionResponse])
def list_role_descriptions(criteria_id: int, db: Session = Depends(get_db)):
    return criteria_service.get_criteria(db, criteria_id).role_descriptions


@router.post(
    "/{criteria_id}/role-descriptions",
    response_model=RoleDescriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_role_description(criteria_id: int, data: RoleDescriptionCreate, db: Session = Depends(get_db)):
    return criteria_service.add_role_description(db, criteria_id, data)


@router.get("/{criteria_id}/roles/{role_id}", response_model=CriteriaWithRoleDescription)
def get_criteria_for_role(criteria_id: int, role_id: int, db: Session = Depends(get_db)):
    return criteria_service.get_criteria_with_role_description(db, criteria_id, role_id)


# --- Criteria ---

@router.get("/{criteria_id}", response_model=CriteriaResponse)
def get_criteria(criteria_id: int, db: Session = Depends(get_db)):
    return criteria_service.get_criteria(db, criteria_id)


@router.post("/", response_model=CriteriaResponse, status_code=status.HTTP_201_CREATED)
def create_criteria(data: CriteriaCreate, db: Session = Depends(get_db)):
    return criteria_service.create_criteria(db, data)


@router.put("/{criteria_id}", response_model=CriteriaResponse)
def update_criteria(criteria_id: int, data: CriteriaUpdate, db: Session = Depends(get_db)):
    return criteria_service.update_criteria(db, criteria_id, data)


@router.patch("/{criteria_id}/deactivate", response_model=CriteriaResponse)
def deactivate_criteria(criteria_id: int, db: Session = Depends(get_db)):
    return criteria_service.deactivate_criteria(db, criteria_id)


@router.patch("/{criteria_id}/reactivate", response_model=CriteriaResponse)
def reactivate_criteria(criteria_id: int, db: Session = Depends(get_db)):
    return criteria_service.reactivate_criteria(db, criteria_id)


@router.delete("/{criteria_id}/permanent")
def delete_criteria(criteria_id: int, db: Session = Depends(get_db)):
    criteria_service.delete_criteria(db, criteria_id)
    return {"message": f"Criteria {criteria_id} permanently deleted"}
