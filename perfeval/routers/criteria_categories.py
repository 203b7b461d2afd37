from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from perfeval.database import get_db
from perfeval.schemas.criteria import (
    CriteriaCategoryCreate,
    CriteriaCategoryResponse,
    CriteriaCategoryUpdate,
    CriteriaCategoryWithCriteria,
    RebalanceWeightRequest,
    WeightValidationResponse,
)
from perfeval.services import criteria_category_service

router = APIRouter(prefix="/criteria-categories", tags=["Criteria Categories"])


@router.get("/", response_model=List[CriteriaCategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return criteria_category_service.list_categories(db)


@router.get("/active", response_model=List[CriteriaCategoryResponse])
def list_active_categories(db: Session = Depends(get_db)):
    return criteria_category_service.list_active_categories(db)


@router.get("/validate-weights", response_model=WeightValidationResponse)
def validate_weights(db: Session = Depends(get_db)):
    """Report whether the active weights total 100%. Never modifies anything."""
    validation = criteria_category_service.validate_category_weights(db)
    return criteria_category_service.weight_validation_to_dict(validation)


@router.post("/rebalance", response_model=List[CriteriaCategoryResponse])
def rebalance_weights(request: RebalanceWeightRequest, db: Session = Depends(get_db)):
    """
    Pin the given categories to their proposed weights and redistribute the
    remaining percentage proportionally over the other active categories.
    """
    return criteria_category_service.rebalance_category_weights(db, request.weights)


@router.get("/{category_id}", response_model=CriteriaCategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return criteria_category_service.get_category(db, category_id)


@router.get("/{category_id}/with-criteria", response_model=CriteriaCategoryWithCriteria)
def get_category_with_criteria(category_id: int, db: Session = Depends(get_db)):
    return criteria_category_service.get_category(db, category_id)


@router.post("/", response_model=CriteriaCategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(data: CriteriaCategoryCreate, db: Session = Depends(get_db)):
    return criteria_category_service.create_category(db, data)


@router.put("/{category_id}", response_model=CriteriaCategoryResponse)
def update_category(category_id: int, data: CriteriaCategoryUpdate, db: Session = Depends(get_db)):
    return criteria_category_service.update_category(db, category_id, data)


@router.patch("/{category_id}/deactivate", response_model=CriteriaCategoryResponse)
def deactivate_category(category_id: int, db: Session = Depends(get_db)):
    return criteria_category_service.deactivate_category(db, category_id)


@router.patch("/{category_id}/reactivate", response_model=CriteriaCategoryResponse)
def reactivate_category(category_id: int, db: Session = Depends(get_db)):
    return criteria_category_service.reactivate_category(db, category_id)


@router.patch("/{category_id}/cascade-deactivate", response_model=CriteriaCategoryResponse)
def cascade_deactivate_category(category_id: int, db: Session = Depends(get_db)):
    return criteria_category_service.cascade_deactivate_category(db, category_id)


@router.delete("/{category_id}/permanent")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    criteria_category_service.delete_category(db, category_id)
    return {"message": f"Criteria category {category_id} permanently deleted"}
