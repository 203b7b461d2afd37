from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from perfeval.database import get_db
from perfeval.schemas.department import DepartmentCreate, DepartmentResponse, DepartmentUpdate
from perfeval.services import department_service

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.get("/", response_model=List[DepartmentResponse])
def list_departments(include_inactive: bool = False, db: Session = Depends(get_db)):
    return department_service.list_departments(db, include_inactive=include_inactive)


@router.get("/{department_id}", response_model=DepartmentResponse)
def get_department(department_id: int, db: Session = Depends(get_db)):
    return department_service.get_department(db, department_id)


@router.post("/", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(data: DepartmentCreate, db: Session = Depends(get_db)):
    return department_service.create_department(db, data)


@router.put("/{department_id}", response_model=DepartmentResponse)
def update_department(department_id: int, data: DepartmentUpdate, db: Session = Depends(get_db)):
    return department_service.update_department(db, department_id, data)
