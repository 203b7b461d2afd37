from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from perfeval.database import get_db
from perfeval.schemas.user import JobRoleCreate, JobRoleResponse, JobRoleUpdate
from perfeval.services import user_service

router = APIRouter(prefix="/job-roles", tags=["Job Roles"])


@router.get("/", response_model=List[JobRoleResponse])
def list_job_roles(include_inactive: bool = False, db: Session = Depends(get_db)):
    return user_service.list_job_roles(db, include_inactive=include_inactive)


@router.get("/{role_id}", response_model=JobRoleResponse)
def get_job_role(role_id: int, db: Session = Depends(get_db)):
    return user_service.get_job_role(db, role_id)


@router.post("/", response_model=JobRoleResponse, status_code=status.HTTP_201_CREATED)
def create_job_role(data: JobRoleCreate, db: Session = Depends(get_db)):
    return user_service.create_job_role(db, data)


@router.put("/{role_id}", response_model=JobRoleResponse)
def update_job_role(role_id: int, data: JobRoleUpdate, db: Session = Depends(get_db)):
    return user_service.update_job_role(db, role_id, data)
