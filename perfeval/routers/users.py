from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from perfeval.database import get_db
from perfeval.models.user import SystemRole
from perfeval.schemas.user import UserCreate, UserResponse, UserUpdate
from perfeval.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=List[UserResponse])
def list_users(
    department_id: Optional[int] = None,
    system_role: Optional[SystemRole] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
):
    return user_service.list_users(
        db,
        department_id=department_id,
        system_role=system_role,
        include_inactive=include_inactive,
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return user_service.get_user(db, user_id)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    return user_service.create_user(db, data)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: int, data: UserUpdate, db: Session = Depends(get_db)):
    return user_service.update_user(db, user_id, data)
