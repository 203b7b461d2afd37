"""
Department Service Layer

Reference data for users. Departments are soft-deactivated, never deleted,
because users keep a foreign key to them.
"""

from typing import List
import logging

from sqlalchemy.orm import Session

from perfeval.core.exceptions import DuplicateEntityError, NotFoundError
from perfeval.database import transaction
from perfeval.models.department import Department
from perfeval.schemas.department import DepartmentCreate, DepartmentUpdate

logger = logging.getLogger(__name__)


def get_department(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id)
    return department


def list_departments(db: Session, include_inactive: bool = False) -> List[Department]:
    query = db.query(Department)
    if not include_inactive:
        query = query.filter(Department.is_active.is_(True))
    return query.order_by(Department.name).all()


def _ensure_unique_name(db: Session, name: str, exclude_id: int = None) -> None:
    query = db.query(Department).filter(Department.name == name)
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    if query.first():
        raise DuplicateEntityError(f"Department '{name}' already exists")


def create_department(db: Session, data: DepartmentCreate) -> Department:
    name = data.name.strip()
    _ensure_unique_name(db, name)

    department = Department(name=name, description=data.description)
    with transaction(db):
        db.add(department)
    db.refresh(department)
    logger.info(f"Department created: {department.id} ({department.name})")
    return department


def update_department(db: Session, department_id: int, data: DepartmentUpdate) -> Department:
    department = get_department(db, department_id)

    name = data.name.strip() if data.name is not None else department.name
    if name != department.name:
        _ensure_unique_name(db, name, exclude_id=department_id)

    with transaction(db):
        department.name = name
        if data.description is not None:
            department.description = data.description
        if data.is_active is not None:
            department.is_active = data.is_active
    db.refresh(department)
    return department
