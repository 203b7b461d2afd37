"""
User and Job Role Service Layer

Users are evaluators, evaluated employees, or administrators. Job roles only
select which role-specific criterion description an employee sees.
"""

from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from perfeval.core.exceptions import DuplicateEntityError, NotFoundError
from perfeval.database import transaction
from perfeval.models.job_role import JobRole
from perfeval.models.user import User, SystemRole
from perfeval.schemas.user import JobRoleCreate, JobRoleUpdate, UserCreate, UserUpdate
from perfeval.services import department_service

logger = logging.getLogger(__name__)


# --- Users ---

def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def list_users(
    db: Session,
    department_id: Optional[int] = None,
    system_role: Optional[SystemRole] = None,
    include_inactive: bool = False,
) -> List[User]:
    query = db.query(User)
    if department_id is not None:
        query = query.filter(User.department_id == department_id)
    if system_role is not None:
        query = query.filter(User.system_role == system_role)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.last_name, User.first_name).all()


def create_user(db: Session, data: UserCreate) -> User:
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise DuplicateEntityError(f"User with email {email} already exists")

    department_service.get_department(db, data.department_id)
    if data.job_role_id is not None:
        get_job_role(db, data.job_role_id)

    user = User(
        email=email,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        department_id=data.department_id,
        system_role=data.system_role,
        job_role_id=data.job_role_id,
    )
    with transaction(db):
        db.add(user)
    db.refresh(user)
    logger.info(f"User created: {user.id} ({user.system_role.value})")
    return user


def update_user(db: Session, user_id: int, data: UserUpdate) -> User:
    user = get_user(db, user_id)

    if data.department_id is not None:
        department_service.get_department(db, data.department_id)
    if data.job_role_id is not None:
        get_job_role(db, data.job_role_id)

    with transaction(db):
        if data.department_id is not None:
            user.department_id = data.department_id
        if data.job_role_id is not None:
            user.job_role_id = data.job_role_id
        if data.first_name is not None:
            user.first_name = data.first_name.strip()
        if data.last_name is not None:
            user.last_name = data.last_name.strip()
        if data.system_role is not None:
            user.system_role = data.system_role
        if data.is_active is not None:
            user.is_active = data.is_active
    db.refresh(user)
    return user


# --- Job Roles ---

def get_job_role(db: Session, role_id: int) -> JobRole:
    role = db.get(JobRole, role_id)
    if not role:
        raise NotFoundError("Job role", role_id)
    return role


def list_job_roles(db: Session, include_inactive: bool = False) -> List[JobRole]:
    query = db.query(JobRole)
    if not include_inactive:
        query = query.filter(JobRole.is_active.is_(True))
    return query.order_by(JobRole.name).all()


def create_job_role(db: Session, data: JobRoleCreate) -> JobRole:
    name = data.name.strip()
    if db.query(JobRole).filter(JobRole.name == name).first():
        raise DuplicateEntityError(f"Job role '{name}' already exists")
    role = JobRole(name=name, description=data.description)
    with transaction(db):
        db.add(role)
    db.refresh(role)
    return role


def update_job_role(db: Session, role_id: int, data: JobRoleUpdate) -> JobRole:
    role = get_job_role(db, role_id)
    name = data.name.strip() if data.name is not None else role.name
    if name != role.name and db.query(JobRole).filter(JobRole.name == name, JobRole.id != role_id).first():
        raise DuplicateEntityError(f"Job role '{name}' already exists")

    with transaction(db):
        role.name = name
        if data.description is not None:
            role.description = data.description
        if data.is_active is not None:
            role.is_active = data.is_active
    db.refresh(role)
    return role
