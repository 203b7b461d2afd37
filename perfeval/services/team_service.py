"""
Team Service Layer

Teams group evaluators with the employees they evaluate. An evaluator joins
a team first; employees are then assigned to one of the team's evaluators.
Removing members and deactivating teams only flips is_active, so the
assignment history is kept.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from perfeval.core.exceptions import AppException, DuplicateEntityError, NotFoundError, TeamInUseError
from perfeval.database import transaction
from perfeval.models.team import Team, TeamAssignment
from perfeval.schemas.team import TeamCreate, TeamUpdate
from perfeval.services import user_service

logger = logging.getLogger(__name__)


def get_team(db: Session, team_id: int) -> Team:
    team = db.get(Team, team_id)
    if not team:
        raise NotFoundError("Team", team_id)
    return team


def list_teams(db: Session, include_inactive: bool = False) -> List[Team]:
    query = db.query(Team)
    if not include_inactive:
        query = query.filter(Team.is_active.is_(True))
    return query.order_by(Team.name).all()


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Team).filter(Team.name == name)
    if exclude_id is not None:
        query = query.filter(Team.id != exclude_id)
    if query.first():
        raise DuplicateEntityError(f"Team '{name}' already exists")


def create_team(db: Session, data: TeamCreate) -> Team:
    name = data.name.strip()
    _ensure_unique_name(db, name)

    team = Team(name=name, description=data.description.strip() if data.description else None)
    with transaction(db):
        db.add(team)
    db.refresh(team)
    logger.info(f"Team created: {team.id} ({team.name})")
    return team


def update_team(db: Session, team_id: int, data: TeamUpdate) -> Team:
    team = get_team(db, team_id)

    name = data.name.strip() if data.name is not None else team.name
    if name != team.name:
        _ensure_unique_name(db, name, exclude_id=team_id)

    with transaction(db):
        team.name = name
        if data.description is not None:
            team.description = data.description.strip()
        if data.is_active is not None:
            team.is_active = data.is_active
    db.refresh(team)

    logger.info(f"Team updated: {team_id}")
    return team


def deactivate_team(db: Session, team_id: int) -> Team:
    team = get_team(db, team_id)
    if team.is_active:
        with transaction(db):
            team.is_active = False
        logger.info(f"Team deactivated: {team_id}")
    db.refresh(team)
    return team


def reactivate_team(db: Session, team_id: int) -> Team:
    team = get_team(db, team_id)
    if not team.is_active:
        with transaction(db):
            team.is_active = True
        logger.info(f"Team reactivated: {team_id}")
    db.refresh(team)
    return team


def cascade_deactivate_team(db: Session, team_id: int) -> Team:
    """Deactivate the team and every active assignment in it, all or nothing."""
    team = get_team(db, team_id)
    with transaction(db):
        for assignment in team.assignments:
            if assignment.is_active:
                assignment.is_active = False
        team.is_active = False
    db.refresh(team)

    logger.info(f"Team and its assignments cascade deactivated: {team_id}")
    return team


def delete_team(db: Session, team_id: int) -> None:
    """Permanently delete a team that never had any assignment."""
    team = get_team(db, team_id)
    assignment_count = db.query(TeamAssignment).filter(TeamAssignment.team_id == team_id).count()
    if assignment_count:
        raise TeamInUseError(team_id, assignment_count)

    with transaction(db):
        db.delete(team)
    logger.warning(f"Team permanently deleted: {team_id}")


# --- Membership ---

def _get_active_team(db: Session, team_id: int) -> Team:
    team = get_team(db, team_id)
    if not team.is_active:
        raise AppException(f"Team {team_id} is inactive", status_code=422, error_code="TEAM_INACTIVE")
    return team


def _find_assignment(
    db: Session,
    team_id: int,
    evaluator_id: int,
    employee_id: Optional[int],
) -> Optional[TeamAssignment]:
    query = db.query(TeamAssignment).filter(
        TeamAssignment.team_id == team_id,
        TeamAssignment.evaluator_id == evaluator_id,
    )
    if employee_id is None:
        query = query.filter(TeamAssignment.employee_id.is_(None))
    else:
        query = query.filter(TeamAssignment.employee_id == employee_id)
    return query.first()


def assign_evaluator(db: Session, team_id: int, evaluator_id: int) -> TeamAssignment:
    """
    Add an evaluator to a team.

    A previous, removed membership is reactivated instead of duplicated.

    Raises:
        NotFoundError: team or user does not exist
        DuplicateEntityError: the evaluator is already on the team
    """
    _get_active_team(db, team_id)
    evaluator = user_service.get_user(db, evaluator_id)
    if not evaluator.can_evaluate:
        raise AppException(
            f"User {evaluator_id} must have the evaluator role",
            status_code=422,
            error_code="EVALUATOR_ROLE_REQUIRED",
        )

    assignment = _find_assignment(db, team_id, evaluator_id, None)
    if assignment and assignment.is_active:
        raise DuplicateEntityError(f"Evaluator {evaluator_id} is already assigned to team {team_id}")

    with transaction(db):
        if assignment:
            assignment.is_active = True
        else:
            assignment = TeamAssignment(team_id=team_id, evaluator_id=evaluator_id)
            db.add(assignment)
    db.refresh(assignment)

    logger.info(f"Evaluator {evaluator_id} assigned to team {team_id}")
    return assignment


def assign_employee(db: Session, team_id: int, employee_id: int, evaluator_id: int) -> TeamAssignment:
    """
    Assign an employee to one of the team's evaluators.

    Raises:
        NotFoundError: team or user does not exist
        DuplicateEntityError: the employee already has an evaluator on this team
    """
    _get_active_team(db, team_id)
    user_service.get_user(db, employee_id)
    user_service.get_user(db, evaluator_id)

    if employee_id == evaluator_id:
        raise AppException("An employee cannot be their own evaluator", status_code=422, error_code="SELF_EVALUATION")

    membership = _find_assignment(db, team_id, evaluator_id, None)
    if not membership or not membership.is_active:
        raise AppException(
            f"Evaluator {evaluator_id} is not assigned to team {team_id}",
            status_code=422,
            error_code="EVALUATOR_NOT_IN_TEAM",
        )

    already_assigned = (
        db.query(TeamAssignment)
        .filter(
            TeamAssignment.team_id == team_id,
            TeamAssignment.employee_id == employee_id,
            TeamAssignment.is_active.is_(True),
        )
        .first()
    )
    if already_assigned:
        raise DuplicateEntityError(
            f"Employee {employee_id} is already assigned to evaluator "
            f"{already_assigned.evaluator_id} in team {team_id}"
        )

    assignment = _find_assignment(db, team_id, evaluator_id, employee_id)
    with transaction(db):
        if assignment:
            assignment.is_active = True
        else:
            assignment = TeamAssignment(team_id=team_id, evaluator_id=evaluator_id, employee_id=employee_id)
            db.add(assignment)
    db.refresh(assignment)

    logger.info(f"Employee {employee_id} assigned to evaluator {evaluator_id} in team {team_id}")
    return assignment


def remove_member(db: Session, team_id: int, user_id: int) -> int:
    """
    Deactivate every active assignment of the user in the team.

    Removing an evaluator also releases the employees assigned to them.

    Returns:
        Number of assignments deactivated
    """
    get_team(db, team_id)
    assignments = (
        db.query(TeamAssignment)
        .filter(
            TeamAssignment.team_id == team_id,
            TeamAssignment.is_active.is_(True),
            or_(TeamAssignment.evaluator_id == user_id, TeamAssignment.employee_id == user_id),
        )
        .all()
    )
    if not assignments:
        raise NotFoundError("Team member", user_id)

    with transaction(db):
        for assignment in assignments:
            assignment.is_active = False

    logger.info(f"User {user_id} removed from team {team_id} ({len(assignments)} assignment(s))")
    return len(assignments)


def list_assignments(db: Session, team_id: int, active_only: bool = False) -> List[TeamAssignment]:
    get_team(db, team_id)
    query = db.query(TeamAssignment).filter(TeamAssignment.team_id == team_id)
    if active_only:
        query = query.filter(TeamAssignment.is_active.is_(True))
    return query.order_by(TeamAssignment.id).all()


def get_team_with_members(db: Session, team_id: int) -> Dict[str, Any]:
    """Team plus its distinct active evaluators and employees."""
    team = get_team(db, team_id)

    evaluators: Dict[int, Any] = {}
    employees: Dict[int, Any] = {}
    for assignment in team.assignments:
        if not assignment.is_active:
            continue
        if assignment.is_evaluator_membership:
            evaluators.setdefault(assignment.evaluator_id, assignment.evaluator)
        else:
            employees.setdefault(assignment.employee_id, assignment.employee)

    return {
        "id": team.id,
        "name": team.name,
        "description": team.description,
        "is_active": team.is_active,
        "created_at": team.created_at,
        "updated_at": team.updated_at,
        "member_count": team.member_count,
        "evaluators": list(evaluators.values()),
        "employees": list(employees.values()),
    }
