from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from perfeval.database import get_db
from perfeval.schemas.team import (
    AssignEmployeeRequest,
    AssignEvaluatorRequest,
    TeamAssignmentResponse,
    TeamCreate,
    TeamResponse,
    TeamUpdate,
    TeamWithMembersResponse,
)
from perfeval.services import team_service

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("/", response_model=List[TeamResponse])
def list_teams(include_inactive: bool = False, db: Session = Depends(get_db)):
    return team_service.list_teams(db, include_inactive=include_inactive)


@router.get("/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, db: Session = Depends(get_db)):
    return team_service.get_team(db, team_id)


@router.get("/{team_id}/members", response_model=TeamWithMembersResponse)
def get_team_with_members(team_id: int, db: Session = Depends(get_db)):
    return team_service.get_team_with_members(db, team_id)


@router.post("/", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(data: TeamCreate, db: Session = Depends(get_db)):
    return team_service.create_team(db, data)


@router.put("/{team_id}", response_model=TeamResponse)
def update_team(team_id: int, data: TeamUpdate, db: Session = Depends(get_db)):
    return team_service.update_team(db, team_id, data)


@router.patch("/{team_id}/deactivate", response_model=TeamResponse)
def deactivate_team(team_id: int, db: Session = Depends(get_db)):
    return team_service.deactivate_team(db, team_id)


@router.patch("/{team_id}/reactivate", response_model=TeamResponse)
def reactivate_team(team_id: int, db: Session = Depends(get_db)):
    return team_service.reactivate_team(db, team_id)


@router.patch("/{team_id}/cascade-deactivate", response_model=TeamResponse)
def cascade_deactivate_team(team_id: int, db: Session = Depends(get_db)):
    """Deactivate the team together with all of its assignments."""
    return team_service.cascade_deactivate_team(db, team_id)


@router.delete("/{team_id}/permanent")
def delete_team(team_id: int, db: Session = Depends(get_db)):
    team_service.delete_team(db, team_id)
    return {"message": f"Team {team_id} permanently deleted"}


# --- Membership ---

@router.get("/{team_id}/assignments", response_model=List[TeamAssignmentResponse])
def list_assignments(team_id: int, active_only: bool = False, db: Session = Depends(get_db)):
    return team_service.list_assignments(db, team_id, active_only=active_only)


@router.post(
    "/{team_id}/evaluators",
    response_model=TeamAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_evaluator(team_id: int, data: AssignEvaluatorRequest, db: Session = Depends(get_db)):
    return team_service.assign_evaluator(db, team_id, data.evaluator_id)


@router.post(
    "/{team_id}/employees",
    response_model=TeamAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_employee(team_id: int, data: AssignEmployeeRequest, db: Session = Depends(get_db)):
    return team_service.assign_employee(db, team_id, data.employee_id, data.evaluator_id)


@router.delete("/{team_id}/users/{user_id}")
def remove_member(team_id: int, user_id: int, db: Session = Depends(get_db)):
    removed = team_service.remove_member(db, team_id, user_id)
    return {"message": f"User {user_id} removed from team {team_id}", "assignments_deactivated": removed}
