from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime


class TeamBase(BaseModel):
    """Base schema for team data."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class TeamCreate(TeamBase):
    """Schema for creating a new team."""
    pass


class TeamUpdate(BaseModel):
    """Schema for updating a team."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class TeamResponse(TeamBase):
    """Schema for team response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Computed fields
    member_count: Optional[int] = None


class TeamMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    is_active: bool


class TeamWithMembersResponse(TeamResponse):
    evaluators: List[TeamMember] = []
    employees: List[TeamMember] = []


class AssignEvaluatorRequest(BaseModel):
    evaluator_id: int


class AssignEmployeeRequest(BaseModel):
    employee_id: int
    evaluator_id: int


class TeamAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    evaluator_id: int
    employee_id: Optional[int] = None
    is_active: bool
    assigned_at: Optional[datetime] = None
