"""
Team Model.
A team groups evaluators with the employees they evaluate. Membership is
recorded as assignment rows: an evaluator joins a team with an assignment
that has no employee; each employee is then assigned to one of the team's
evaluators.
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from perfeval.database import Base


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    assignments = relationship(
        "TeamAssignment",
        back_populates="team",
        order_by="TeamAssignment.id",
    )

    def __repr__(self):
        return f"<Team {self.id}: {self.name}>"

    @property
    def member_count(self) -> int:
        members = set()
        for assignment in self.assignments:
            if assignment.is_active:
                members.add(assignment.evaluator_id)
                if assignment.employee_id is not None:
                    members.add(assignment.employee_id)
        return len(members)


class TeamAssignment(Base):
    __tablename__ = "team_assignments"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    evaluator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Null on the evaluator's own membership row
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    team = relationship("Team", back_populates="assignments")
    evaluator = relationship("User", foreign_keys=[evaluator_id])
    employee = relationship("User", foreign_keys=[employee_id])

    def __repr__(self):
        return f"<TeamAssignment team={self.team_id} evaluator={self.evaluator_id} employee={self.employee_id}>"

    @property
    def is_evaluator_membership(self) -> bool:
        return self.employee_id is None
