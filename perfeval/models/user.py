"""
User Model with system roles.
Users act as evaluators, evaluated employees, or administrators.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from perfeval.database import Base


class SystemRole(str, enum.Enum):
    """
    System roles with hierarchical permissions.

    - ADMIN: Manages categories, criteria and weights; sees every evaluation
    - EVALUATOR: Creates and scores evaluations for employees
    - EMPLOYEE: Is evaluated; read access to own evaluations
    """
    ADMIN = "ADMIN"
    EVALUATOR = "EVALUATOR"
    EMPLOYEE = "EMPLOYEE"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)

    system_role = Column(Enum(SystemRole), default=SystemRole.EMPLOYEE, nullable=False)

    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    # Position type, used to pick role-specific criterion descriptions
    job_role_id = Column(Integer, ForeignKey("job_roles.id"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    department = relationship("Department", back_populates="users")
    job_role = relationship("JobRole")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.system_role.value})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.system_role == SystemRole.ADMIN

    @property
    def can_evaluate(self) -> bool:
        """Check if user may open and score evaluations."""
        return self.system_role in [SystemRole.ADMIN, SystemRole.EVALUATOR]
