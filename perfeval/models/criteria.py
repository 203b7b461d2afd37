from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from perfeval.database import Base


class Criteria(Base):
    __tablename__ = "criteria"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("criteria_categories.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    base_description = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("CriteriaCategory", back_populates="criteria")
    role_descriptions = relationship("RoleCriteriaDescription", back_populates="criteria", cascade="all, delete-orphan")
    scores = relationship("EvaluationScore", back_populates="criteria")

    def __repr__(self):
        return f"<Criteria {self.id}: {self.name}>"


class RoleCriteriaDescription(Base):
    """Per-job-role wording of a criterion. Does not affect scoring."""
    __tablename__ = "role_criteria_descriptions"
    __table_args__ = (
        UniqueConstraint("criteria_id", "role_id", name="uq_role_criteria_description"),
    )

    id = Column(Integer, primary_key=True, index=True)
    criteria_id = Column(Integer, ForeignKey("criteria.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("job_roles.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    example = Column(Text, nullable=True)

    criteria = relationship("Criteria", back_populates="role_descriptions")
    role = relationship("JobRole", back_populates="criteria_descriptions")
