"""
Criteria Category Model.

A weighted grouping of evaluation criteria. The weights of all active
categories must total 100 before evaluations can be scored.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from perfeval.database import Base


class CriteriaCategory(Base):
    __tablename__ = "criteria_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    # Percentage contribution to the total score, 2 decimal places
    weight = Column(Numeric(5, 2, asdecimal=True), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    criteria = relationship("Criteria", back_populates="category", order_by="Criteria.id")

    def __repr__(self):
        return f"<CriteriaCategory {self.name} ({self.weight}%)>"

    @property
    def criteria_count(self) -> int:
        return len(self.criteria)
