"""
Evaluation, EvaluationScore and Comment models.

An evaluation holds one score row per scored criterion and a denormalized
total_score that is recomputed on every score write until the evaluation is
completed. The `version` column is an optimistic concurrency token: SQLAlchemy
bumps it on every UPDATE and raises StaleDataError when a concurrent writer
already moved it.
"""
from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, Date, Numeric, DateTime, Boolean, ForeignKey, Text, UniqueConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from perfeval.database import Base
from perfeval.scoring.status import EvaluationStatus


class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, index=True)
    evaluator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    period = Column(String(100), nullable=False, index=True)  # e.g. "2025-H1"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    status = Column(String(20), default=EvaluationStatus.DRAFT.value, nullable=False, index=True)
    total_score = Column(Numeric(5, 2, asdecimal=True), default=Decimal("0.00"), nullable=False)
    general_comments = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    evaluator = relationship("User", foreign_keys=[evaluator_id])
    employee = relationship("User", foreign_keys=[employee_id])
    scores = relationship(
        "EvaluationScore",
        back_populates="evaluation",
        cascade="all, delete-orphan",
        order_by="EvaluationScore.criteria_id",
    )

    def __repr__(self):
        return f"<Evaluation {self.id} ({self.status}) employee={self.employee_id}>"

    @property
    def is_locked(self) -> bool:
        return self.status == EvaluationStatus.COMPLETED.value


class EvaluationScore(Base):
    __tablename__ = "evaluation_scores"
    __table_args__ = (
        UniqueConstraint("criteria_id", "evaluation_id", name="uq_evaluation_score_criteria"),
    )

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    criteria_id = Column(Integer, ForeignKey("criteria.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    evaluation = relationship("Evaluation", back_populates="scores")
    criteria = relationship("Criteria", back_populates="scores")
    comments = relationship("Comment", back_populates="score", cascade="all, delete-orphan", order_by="Comment.id")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    score_id = Column(Integer, ForeignKey("evaluation_scores.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    score = relationship("EvaluationScore", back_populates="comments")
