from sqlalchemy import Column, Integer, String, Boolean, Text
from sqlalchemy.orm import relationship
from perfeval.database import Base

class JobRole(Base):
    __tablename__ = "job_roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)  # "Developer", "QA Specialist"
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    criteria_descriptions = relationship("RoleCriteriaDescription", back_populates="role", cascade="all, delete-orphan")
