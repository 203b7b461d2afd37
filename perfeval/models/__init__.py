# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    department, user, job_role,
    criteria_category, criteria,
    evaluation, notification, team
)

# Explicit class exports for cleaner imports
from .department import Department
from .user import User, SystemRole
from .job_role import JobRole
from .criteria_category import CriteriaCategory
from .criteria import Criteria, RoleCriteriaDescription
from .evaluation import Evaluation, EvaluationScore, Comment
from .notification import Notification
from .team import Team, TeamAssignment

__all__ = [
    "Department",
    "User",
    "SystemRole",
    "JobRole",
    "CriteriaCategory",
    "Criteria",
    "RoleCriteriaDescription",
    "Evaluation",
    "EvaluationScore",
    "Comment",
    "Notification",
    "Team",
    "TeamAssignment",
]
