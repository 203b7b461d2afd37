from fastapi import APIRouter
from perfeval.routers import (
    criteria_categories, criteria, evaluations,
    departments, teams, users, job_roles, notifications
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(criteria_categories.router, tags=["Criteria Categories"])
api_router.include_router(criteria.router, tags=["Criteria"])
api_router.include_router(evaluations.router, tags=["Evaluations"])
api_router.include_router(departments.router, tags=["Departments"])
api_router.include_router(teams.router, tags=["Teams"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(job_roles.router, tags=["Job Roles"])
api_router.include_router(notifications.router, tags=["Notifications"])
