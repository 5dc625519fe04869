"""
Main API router
"""
from fastapi import APIRouter

from itam.api.v1 import (
    health,
    auth,
    users,
    employees,
    assets,
    assignments,
    maintenance,
    locations,
    audit_logs,
    dashboard,
    reports,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(assets.router, prefix="/assets", tags=["assets"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["maintenance"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
