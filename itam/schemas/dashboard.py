"""
Dashboard schemas
"""
from typing import Dict
from pydantic import BaseModel


class EmployeeTotals(BaseModel):
    total: int
    active: int
    left: int


class AssetTotals(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    by_ownership: Dict[str, int]


class AssignmentTotals(BaseModel):
    total: int
    open: int


class DashboardStats(BaseModel):
    employees: EmployeeTotals
    assets: AssetTotals
    assignments: AssignmentTotals
