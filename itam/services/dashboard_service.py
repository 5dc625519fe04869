"""
Dashboard statistics
"""
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from itam.models.asset import Asset, AssetStatus, AssetType, Ownership
from itam.models.assignment import Assignment
from itam.models.employee import Employee, EmploymentStatus
from itam.services.lifecycle import OPEN_STATUSES


def _grouped_counts(db: Session, column, members) -> Dict[str, int]:
    """Row counts per enum member, zero-filled so every member is present."""
    counts = {m.value: 0 for m in members}
    for value, count in db.query(column, func.count()).group_by(column).all():
        key = value.value if hasattr(value, "value") else str(value)
        counts[key] = count
    return counts


def get_dashboard_stats(db: Session) -> Dict:
    """
    Totals for the dashboard

    Returns:
        {"employees": {total, active, left},
         "assets": {total, by_status, by_type, by_ownership},
         "assignments": {total, open}}
    """
    employees_by_status = _grouped_counts(db, Employee.status, EmploymentStatus)
    return {
        "employees": {
            "total": sum(employees_by_status.values()),
            "active": employees_by_status[EmploymentStatus.ACTIVE.value],
            "left": employees_by_status[EmploymentStatus.LEFT.value],
        },
        "assets": {
            "total": db.query(Asset).count(),
            "by_status": _grouped_counts(db, Asset.status, AssetStatus),
            "by_type": _grouped_counts(db, Asset.type, AssetType),
            "by_ownership": _grouped_counts(db, Asset.ownership, Ownership),
        },
        "assignments": {
            "total": db.query(Assignment).count(),
            "open": db.query(Assignment).filter(Assignment.status.in_(OPEN_STATUSES)).count(),
        },
    }
