"""
Report service - read-side state for asset and employee reports and CSV exports
"""
from datetime import date
from typing import Dict, Iterator, List, Optional

from sqlalchemy.orm import Session, joinedload

from itam.core.exceptions import ValidationFailedError
from itam.models.asset import Asset, AssetStatus
from itam.models.assignment import Assignment, AssignmentStatus
from itam.services import asset_service, employee_service
from itam.services.asset_service import calculate_book_value
from itam.utils.datetime_utils import iso_8601_utc, today_utc

ASSIGNMENT_CSV_HEADERS = [
    "assignment_id",
    "asset_tag",
    "serial_number",
    "asset_type",
    "employee_name",
    "badge_id",
    "department",
    "status",
    "start_date",
    "end_date",
    "accepted_at",
    "returned_at",
    "change_type",
    "change_reason",
]

ASSET_CSV_HEADERS = [
    "asset_id",
    "asset_tag",
    "type",
    "manufacturer",
    "model",
    "serial_number",
    "status",
    "ownership",
    "location",
    "purchase_date",
    "purchase_cost",
    "book_value",
    "warranty_expiry",
    "security_compliant",
]


def get_asset_report(db: Session, asset_id: int, as_of: Optional[date] = None) -> Dict:
    """Asset detail with assignment, maintenance and location history and book value."""
    return asset_service.get_asset_with_history(db, asset_id, as_of=as_of)


def get_employee_report(db: Session, employee_id: int) -> Dict:
    """Employee detail with current and past assignments."""
    detail = employee_service.get_employee_with_assignments(db, employee_id)
    return {
        "employee": detail["employee"],
        "current_assignments": detail["open_assignments"],
        "past_assignments": [a for a in detail["assignments"] if a.status == AssignmentStatus.RETURNED],
        "offboarding_records": employee_service.list_offboarding_records(db, employee_id),
    }


def iter_assignment_rows(
    db: Session,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    status: Optional[AssignmentStatus] = None,
) -> Iterator[Dict]:
    """
    Assignment rows for CSV export

    Filters on start_date; rows are ordered most recent first.
    """
    if from_date and to_date and from_date > to_date:
        raise ValidationFailedError("from_date must be <= to_date")

    query = db.query(Assignment).options(
        joinedload(Assignment.asset), joinedload(Assignment.employee)
    )
    if from_date is not None:
        query = query.filter(Assignment.start_date >= from_date)
    if to_date is not None:
        query = query.filter(Assignment.start_date <= to_date)
    if status is not None:
        query = query.filter(Assignment.status == status)

    for a in query.order_by(Assignment.start_date.desc(), Assignment.id.desc()).all():
        yield {
            "assignment_id": a.id,
            "asset_tag": a.asset.asset_tag,
            "serial_number": a.asset.serial_number,
            "asset_type": a.asset.type,
            "employee_name": a.employee.full_name,
            "badge_id": a.employee.badge_id,
            "department": a.employee.department,
            "status": a.status,
            "start_date": a.start_date,
            "end_date": a.end_date,
            "accepted_at": iso_8601_utc(a.accepted_at),
            "returned_at": iso_8601_utc(a.returned_at),
            "change_type": a.change_type,
            "change_reason": a.change_reason,
        }


def iter_asset_rows(db: Session, status: Optional[AssetStatus] = None) -> Iterator[Dict]:
    query = db.query(Asset).options(joinedload(Asset.current_location))
    if status is not None:
        query = query.filter(Asset.status == status)
    today = today_utc()
    for asset in query.order_by(Asset.asset_tag).all():
        yield {
            "asset_id": asset.id,
            "asset_tag": asset.asset_tag,
            "type": asset.type,
            "manufacturer": asset.manufacturer,
            "model": asset.model,
            "serial_number": asset.serial_number,
            "status": asset.status,
            "ownership": asset.ownership,
            "location": asset.current_location.name if asset.current_location else None,
            "purchase_date": asset.purchase_date,
            "purchase_cost": asset.purchase_cost,
            "book_value": calculate_book_value(asset, as_of=today),
            "warranty_expiry": asset.warranty_expiry,
            "security_compliant": asset.security_compliant,
        }


def get_assignment_rows(db: Session, **filters) -> List[Dict]:
    return list(iter_assignment_rows(db, **filters))


def get_asset_rows(db: Session, **filters) -> List[Dict]:
    return list(iter_asset_rows(db, **filters))
