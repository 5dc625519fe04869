"""
Reports and exports endpoints
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from itam.core.deps import get_db, require_roles
from itam.models.asset import AssetStatus
from itam.models.assignment import AssignmentStatus
from itam.models.user import AppRole, Profile
from itam.schemas.asset import AssetDetailOut
from itam.schemas.assignment import AssignmentOut
from itam.schemas.employee import EmployeeOut, OffboardingRecordOut
from itam.services.report_service import (
    ASSET_CSV_HEADERS,
    ASSIGNMENT_CSV_HEADERS,
    get_asset_report,
    get_asset_rows,
    get_assignment_rows,
    get_employee_report,
)
from itam.utils.csv_export import stream_csv
from itam.utils.datetime_utils import today_utc

router = APIRouter()

require_reader = require_roles(AppRole.IT, AppRole.HR, AppRole.AUDITOR)


@router.get("/assets/{asset_id}", response_model=AssetDetailOut)
async def asset_report(
    asset_id: int,
    as_of: Optional[date] = Query(None, description="Book value date (default today)"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_reader),
):
    """Read-side state for a printable asset report"""
    return AssetDetailOut.model_validate(get_asset_report(db, asset_id, as_of=as_of), from_attributes=True)


@router.get("/employees/{employee_id}")
async def employee_report(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_reader),
):
    """Read-side state for a printable employee report"""
    report = get_employee_report(db, employee_id)
    return {
        "employee": EmployeeOut.model_validate(report["employee"]).model_dump(mode="json"),
        "current_assignments": [
            AssignmentOut.model_validate(a).model_dump(mode="json") for a in report["current_assignments"]
        ],
        "past_assignments": [
            AssignmentOut.model_validate(a).model_dump(mode="json") for a in report["past_assignments"]
        ],
        "offboarding_records": [
            OffboardingRecordOut.model_validate(r).model_dump(mode="json") for r in report["offboarding_records"]
        ],
    }


@router.get("/assignments.csv")
async def export_assignments_csv(
    from_date: Optional[date] = Query(None, alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, alias="to", description="End date (YYYY-MM-DD)"),
    status_filter: Optional[AssignmentStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_reader),
):
    """
    Export assignments as CSV

    Filters on start_date. Requires IT, HR, Auditor or Admin.
    """
    rows = get_assignment_rows(db, from_date=from_date, to_date=to_date, status=status_filter)
    filename = f"assignments_{today_utc().strftime('%Y%m%d')}.csv"
    return stream_csv(headers=ASSIGNMENT_CSV_HEADERS, rows=rows, filename=filename)


@router.get("/assets.csv")
async def export_assets_csv(
    status_filter: Optional[AssetStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_reader),
):
    """Export asset inventory with book values as CSV"""
    rows = get_asset_rows(db, status=status_filter)
    filename = f"assets_{today_utc().strftime('%Y%m%d')}.csv"
    return stream_csv(headers=ASSET_CSV_HEADERS, rows=rows, filename=filename)
