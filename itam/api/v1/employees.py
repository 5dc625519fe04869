"""
Employee endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status, Body
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user, require_roles
from itam.models.employee import EmploymentStatus
from itam.models.user import AppRole, Profile
from itam.schemas.assignment import AssignmentListResponse
from itam.schemas.employee import (
    EmployeeCreate,
    EmployeeDetailOut,
    EmployeeListResponse,
    EmployeeMutationOut,
    EmployeeOut,
    EmployeeUpdate,
    MarkLeftRequest,
    OffboardingMutationOut,
    OffboardingRecordOut,
    OffboardingRequest,
)
from itam.services import assignment_service, employee_service

router = APIRouter()

require_hr = require_roles(AppRole.HR)


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    status_filter: Optional[EmploymentStatus] = Query(None, alias="status"),
    department: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches name, surname or badge ID"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """List employees ordered by surname"""
    items = employee_service.list_employees(db, status=status_filter, department=department, search=search)
    return EmployeeListResponse(items=items, total=len(items))


@router.post("", response_model=EmployeeMutationOut, status_code=status.HTTP_201_CREATED)
async def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_hr),
):
    """Create employee (HR or Admin)"""
    result = employee_service.create_employee(db, current_user, data.model_dump())
    return EmployeeMutationOut(employee=result.record, invalidates=result.invalidates)


@router.get("/{employee_id}", response_model=EmployeeDetailOut)
async def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Employee with open assignments and assignment history"""
    detail = employee_service.get_employee_with_assignments(db, employee_id)
    return EmployeeDetailOut.model_validate(detail, from_attributes=True)


@router.patch("/{employee_id}", response_model=EmployeeMutationOut)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_hr),
):
    """
    Update employee (HR or Admin)

    status=left is refused while the employee holds open assignments.
    """
    result = employee_service.update_employee(db, current_user, employee_id, data.model_dump(exclude_unset=True))
    return EmployeeMutationOut(employee=result.record, invalidates=result.invalidates)


@router.post("/{employee_id}/mark-left", response_model=EmployeeMutationOut)
async def mark_employee_as_left(
    employee_id: int,
    data: MarkLeftRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_hr),
):
    """Mark employee as left and complete offboarding (HR or Admin)"""
    result = employee_service.mark_employee_as_left(db, current_user, employee_id, data.end_date, data.notes)
    return EmployeeMutationOut(employee=result.record, invalidates=result.invalidates)


@router.post("/{employee_id}/offboarding", response_model=OffboardingMutationOut, status_code=status.HTTP_201_CREATED)
async def initiate_offboarding(
    employee_id: int,
    data: Optional[OffboardingRequest] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_hr),
):
    """Start offboarding and record the assets the employee still holds"""
    data = data or OffboardingRequest()
    result = employee_service.initiate_offboarding(db, current_user, employee_id, data.notes)
    return OffboardingMutationOut(record=result.record, invalidates=result.invalidates)


@router.get("/{employee_id}/offboarding", response_model=List[OffboardingRecordOut])
async def list_offboarding_records(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return employee_service.list_offboarding_records(db, employee_id)


@router.get("/{employee_id}/assignments", response_model=AssignmentListResponse)
async def get_employee_assignments(
    employee_id: int,
    open_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Assignment history for an employee, most recent first"""
    if open_only:
        items = assignment_service.get_open_assignments_for_employee(db, employee_id)
    else:
        items = assignment_service.get_employee_assignment_history(db, employee_id)
    return AssignmentListResponse(items=items, total=len(items))
