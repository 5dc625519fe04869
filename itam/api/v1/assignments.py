"""
Assignment lifecycle endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status, Body
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user, require_roles
from itam.models.assignment import AssignmentStatus
from itam.models.user import AppRole, Profile
from itam.schemas.assignment import (
    AllowedActionsOut,
    AssignmentAccept,
    AssignmentClose,
    AssignmentCreate,
    AssignmentListResponse,
    AssignmentMutationOut,
    AssignmentOut,
    AssignmentReplace,
    AssignmentReturn,
    AssignmentReturnRequest,
    AssignmentUpdate,
    ReplacementOut,
)
from itam.services import assignment_service
from itam.services.lifecycle import allowed_actions

router = APIRouter()

require_it = require_roles(AppRole.IT)
require_acceptor = require_roles(AppRole.IT, AppRole.HR)


def _mutation_out(result) -> AssignmentMutationOut:
    return AssignmentMutationOut(
        assignment=AssignmentOut.model_validate(result.record),
        invalidates=result.invalidates,
    )


@router.get("", response_model=AssignmentListResponse)
async def list_assignments(
    status_filter: Optional[AssignmentStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    asset_id: Optional[int] = Query(None),
    open_only: bool = Query(False, description="Only pending_acceptance and active"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """List assignments, most recent start_date first"""
    items = assignment_service.list_assignments(
        db, status=status_filter, employee_id=employee_id, asset_id=asset_id, open_only=open_only,
    )
    return AssignmentListResponse(items=items, total=len(items))


@router.post("", response_model=AssignmentMutationOut, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Assign an asset to an employee (IT or Admin). Asset moves to in_use."""
    result = assignment_service.create_assignment(
        db, current_user,
        asset_id=data.asset_id,
        employee_id=data.employee_id,
        start_date=data.start_date,
        notes=data.notes,
    )
    return _mutation_out(result)


@router.get("/{assignment_id}", response_model=AssignmentOut)
async def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return assignment_service.get_assignment(db, assignment_id)


@router.get("/{assignment_id}/actions", response_model=AllowedActionsOut)
async def get_allowed_actions(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Transition actions to offer the current user; enforcement stays server-side"""
    assignment = assignment_service.get_assignment(db, assignment_id)
    return AllowedActionsOut(
        assignment_id=assignment.id,
        status=assignment.status,
        actions=allowed_actions(assignment, current_user.role_names),
    )


@router.patch("/{assignment_id}", response_model=AssignmentMutationOut)
async def update_assignment(
    assignment_id: int,
    data: AssignmentUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    result = assignment_service.update_assignment(
        db, current_user, assignment_id, start_date=data.start_date, notes=data.notes,
    )
    return _mutation_out(result)


@router.post("/{assignment_id}/accept", response_model=AssignmentMutationOut)
async def accept_assignment(
    assignment_id: int,
    data: Optional[AssignmentAccept] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_acceptor),
):
    """Accept a pending assignment (IT, HR or Admin)"""
    data = data or AssignmentAccept()
    result = assignment_service.accept_assignment(
        db, current_user, assignment_id,
        notes=data.notes,
        digital_acknowledgment=data.digital_acknowledgment,
    )
    return _mutation_out(result)


@router.post("/{assignment_id}/request-return", response_model=AssignmentMutationOut)
async def request_return(
    assignment_id: int,
    data: Optional[AssignmentReturnRequest] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    data = data or AssignmentReturnRequest()
    result = assignment_service.request_return(db, current_user, assignment_id, notes=data.notes)
    return _mutation_out(result)


@router.post("/{assignment_id}/return", response_model=AssignmentMutationOut)
async def return_assignment(
    assignment_id: int,
    data: Optional[AssignmentReturn] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Simple hand-back; asset status is not changed"""
    data = data or AssignmentReturn()
    result = assignment_service.return_assignment(
        db, current_user, assignment_id,
        return_condition=data.return_condition,
        damage_notes=data.damage_notes,
        requires_formatting=data.requires_formatting,
    )
    return _mutation_out(result)


@router.post("/{assignment_id}/close", response_model=AssignmentMutationOut)
async def close_assignment(
    assignment_id: int,
    data: AssignmentClose,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Formal return with reason; assignment and asset status change together"""
    result = assignment_service.close_assignment(
        db, current_user, assignment_id,
        end_date=data.end_date,
        change_type=data.change_type,
        asset_id=data.asset_id,
        asset_status_after=data.asset_status_after,
        change_reason=data.change_reason,
        return_condition=data.return_condition,
        damage_notes=data.damage_notes,
        requires_formatting=data.requires_formatting,
    )
    return _mutation_out(result)


@router.post("/{assignment_id}/replace", response_model=ReplacementOut)
async def replace_asset(
    assignment_id: int,
    data: AssignmentReplace,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Swap the employee's asset for another one in a single transaction"""
    result = assignment_service.replace_asset_for_employee(
        db, current_user,
        current_assignment_id=assignment_id,
        employee_id=data.employee_id,
        old_asset_id=data.old_asset_id,
        new_asset_id=data.new_asset_id,
        replacement_date=data.replacement_date,
        reason=data.reason,
    )
    return ReplacementOut(
        assignment=AssignmentOut.model_validate(result.record),
        closed_assignment=AssignmentOut.model_validate(result.related["closed_assignment"]),
        invalidates=result.invalidates,
    )
