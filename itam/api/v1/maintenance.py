"""
Maintenance log endpoints
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user, require_roles
from itam.models.maintenance import MaintenanceType
from itam.models.user import AppRole, Profile
from itam.schemas.maintenance import (
    FormattingLogCreate,
    MaintenanceEventCreate,
    MaintenanceEventOut,
    MaintenanceListResponse,
    MaintenanceMutationOut,
)
from itam.services import maintenance_service

router = APIRouter()

require_it = require_roles(AppRole.IT)


@router.get("", response_model=MaintenanceListResponse)
async def list_events(
    event_type: Optional[MaintenanceType] = Query(None, alias="type"),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """All maintenance events, newest first"""
    items = maintenance_service.list_maintenance_events(
        db, event_type=event_type, from_date=from_date, to_date=to_date,
    )
    return MaintenanceListResponse(items=items, total=len(items))


@router.post("", response_model=MaintenanceMutationOut, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: MaintenanceEventCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Log a maintenance event (IT or Admin)"""
    result = maintenance_service.create_maintenance_event(db, current_user, data.model_dump())
    return MaintenanceMutationOut(event=result.record, invalidates=result.invalidates)


@router.post("/formatting", response_model=MaintenanceMutationOut, status_code=status.HTTP_201_CREATED)
async def log_formatting(
    data: FormattingLogCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Record a formatting dated today with healthy storage"""
    kwargs = {"description": data.description} if data.description else {}
    result = maintenance_service.log_formatting(
        db, current_user, asset_id=data.asset_id, performed_by=data.performed_by, **kwargs,
    )
    return MaintenanceMutationOut(event=result.record, invalidates=result.invalidates)


@router.get("/asset/{asset_id}", response_model=MaintenanceListResponse)
async def get_asset_history(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    items = maintenance_service.get_asset_maintenance_history(db, asset_id)
    return MaintenanceListResponse(items=items, total=len(items))


@router.get("/{event_id}", response_model=MaintenanceEventOut)
async def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return maintenance_service.get_maintenance_event(db, event_id)
