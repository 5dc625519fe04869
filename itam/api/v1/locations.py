"""
Location endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user, require_roles
from itam.models.user import AppRole, Profile
from itam.schemas.location import (
    LocationCreate,
    LocationDetailOut,
    LocationMutationOut,
    LocationOut,
    LocationUpdate,
)
from itam.services import location_service

router = APIRouter()

require_it = require_roles(AppRole.IT)


@router.get("", response_model=List[LocationOut])
async def list_locations(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Locations ordered by name"""
    return location_service.list_locations(db, include_inactive=include_inactive)


@router.post("", response_model=LocationMutationOut, status_code=status.HTTP_201_CREATED)
async def create_location(
    data: LocationCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    result = location_service.create_location(db, current_user, data.model_dump())
    return LocationMutationOut(location=result.record, invalidates=result.invalidates)


@router.get("/{location_id}", response_model=LocationDetailOut)
async def get_location(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Location with the assets currently there"""
    detail = location_service.get_location_with_assets(db, location_id)
    return LocationDetailOut.model_validate(detail, from_attributes=True)


@router.patch("/{location_id}", response_model=LocationMutationOut)
async def update_location(
    location_id: int,
    data: LocationUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    result = location_service.update_location(db, current_user, location_id, data.model_dump(exclude_unset=True))
    return LocationMutationOut(location=result.record, invalidates=result.invalidates)


@router.delete("/{location_id}", response_model=LocationMutationOut)
async def deactivate_location(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Soft-delete: the location is deactivated, never removed"""
    result = location_service.deactivate_location(db, current_user, location_id)
    return LocationMutationOut(location=result.record, invalidates=result.invalidates)
