"""
Asset endpoints
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user, require_roles
from itam.models.asset import AssetStatus, AssetType, Ownership
from itam.models.user import AppRole, Profile
from itam.schemas.asset import (
    AssetCreate,
    AssetDetailOut,
    AssetListResponse,
    AssetMove,
    AssetMoveOut,
    AssetMutationOut,
    AssetOut,
    AssetStatusUpdate,
    AssetUpdate,
    BookValueOut,
    StorageUnitCreate,
    StorageUnitMutationOut,
)
from itam.schemas.assignment import AssignmentListResponse
from itam.services import asset_service, assignment_service
from itam.services.lifecycle import asset_block_reason
from itam.utils.datetime_utils import today_utc

router = APIRouter()

require_it = require_roles(AppRole.IT)


@router.get("", response_model=AssetListResponse)
async def list_assets(
    status_filter: Optional[AssetStatus] = Query(None, alias="status"),
    asset_type: Optional[AssetType] = Query(None, alias="type"),
    ownership: Optional[Ownership] = Query(None),
    location_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Matches tag, serial, hostname, manufacturer or model"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    items = asset_service.list_assets(
        db, status=status_filter, asset_type=asset_type, ownership=ownership,
        location_id=location_id, search=search,
    )
    return AssetListResponse(items=items, total=len(items))


@router.post("", response_model=AssetMutationOut, status_code=status.HTTP_201_CREATED)
async def create_asset(
    data: AssetCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Register an asset (IT or Admin)"""
    result = asset_service.create_asset(db, current_user, data.model_dump())
    return AssetMutationOut(asset=AssetOut.model_validate(result.record), invalidates=result.invalidates)


@router.get("/{asset_id}", response_model=AssetOut)
async def get_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return asset_service.get_asset(db, asset_id)


@router.get("/{asset_id}/history", response_model=AssetDetailOut)
async def get_asset_with_history(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Asset with assignment, maintenance and location history"""
    detail = asset_service.get_asset_with_history(db, asset_id)
    return AssetDetailOut.model_validate(detail, from_attributes=True)


@router.patch("/{asset_id}", response_model=AssetMutationOut)
async def update_asset(
    asset_id: int,
    data: AssetUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Edit asset fields; disposed assets are read-only"""
    result = asset_service.update_asset(db, current_user, asset_id, data.model_dump(exclude_unset=True))
    return AssetMutationOut(asset=AssetOut.model_validate(result.record), invalidates=result.invalidates)


@router.patch("/{asset_id}/status", response_model=AssetMutationOut)
async def update_asset_status(
    asset_id: int,
    data: AssetStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Change asset status; retired/disposed/quarantined require no open assignment"""
    result = asset_service.update_asset_status(db, current_user, asset_id, data.status)
    return AssetMutationOut(asset=AssetOut.model_validate(result.record), invalidates=result.invalidates)


@router.post("/{asset_id}/storage-units", response_model=StorageUnitMutationOut, status_code=status.HTTP_201_CREATED)
async def add_storage_unit(
    asset_id: int,
    data: StorageUnitCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    result = asset_service.add_storage_unit(
        db, current_user, asset_id, storage_type=data.type, capacity=data.capacity, health=data.health,
    )
    return StorageUnitMutationOut(storage_unit=result.record, invalidates=result.invalidates)


@router.post("/{asset_id}/move", response_model=AssetMoveOut)
async def move_asset(
    asset_id: int,
    data: AssetMove,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_it),
):
    """Move asset to another location (closes the open location history row)"""
    result = asset_service.move_asset_to_location(db, current_user, asset_id, data.location_id, data.notes)
    return AssetMoveOut(location_history=result.record, invalidates=result.invalidates)


@router.get("/{asset_id}/book-value", response_model=BookValueOut)
async def get_book_value(
    asset_id: int,
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Straight-line depreciated value"""
    asset = asset_service.get_asset(db, asset_id)
    as_of = as_of or today_utc()
    return BookValueOut(
        asset_id=asset.id,
        as_of=as_of,
        purchase_cost=asset.purchase_cost,
        book_value=asset_service.calculate_book_value(asset, as_of=as_of),
    )


@router.get("/{asset_id}/assignments", response_model=AssignmentListResponse)
async def get_asset_assignments(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Assignment history for an asset, most recent first"""
    items = assignment_service.get_asset_assignment_history(db, asset_id)
    return AssignmentListResponse(items=items, total=len(items))


@router.get("/{asset_id}/assignability")
async def get_assignability(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Whether the asset can be assigned now, and why not"""
    asset = asset_service.get_asset(db, asset_id)
    reason = asset_block_reason(db, asset)
    return {"asset_id": asset.id, "can_be_assigned": reason is None, "reason": reason}
