"""
User and role administration endpoints (admin only)
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from itam.core.deps import get_db, require_roles
from itam.models.user import AppRole, Profile
from itam.schemas.user import ActiveUpdate, ProfileCreate, ProfileOut, RolesUpdate
from itam.services import user_service

router = APIRouter()

require_admin = require_roles(AppRole.ADMIN)


@router.get("", response_model=List[ProfileOut])
async def list_users(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_admin),
):
    return [ProfileOut.model_validate(p) for p in user_service.list_profiles(db)]


@router.post("", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: ProfileCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_admin),
):
    """Create an application user with roles"""
    result = user_service.create_profile(
        db, current_user,
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        roles=data.roles,
    )
    return ProfileOut.model_validate(result.record)


@router.put("/{user_id}/roles", response_model=ProfileOut)
async def replace_roles(
    user_id: int,
    data: RolesUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_admin),
):
    result = user_service.set_roles(db, current_user, user_id, data.roles)
    return ProfileOut.model_validate(result.record)


@router.patch("/{user_id}/active", response_model=ProfileOut)
async def set_user_active(
    user_id: int,
    data: ActiveUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_admin),
):
    result = user_service.set_active(db, current_user, user_id, data.is_active)
    return ProfileOut.model_validate(result.record)
