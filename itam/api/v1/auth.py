"""
Authentication endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user
from itam.core.security import create_access_token
from itam.models.user import Profile
from itam.schemas.auth import LoginRequest, TokenResponse
from itam.schemas.user import ProfileOut
from itam.services.user_service import authenticate

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return JWT token

    Validates email and password, rejects inactive profiles.
    """
    profile = authenticate(db, login_data.email, login_data.password)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    roles = sorted(profile.role_names)
    # JWT 'sub' claim must be a string; roles are informational, gates re-read user_roles
    access_token = create_access_token(data={"sub": str(profile.id), "email": profile.email, "roles": roles})
    return TokenResponse(access_token=access_token, user_id=profile.id, roles=roles)


@router.get("/me", response_model=ProfileOut)
async def me(current_user: Profile = Depends(get_current_user)):
    """Current user and role set"""
    return ProfileOut.model_validate(current_user)
