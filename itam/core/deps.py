"""
Dependencies and guards for FastAPI endpoints
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from itam.db.session import get_db
from itam.core.security import decode_token
from itam.models.user import AppRole, Profile


security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """
    Get current authenticated user from JWT token
    """
    token = credentials.credentials

    try:
        payload = decode_token(token)
        sub_value = payload.get("sub")
        if sub_value is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        # JWT 'sub' is a string
        user_id: int = int(sub_value)
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return profile


def require_roles(*allowed_roles: AppRole):
    """
    Dependency factory for role-based access control

    Roles are read from user_roles on every request, so a role change takes
    effect without a new token. ADMIN passes every gate.

    Usage:
        @router.post("/assets")
        async def create(user: Profile = Depends(require_roles(AppRole.IT))):
            ...
    """
    allowed = {r.value for r in allowed_roles}

    def role_checker(current_user: Profile = Depends(get_current_user)) -> Profile:
        roles = current_user.role_names
        if AppRole.ADMIN.value in roles:
            return current_user
        if not roles & allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {sorted(allowed | {AppRole.ADMIN.value})}"
            )
        return current_user
    return role_checker
