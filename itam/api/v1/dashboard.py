"""
Dashboard endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from itam.core.deps import get_db, get_current_user
from itam.models.user import Profile
from itam.schemas.dashboard import DashboardStats
from itam.services.dashboard_service import get_dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Employee, asset and assignment totals"""
    return get_dashboard_stats(db)
