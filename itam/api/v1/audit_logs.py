"""
Audit trail endpoints (auditor or admin)
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from itam.core.deps import get_db, require_roles
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.user import AppRole, Profile
from itam.schemas.audit_log import AuditLogListResponse
from itam.services import audit_service

router = APIRouter()

require_auditor = require_roles(AppRole.AUDITOR)


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    action: Optional[AuditAction] = Query(None),
    entity_type: Optional[AuditEntityType] = Query(None),
    user_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_auditor),
):
    """Audit entries, newest first"""
    items = audit_service.list_audit_logs(db, action=action, entity_type=entity_type, user_id=user_id, limit=limit)
    return AuditLogListResponse(items=items, total=len(items))


@router.get("/recent", response_model=AuditLogListResponse)
async def recent_activity(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_auditor),
):
    items = audit_service.recent_activity(db, limit=limit)
    return AuditLogListResponse(items=items, total=len(items))


@router.get("/{entity_type}/{entity_id}", response_model=AuditLogListResponse)
async def entity_audit_trail(
    entity_type: AuditEntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_auditor),
):
    """Every recorded change to one entity"""
    items = audit_service.get_entity_audit_trail(db, entity_type, entity_id)
    return AuditLogListResponse(items=items, total=len(items))
