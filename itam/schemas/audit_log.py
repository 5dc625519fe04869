"""
Audit log schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, field_serializer, ConfigDict
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.utils.datetime_utils import iso_8601_utc


class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int]
    user_email: Optional[str]
    action: AuditAction
    entity_type: AuditEntityType
    entity_id: int
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    changes: Optional[Dict[str, Any]]
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("timestamp", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class AuditLogListResponse(BaseModel):
    items: List[AuditLogOut]
    total: int
