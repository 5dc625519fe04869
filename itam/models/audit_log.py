"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
import enum
from itam.db.base import Base
from itam.db.types import enum_type


class AuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ASSIGN = "assign"
    UNASSIGN = "unassign"


class AuditEntityType(str, enum.Enum):
    EMPLOYEE = "employee"
    ASSET = "asset"
    ASSIGNMENT = "assignment"
    MAINTENANCE = "maintenance"
    LOCATION = "location"
    PROFILE = "profile"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # No FK: the trail outlives profiles
    user_email = Column(String, nullable=True)
    action = Column(enum_type(AuditAction, "audit_action"), nullable=False)
    entity_type = Column(enum_type(AuditEntityType, "audit_entity_type"), nullable=False)
    entity_id = Column(Integer, nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    changes = Column(JSON, nullable=True)  # {field: {"old": ..., "new": ...}}
    # Set explicitly by the audit service (SQLite server_default returns naive strings)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
