"""
Maintenance event model (append-only)
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text, Numeric, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from itam.db.base import Base
from itam.db.types import enum_type
from itam.models.asset import StorageHealth


class MaintenanceType(str, enum.Enum):
    FORMATTING = "formatting"
    REPAIR = "repair"
    UPGRADE = "upgrade"
    INSPECTION = "inspection"
    REPLACEMENT = "replacement"


class MaintenanceEvent(Base):
    __tablename__ = "maintenance_events"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    type = Column(enum_type(MaintenanceType, "maintenance_type"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    performed_by = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    resulting_health = Column(enum_type(StorageHealth, "storage_health"), nullable=True)
    cost = Column(Numeric(12, 2), nullable=True)
    downtime_hours = Column(Numeric(6, 2), nullable=True)
    parts_replaced = Column(JSON, nullable=True)  # list of part names
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    asset = relationship("Asset", backref="maintenance_events")
