"""
Maintenance event schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict
from itam.models.asset import StorageHealth
from itam.models.maintenance import MaintenanceType
from itam.utils.datetime_utils import iso_8601_utc


class MaintenanceEventCreate(BaseModel):
    """Schema for logging a maintenance event"""
    asset_id: int
    type: MaintenanceType
    date: date
    performed_by: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    resulting_health: Optional[StorageHealth] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    downtime_hours: Optional[Decimal] = Field(None, ge=0)
    parts_replaced: Optional[List[str]] = None


class FormattingLogCreate(BaseModel):
    """Schema for the formatting shortcut"""
    asset_id: int
    performed_by: str = Field(..., min_length=1)
    description: Optional[str] = None


class MaintenanceEventOut(BaseModel):
    id: int
    asset_id: int
    type: MaintenanceType
    date: date
    performed_by: str
    description: str
    resulting_health: Optional[StorageHealth]
    cost: Optional[Decimal]
    downtime_hours: Optional[Decimal]
    parts_replaced: Optional[List[str]]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class MaintenanceMutationOut(BaseModel):
    event: MaintenanceEventOut
    invalidates: List[str]


class MaintenanceListResponse(BaseModel):
    items: List[MaintenanceEventOut]
    total: int
