"""
Asset schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict
from itam.models.asset import (
    AssetStatus,
    AssetType,
    DataClassification,
    Ownership,
    StorageHealth,
    StorageType,
)
from itam.schemas.assignment import AssignmentOut
from itam.schemas.location import LocationHistoryOut
from itam.schemas.maintenance import MaintenanceEventOut
from itam.utils.datetime_utils import iso_8601_utc


class StorageUnitCreate(BaseModel):
    type: StorageType
    capacity: str = Field(..., min_length=1, description="e.g. 512GB")
    health: StorageHealth = StorageHealth.HEALTHY


class StorageUnitOut(BaseModel):
    id: int
    asset_id: int
    type: StorageType
    capacity: str
    health: StorageHealth

    model_config = ConfigDict(from_attributes=True)


class AssetFields(BaseModel):
    """Editable asset fields shared by create and update"""
    hostname: Optional[str] = None
    operating_system: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_cost: Optional[Decimal] = Field(None, ge=0)
    useful_life_years: Optional[int] = Field(None, ge=1)
    warranty_expiry: Optional[date] = None
    cost_center: Optional[str] = None
    budget_owner: Optional[str] = None
    security_compliant: Optional[bool] = None
    disk_encryption_enabled: Optional[bool] = None
    antivirus_edr_present: Optional[bool] = None
    admin_privileges_granted: Optional[bool] = None
    data_classification: Optional[DataClassification] = None
    last_security_check: Optional[date] = None
    specs: Optional[Dict[str, Any]] = Field(None, description="cpu, ram, motherboard, graphics, display")
    notes: Optional[str] = None


class AssetCreate(AssetFields):
    """Schema for registering an asset"""
    asset_tag: str = Field(..., min_length=1, description="Inventory tag (unique)")
    type: AssetType
    manufacturer: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    serial_number: str = Field(..., min_length=1, description="Serial number (unique)")
    status: AssetStatus = AssetStatus.PLANNED
    ownership: Ownership
    current_location_id: Optional[int] = None
    storage_units: List[StorageUnitCreate] = Field(default_factory=list)

    model_config = ConfigDict(protected_namespaces=())


class AssetUpdate(AssetFields):
    """Schema for editing an asset. Rejected for read-only (disposed) assets."""
    asset_tag: Optional[str] = Field(None, min_length=1)
    type: Optional[AssetType] = None
    manufacturer: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = Field(None, min_length=1)
    serial_number: Optional[str] = Field(None, min_length=1)
    status: Optional[AssetStatus] = None
    ownership: Optional[Ownership] = None

    model_config = ConfigDict(protected_namespaces=())


class AssetStatusUpdate(BaseModel):
    status: AssetStatus


class AssetMove(BaseModel):
    location_id: int
    notes: Optional[str] = None


class AssetOut(AssetFields):
    """Schema for asset output. Datetimes in UTC (Z)."""
    id: int
    asset_tag: str
    type: AssetType
    manufacturer: str
    model: str
    serial_number: str
    status: AssetStatus
    ownership: Ownership
    current_location_id: Optional[int]
    is_readonly: bool
    storage_units: List[StorageUnitOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class AssetMutationOut(BaseModel):
    asset: AssetOut
    invalidates: List[str]


class StorageUnitMutationOut(BaseModel):
    storage_unit: StorageUnitOut
    invalidates: List[str]


class AssetMoveOut(BaseModel):
    location_history: LocationHistoryOut
    invalidates: List[str]


class AssetListResponse(BaseModel):
    items: List[AssetOut]
    total: int


class AssetDetailOut(BaseModel):
    """Asset with its assignment, maintenance and location history"""
    asset: AssetOut
    current_assignment: Optional[AssignmentOut]
    assignments: List[AssignmentOut]
    maintenance_events: List[MaintenanceEventOut]
    location_history: List[LocationHistoryOut]
    book_value: Optional[Decimal]


class BookValueOut(BaseModel):
    asset_id: int
    as_of: date
    purchase_cost: Optional[Decimal]
    book_value: Optional[Decimal]
