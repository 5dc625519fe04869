"""
Assignment schemas
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict
from itam.models.asset import AssetStatus
from itam.models.assignment import AssignmentStatus, ChangeType
from itam.utils.datetime_utils import iso_8601_utc


class AssignmentCreate(BaseModel):
    """Schema for assigning an asset to an employee"""
    asset_id: int = Field(..., description="Asset to assign (must be spare or ordered)")
    employee_id: int = Field(..., description="Receiving employee (must be active)")
    start_date: date = Field(..., description="Assignment start date")
    notes: Optional[str] = None


class AssignmentAccept(BaseModel):
    """Schema for accepting an assignment"""
    notes: Optional[str] = Field(None, description="Acceptance notes")
    digital_acknowledgment: bool = Field(False, description="Employee acknowledged receipt digitally")


class AssignmentReturnRequest(BaseModel):
    notes: Optional[str] = None


class AssignmentReturn(BaseModel):
    """Schema for the simple hand-back path"""
    return_condition: Optional[str] = None
    damage_notes: Optional[str] = None
    requires_formatting: bool = False


class AssignmentClose(BaseModel):
    """Schema for a formal return with a reason"""
    end_date: date
    change_type: ChangeType
    change_reason: Optional[str] = None
    asset_id: int = Field(..., description="Asset of the assignment (must match)")
    asset_status_after: AssetStatus = Field(
        ..., description="spare, under_repair, quarantined or retired"
    )
    return_condition: Optional[str] = None
    damage_notes: Optional[str] = None
    requires_formatting: bool = False


class AssignmentReplace(BaseModel):
    """Schema for swapping the asset an employee holds"""
    employee_id: int
    old_asset_id: int
    new_asset_id: int
    replacement_date: date = Field(..., alias="date", description="Day the swap happens")
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class AssignmentUpdate(BaseModel):
    start_date: Optional[date] = None
    notes: Optional[str] = None


class AssignmentOut(BaseModel):
    """Schema for assignment output. Datetimes in UTC (Z)."""
    id: int
    asset_id: int
    employee_id: int
    status: AssignmentStatus
    start_date: date
    end_date: Optional[date]
    notes: Optional[str]
    accepted_at: Optional[datetime]
    accepted_by: Optional[int]
    acceptance_notes: Optional[str]
    digital_acknowledgment: bool
    returned_at: Optional[datetime]
    returned_by: Optional[int]
    return_condition: Optional[str]
    damage_notes: Optional[str]
    requires_formatting: bool
    change_type: Optional[ChangeType]
    change_reason: Optional[str]
    created_at: datetime
    created_by: Optional[int]

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("accepted_at", "returned_at", "created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class AssignmentMutationOut(BaseModel):
    """Result of a lifecycle operation and the cache keys it invalidated"""
    assignment: AssignmentOut
    invalidates: List[str]


class ReplacementOut(BaseModel):
    assignment: AssignmentOut
    closed_assignment: AssignmentOut
    invalidates: List[str]


class AssignmentListResponse(BaseModel):
    items: List[AssignmentOut]
    total: int


class AllowedActionsOut(BaseModel):
    assignment_id: int
    status: AssignmentStatus
    actions: List[str]
