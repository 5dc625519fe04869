"""
Employee schemas
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict
from itam.models.employee import EmploymentStatus
from itam.schemas.assignment import AssignmentOut
from itam.utils.datetime_utils import iso_8601_utc


class EmployeeCreate(BaseModel):
    """Schema for creating an employee"""
    name: str = Field(..., min_length=1, description="Given name")
    surname: str = Field(..., min_length=1, description="Family name")
    department: str = Field(..., min_length=1, description="Department")
    badge_id: str = Field(..., min_length=1, description="Badge ID (unique)")
    health_card_id: str = Field(..., min_length=1, description="Health card ID")
    start_date: date = Field(..., description="Employment start date")


class EmployeeUpdate(BaseModel):
    """Schema for updating an employee. Setting status=left goes through the offboarding guard."""
    name: Optional[str] = Field(None, min_length=1)
    surname: Optional[str] = Field(None, min_length=1)
    department: Optional[str] = None
    badge_id: Optional[str] = None
    health_card_id: Optional[str] = None
    start_date: Optional[date] = None
    status: Optional[EmploymentStatus] = None
    end_date: Optional[date] = None


class MarkLeftRequest(BaseModel):
    """Schema for marking an employee as left"""
    end_date: date = Field(..., description="Last day of employment")
    notes: Optional[str] = None


class OffboardingRequest(BaseModel):
    notes: Optional[str] = None


class EmployeeOut(BaseModel):
    """Schema for employee output. Datetimes in UTC (Z)."""
    id: int
    name: str
    surname: str
    department: Optional[str]
    badge_id: Optional[str]
    health_card_id: Optional[str]
    status: EmploymentStatus
    start_date: date
    end_date: Optional[date]
    is_offboarding_complete: bool
    offboarding_completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("offboarding_completed_at", "created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class EmployeeMutationOut(BaseModel):
    employee: EmployeeOut
    invalidates: List[str]


class EmployeeDetailOut(BaseModel):
    """Employee with open assignments and full assignment history"""
    employee: EmployeeOut
    open_assignments: List[AssignmentOut]
    open_assignment_count: int
    assignments: List[AssignmentOut]


class OffboardingRecordOut(BaseModel):
    id: int
    employee_id: int
    initiated_at: datetime
    initiated_by: Optional[int]
    pending_assets: Optional[List[int]]
    returned_assets: Optional[List[int]]
    completed_at: Optional[datetime]
    completed_by: Optional[int]
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("initiated_at", "completed_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class OffboardingMutationOut(BaseModel):
    record: OffboardingRecordOut
    invalidates: List[str]


class EmployeeListResponse(BaseModel):
    items: List[EmployeeOut]
    total: int
