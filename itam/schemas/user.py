"""
User (profile) schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict
from itam.models.user import AppRole
from itam.utils.datetime_utils import iso_8601_utc


class ProfileCreate(BaseModel):
    """Schema for creating an application user"""
    email: str = Field(..., min_length=3, description="Login email (unique)")
    password: str = Field(..., min_length=8, max_length=72, description="Initial password")
    full_name: Optional[str] = Field(None, description="Display name")
    roles: List[AppRole] = Field(default_factory=list, description="Roles granted")


class RolesUpdate(BaseModel):
    """Schema for replacing a user's role set"""
    roles: List[AppRole] = Field(..., description="Complete role set")


class ActiveUpdate(BaseModel):
    is_active: bool


class ProfileOut(BaseModel):
    """Schema for profile output. Datetimes in UTC (Z)."""
    id: int
    email: str
    full_name: Optional[str]
    is_active: bool
    roles: List[str] = Field(default_factory=list, validation_alias="role_names")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("roles")
    def _ser_roles(self, roles):
        return sorted(roles)

    @field_serializer("created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)
