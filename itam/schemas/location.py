"""
Location schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict
from itam.models.location import LocationType
from itam.utils.datetime_utils import iso_8601_utc


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: LocationType
    building: Optional[str] = None
    floor: Optional[str] = None
    rack_position: Optional[str] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[LocationType] = None
    building: Optional[str] = None
    floor: Optional[str] = None
    rack_position: Optional[str] = None


class LocationOut(BaseModel):
    id: int
    name: str
    type: LocationType
    building: Optional[str]
    floor: Optional[str]
    rack_position: Optional[str]
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class LocationMutationOut(BaseModel):
    location: LocationOut
    invalidates: List[str]


class LocationHistoryOut(BaseModel):
    id: int
    asset_id: int
    location_id: int
    start_date: datetime
    end_date: Optional[datetime]
    moved_by: Optional[int]
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("start_date", "end_date", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class LocationAssetRef(BaseModel):
    id: int
    asset_tag: str
    serial_number: str

    model_config = ConfigDict(from_attributes=True)


class LocationDetailOut(BaseModel):
    location: LocationOut
    assets: List[LocationAssetRef]
    asset_count: int
