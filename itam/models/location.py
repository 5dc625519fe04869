"""
Location and location history models
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from itam.db.base import Base
from itam.db.types import enum_type


class LocationType(str, enum.Enum):
    OFFICE = "office"
    STORAGE = "storage"
    SERVER_ROOM = "server_room"
    RACK = "rack"


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    type = Column(enum_type(LocationType, "location_type"), nullable=False)
    building = Column(String, nullable=True)
    floor = Column(String, nullable=True)
    rack_position = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    assets = relationship("Asset", back_populates="current_location")


class LocationHistory(Base):
    __tablename__ = "location_history"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)  # NULL = asset is still here
    moved_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    location = relationship("Location")
    asset = relationship("Asset", backref="location_history")

    __table_args__ = (
        Index(
            "uq_location_history_one_open_per_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("end_date IS NULL"),
            sqlite_where=text("end_date IS NULL"),
        ),
    )
